"""
Command-line interface for oracle-vectorstore.

Provides commands to provision the vector table, load and delete
documents, run similarity searches and check connectivity.

Usage:
    oracle-vectorstore init                     # Create table and index
    oracle-vectorstore add "text" --meta k=v    # Embed and upsert a document
    oracle-vectorstore search "query" --filter "country == 'NL'"
    oracle-vectorstore delete ID [ID ...]       # Delete documents by id
    oracle-vectorstore health                   # Check database and embeddings
"""

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import click

from oracle_vectorstore.config.settings import get_settings
from oracle_vectorstore.filter.parser import FilterParseError, parse_filter
from oracle_vectorstore.observability.logging import bind_context, clear_context, setup_logging
from oracle_vectorstore.observability.metrics import get_metrics
from oracle_vectorstore.vectorstore.defaults import DistanceType, IndexType


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--metrics/--no-metrics", default=False, help="Expose Prometheus metrics while running")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port (default from METRICS_PORT)")
@click.pass_context
def main(ctx: click.Context, debug: bool, metrics: bool, metrics_port: int | None) -> None:
    """Oracle Vector Store - similarity search over Oracle Database 23ai."""
    settings = get_settings()
    setup_logging(level="DEBUG" if debug or settings.debug else None)

    clear_context()
    bind_context(command=ctx.invoked_subcommand)

    if metrics:
        get_metrics().start_server(port=metrics_port)


@asynccontextmanager
async def open_store(**overrides: Any) -> AsyncIterator[Any]:
    """
    Connect the database and embedding model, yield a ready store.

    Both resources are closed on exit, including on error.
    """
    from oracle_vectorstore.embedding.service import HTTPEmbeddingModel
    from oracle_vectorstore.storage.database import Database
    from oracle_vectorstore.vectorstore.oracle_store import OracleVectorStore

    db = Database()
    embedding_model = HTTPEmbeddingModel()
    try:
        await db.connect()
        store = OracleVectorStore(
            database=db,
            embedding_model=embedding_model,
            **{key: value for key, value in overrides.items() if value is not None},
        )
        bind_context(table=store.table_name)
        yield store
    finally:
        await embedding_model.close()
        await db.close()


def _fail(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(1)


def _parse_meta(pairs: tuple[str, ...]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--meta")
        metadata[key] = value
    return metadata


@main.command()
@click.option(
    "--index-type",
    type=click.Choice([t.value for t in IndexType], case_sensitive=False),
    default=None,
    help="Vector index to create (default from VECTORSTORE_INDEX_TYPE)",
)
@click.option(
    "--distance",
    type=click.Choice([d.value for d in DistanceType], case_sensitive=False),
    default=None,
    help="Distance function (default from VECTORSTORE_DISTANCE_TYPE)",
)
@click.option("--accuracy", type=int, default=None, help="Index target accuracy (0-100)")
@click.option("--dimensions", type=int, default=None, help="Embedding dimensions")
@click.option("--drop", is_flag=True, help="Drop the existing table first")
def init(
    index_type: str | None,
    distance: str | None,
    accuracy: int | None,
    dimensions: int | None,
    drop: bool,
) -> None:
    """Create the vector table and configured index."""
    from oracle_vectorstore.vectorstore.errors import VectorStoreError

    async def run():
        async with open_store(
            index_type=IndexType(index_type.upper()) if index_type else None,
            distance_type=DistanceType(distance.upper()) if distance else None,
            accuracy=accuracy,
            dimensions=dimensions,
            remove_existing_table=True if drop else None,
        ) as store:
            await store.initialize()
            click.echo(
                f"Initialized table {store.table_name} "
                f"(index: {store.index_type.value}, distance: {store.distance_type.value}, "
                f"accuracy: {store.accuracy})"
            )

    try:
        asyncio.run(run())
    except VectorStoreError as e:
        _fail(f"Initialization failed: {e}")


@main.command()
@click.argument("text")
@click.option("--id", "doc_id", default=None, help="Document id (random UUID if omitted)")
@click.option("--meta", multiple=True, help="Metadata entry key=value (can repeat)")
def add(text: str, doc_id: str | None, meta: tuple[str, ...]) -> None:
    """Embed TEXT and upsert it as a document.

    Example:
        oracle-vectorstore add "The World is Big" --meta country=NL --meta year=2020
    """
    from oracle_vectorstore.embedding.service import EmbeddingError
    from oracle_vectorstore.vectorstore.base import Document
    from oracle_vectorstore.vectorstore.errors import VectorStoreError

    metadata = _parse_meta(meta)
    document = Document(content=text, metadata=metadata)
    if doc_id:
        document.id = doc_id

    async def run():
        async with open_store() as store:
            await store.add([document])

    try:
        asyncio.run(run())
    except (VectorStoreError, EmbeddingError) as e:
        _fail(f"Add failed: {e}")

    click.echo(f"Added document {document.id}")


@main.command()
@click.argument("query")
@click.option("--top-k", default=None, type=int, help="Maximum results to return")
@click.option("--threshold", default=None, type=float, help="Minimum similarity (0.0-1.0)")
@click.option("--filter", "filter_text", default=None, help="Metadata filter expression")
def search(
    query: str,
    top_k: int | None,
    threshold: float | None,
    filter_text: str | None,
) -> None:
    """Search for documents similar to QUERY.

    Example:
        oracle-vectorstore search "The World" --top-k 5 --filter "country == 'NL'"
    """
    from oracle_vectorstore.embedding.service import EmbeddingError
    from oracle_vectorstore.vectorstore.errors import VectorStoreError

    filter_expression = None
    if filter_text:
        try:
            filter_expression = parse_filter(filter_text)
        except FilterParseError as e:
            raise click.BadParameter(str(e), param_hint="--filter") from e

    async def run():
        async with open_store() as store:
            return await store.similarity_search_by_text(
                query,
                top_k=top_k,
                similarity_threshold=threshold,
                filter_expression=filter_expression,
            )

    try:
        results = asyncio.run(run())
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    except (VectorStoreError, EmbeddingError) as e:
        _fail(f"Search failed: {e}")

    click.echo(f"\nSearching for: {query}")
    click.echo("-" * 60)

    if not results:
        click.echo("No results found.")
        return

    for i, result in enumerate(results, 1):
        metadata = {
            key: value for key, value in result.document.metadata.items() if key != "distance"
        }
        click.echo(f"\n{i}. {result.document.content[:80]}")
        click.echo(f"   Distance: {result.distance:.4f} | ID: {result.id}")
        if metadata:
            click.echo(f"   Metadata: {metadata}")

    click.echo(f"\n{'-' * 60}")
    click.echo(f"Found {len(results)} results")


@main.command()
@click.argument("ids", nargs=-1, required=True)
def delete(ids: tuple[str, ...]) -> None:
    """Delete documents by id."""
    from oracle_vectorstore.vectorstore.errors import VectorStoreError

    async def run():
        async with open_store() as store:
            return await store.delete(list(ids))

    try:
        all_deleted = asyncio.run(run())
    except VectorStoreError as e:
        _fail(f"Delete failed: {e}")

    if all_deleted:
        click.echo(click.style(f"Deleted {len(ids)} documents", fg="green"))
    else:
        click.echo(click.style("Some ids were not found", fg="yellow"))
        sys.exit(1)


@main.command()
def health() -> None:
    """Check health of the database and embedding service."""
    import structlog

    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        try:
            from oracle_vectorstore.storage.database import Database

            db = Database()
            await db.connect()
            results["oracle"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["oracle"] = False
            logger.error("Oracle health check failed", error=str(e))

        try:
            from oracle_vectorstore.embedding.service import HTTPEmbeddingModel

            async with HTTPEmbeddingModel() as model:
                results["embeddings"] = await model.dimensions() > 0
        except Exception as e:
            results["embeddings"] = False
            logger.error("Embedding health check failed", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))

        click.echo("-" * 40)

        if all(results.values()):
            click.echo(click.style("All services healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
