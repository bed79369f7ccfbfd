"""
Oracle Database 23ai implementation of the VectorStore interface.

Stores each document as one row (id, text, embeddings VECTOR, metadata JSON)
and answers similarity queries with VECTOR_DISTANCE, optionally narrowed by
a JSON path metadata filter and an approximate vector index.
"""

import array
import json
import time
from typing import Any

import structlog

from oracle_vectorstore.embedding.service import EmbeddingModel
from oracle_vectorstore.filter.converter import OracleFilterExpressionConverter
from oracle_vectorstore.filter.expression import Expression, Group
from oracle_vectorstore.observability.metrics import MetricsCollector, get_metrics
from oracle_vectorstore.storage.database import Database, error_code
from oracle_vectorstore.vectorstore.base import (
    Document,
    RankedResult,
    SearchRequest,
    VectorStore,
)
from oracle_vectorstore.vectorstore.config import VectorStoreConfig
from oracle_vectorstore.vectorstore.defaults import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    DistanceType,
    IndexType,
    coerce_accuracy,
)
from oracle_vectorstore.vectorstore.errors import SearchExecutionError, WriteError
from oracle_vectorstore.vectorstore.schema import VectorSchemaManager

logger = structlog.get_logger(__name__)

DISTANCE_METADATA_KEY = "distance"


class OracleVectorStore(VectorStore):
    """
    Vector store backed by an Oracle Database 23ai table.

    Features:
    - Upsert by document id (MERGE), batched
    - Delete by id with exact-count reporting
    - Similarity search with COSINE, DOT, EUCLIDEAN or MANHATTAN distance
    - Metadata filtering through JSON_EXISTS and a JSON path predicate
    - Optional IVF / HNSW approximate index

    Usage:
        store = OracleVectorStore(database, embedding_model)
        await store.initialize()
        await store.add([Document("The World is Big", {"country": "NL"})])
        results = await store.similarity_search(
            SearchRequest("The World", top_k=5, filter_expression="country == 'NL'")
        )
    """

    def __init__(
        self,
        database: Database,
        embedding_model: EmbeddingModel,
        config: VectorStoreConfig | None = None,
        *,
        dimensions: int | None = None,
        distance_type: DistanceType | None = None,
        index_type: IndexType | None = None,
        accuracy: int | None = None,
        remove_existing_table: bool | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the store.

        Keyword arguments override the corresponding config values.

        Args:
            database: Connected Database instance
            embedding_model: Model used for documents and queries
            config: Optional configuration (defaults from VECTORSTORE_ env)
            dimensions: Embedding dimensions (<= 0 means detect)
            distance_type: Distance function for search and index
            index_type: Approximate index to create on initialize()
            accuracy: Index target accuracy; outside [0, 100] falls back to 90
            remove_existing_table: Drop the table before creating it
            metrics: Metrics collector (global collector if None)
        """
        self._db = database
        self._embedding = embedding_model
        self._config = config or VectorStoreConfig()
        self._metrics = metrics or get_metrics()
        self._converter = OracleFilterExpressionConverter()

        self._table = self._config.table_name
        self._dimensions = dimensions if dimensions is not None else self._config.dimensions
        self._distance_type = distance_type or self._config.distance_type
        self._index_type = index_type or self._config.index_type
        self._accuracy = coerce_accuracy(
            accuracy if accuracy is not None else self._config.accuracy
        )
        self._remove_existing_table = (
            remove_existing_table
            if remove_existing_table is not None
            else self._config.remove_existing_table
        )
        self._batch_size = self._config.batch_size

        self._schema = VectorSchemaManager(
            database=database,
            table_name=self._table,
            distance_type=self._distance_type,
            index_type=self._index_type,
            accuracy=self._accuracy,
            remove_existing_table=self._remove_existing_table,
            metrics=self._metrics,
        )

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def distance_type(self) -> DistanceType:
        return self._distance_type

    @property
    def index_type(self) -> IndexType:
        return self._index_type

    @property
    def accuracy(self) -> int:
        return self._accuracy

    # Initialization

    async def initialize(self) -> None:
        """
        Create the backing table and configured vector index.

        Must run once, before any other call, and not concurrently.

        Raises:
            SchemaError: If the schema could not be provisioned
        """
        dimensions = await self.embedding_dimensions()
        await self._schema.initialize(dimensions)

    async def embedding_dimensions(self) -> int:
        """
        Resolve the vector column dimensionality.

        Explicit configuration wins, then the embedding model's reported
        dimensions, then DEFAULT_EMBEDDING_DIMENSIONS.
        """
        if self._dimensions > 0:
            return self._dimensions

        try:
            dimensions = await self._embedding.dimensions()
            if dimensions > 0:
                return dimensions
        except Exception as e:
            logger.warning(
                "Failed to obtain the embedding dimensions from the embedding model, "
                "falling back to default",
                default=DEFAULT_EMBEDDING_DIMENSIONS,
                error=str(e),
            )
        return DEFAULT_EMBEDDING_DIMENSIONS

    # Writes

    def _upsert_sql(self) -> str:
        return f"""
            MERGE INTO {self._table}
            USING dual
            ON (id = :id)
            WHEN MATCHED THEN
                UPDATE SET text = :text, embeddings = :embeddings, metadata = JSON(:metadata)
            WHEN NOT MATCHED THEN
                INSERT (id, text, embeddings, metadata)
                VALUES (:id, :text, :embeddings, JSON(:metadata))
        """

    async def add(self, documents: list[Document]) -> None:
        """
        Embed and upsert documents.

        A row with the same id has its text, embedding and metadata replaced;
        otherwise a new row is inserted. Embedding errors propagate before
        anything is written.

        Raises:
            WriteError: If the database rejected the batch
        """
        if not documents:
            return

        rows = []
        for document in documents:
            embedding = await self._embedding.embed_document(document)
            rows.append(
                {
                    "id": document.id,
                    "text": document.content,
                    "embeddings": array.array("f", embedding),
                    "metadata": json.dumps(self._serialize_metadata(document.metadata)),
                }
            )

        try:
            await self._db.executemany(self._upsert_sql(), rows, batch_size=self._batch_size)
        except Exception as e:
            logger.error(
                "Failed to upsert documents",
                table=self._table,
                count=len(rows),
                error=str(e),
            )
            raise WriteError(
                f"Failed to upsert {len(rows)} documents: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e

        self._metrics.record_upsert(self._table, len(rows))
        logger.info("Upserted documents", table=self._table, count=len(rows))

    async def delete(self, ids: list[str]) -> bool:
        """
        Delete documents by id.

        Returns:
            True only if one row was deleted per id. An id with no stored
            row makes the result False even though nothing failed.

        Raises:
            WriteError: If the database rejected the batch
        """
        if not ids:
            return True

        sql = f"DELETE FROM {self._table} WHERE id = :id"
        try:
            counts = await self._db.executemany(
                sql,
                [{"id": doc_id} for doc_id in ids],
                batch_size=self._batch_size,
            )
        except Exception as e:
            logger.error(
                "Failed to delete documents",
                table=self._table,
                count=len(ids),
                error=str(e),
            )
            raise WriteError(
                f"Failed to delete {len(ids)} documents: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e

        deleted = sum(counts)
        self._metrics.record_delete(self._table, deleted)
        logger.debug(f"Deleted {deleted}/{len(ids)} records", table=self._table)
        return deleted == len(ids)

    # Search

    def native_filter(self, filter_expression: Expression | Group) -> str:
        """Compile a filter tree to an Oracle JSON path predicate."""
        return self._converter.convert_expression(filter_expression)

    def _search_sql(self, filter_expression: Expression | Group | None) -> str:
        conditions = []
        if filter_expression is not None:
            predicate = self.native_filter(filter_expression)
            # The path is a SQL string literal: double embedded quotes
            json_path = f"$?({predicate})".replace("'", "''")
            conditions.append(f"json_exists(metadata, '{json_path}')")

        metric = self._distance_type.value
        conditions.append(f"vector_distance(embeddings, :query_vector, {metric}) <= :cutoff")

        fetch = "FETCH APPROX FIRST" if self._index_type != IndexType.NONE else "FETCH FIRST"

        return f"""
            SELECT id, text, metadata,
                   vector_distance(embeddings, :query_vector, {metric}) AS distance
            FROM {self._table}
            WHERE {" AND ".join(conditions)}
            ORDER BY distance
            {fetch} :top_k ROWS ONLY
        """

    async def similarity_search(self, request: SearchRequest) -> list[RankedResult]:
        """
        Search for documents similar to the request query.

        The similarity threshold is converted to a distance cutoff of
        1 - similarity_threshold. That matches similarity only for metrics
        whose distance lies in [0, 1] (cosine over non-negative embeddings).

        Returns:
            Results sorted by ascending distance, at most request.top_k.
            An empty list means nothing matched.

        Raises:
            ValueError: If request.top_k is not positive
            EmbeddingError: If the query could not be embedded
            UnsupportedFilterOperatorError: If the filter cannot be compiled
            SearchExecutionError: If the database query failed
        """
        if request.top_k <= 0:
            raise ValueError(f"top_k must be greater than 0, got {request.top_k}")

        logger.debug("Requested query", query=request.query, distance=self._distance_type.value)

        query_embedding = await self._embedding.embed(request.query)
        cutoff = 1 - request.similarity_threshold
        sql = self._search_sql(request.filter_expression)  # type: ignore[arg-type]

        params = {
            "query_vector": array.array("f", query_embedding),
            "cutoff": cutoff,
            "top_k": request.top_k,
        }

        start = time.perf_counter()
        try:
            rows = await self._db.fetch(sql, params)
        except Exception as e:
            self._metrics.record_search(self._table, "error")
            logger.error(
                "Similarity search failed",
                table=self._table,
                error=str(e),
            )
            raise SearchExecutionError(
                f"Similarity search failed: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e

        results = [self._row_to_result(row) for row in rows]
        results.sort(key=lambda result: result.distance)
        results = results[: request.top_k]

        self._metrics.record_search(
            self._table,
            "success",
            latency=time.perf_counter() - start,
            results=len(results),
        )
        return results

    async def similarity_search_by_text(
        self,
        query: str,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
        filter_expression: Expression | Group | str | None = None,
    ) -> list[RankedResult]:
        """Search with config defaults for any parameter left unset."""
        request = SearchRequest(
            query=query,
            top_k=top_k if top_k is not None else self._config.default_top_k,
            similarity_threshold=(
                similarity_threshold
                if similarity_threshold is not None
                else self._config.default_similarity_threshold
            ),
            filter_expression=filter_expression,
        )
        return await self.similarity_search(request)

    # Mapping

    @staticmethod
    def _serialize_metadata(metadata: dict[str, Any]) -> dict[str, str]:
        """Metadata is stored as a JSON object of string values."""
        return {key: str(value) for key, value in metadata.items()}

    @staticmethod
    def _metadata_value(value: Any) -> str:
        """Decoded JSON values come back as strings; strings are kept as stored."""
        if isinstance(value, str):
            return value
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    def _row_to_result(self, row: dict[str, Any]) -> RankedResult:
        """Convert a database row to a RankedResult."""
        stored = row.get("metadata") or {}
        if isinstance(stored, (str, bytes)):
            stored = json.loads(stored)

        metadata: dict[str, Any] = {
            key: self._metadata_value(value) for key, value in stored.items()
        }

        distance = float(row["distance"])
        metadata[DISTANCE_METADATA_KEY] = distance

        document = Document(
            id=row["id"],
            content=row.get("text") or "",
            metadata=metadata,
        )
        return RankedResult(document=document, distance=distance)
