"""Pytest fixtures for vectorstore tests."""

import json
import math
import re

import pytest

from oracle_vectorstore.embedding.service import EmbeddingModel
from oracle_vectorstore.vectorstore.config import VectorStoreConfig
from oracle_vectorstore.vectorstore.defaults import DistanceType, IndexType
from oracle_vectorstore.vectorstore.oracle_store import OracleVectorStore


@pytest.fixture
def vector_store_config() -> VectorStoreConfig:
    """Default vector store configuration for tests."""
    return VectorStoreConfig(
        table_name="test_vectors",
        dimensions=8,
        distance_type=DistanceType.COSINE,
        index_type=IndexType.NONE,
        batch_size=2,
    )


@pytest.fixture
def store(mock_database, mock_embedding_model, vector_store_config, metrics) -> OracleVectorStore:
    """OracleVectorStore over mocked database and embedding model."""
    return OracleVectorStore(
        database=mock_database,
        embedding_model=mock_embedding_model,
        config=vector_store_config,
        metrics=metrics,
    )


def make_row(doc_id: str, distance: float, metadata=None, text: str = "text") -> dict:
    """A row as returned by Database.fetch for the search query."""
    return {
        "id": doc_id,
        "text": text,
        "metadata": metadata if metadata is not None else {},
        "distance": distance,
    }


@pytest.fixture
def search_row():
    """Factory for search result rows."""
    return make_row


class KeywordEmbeddingModel(EmbeddingModel):
    """Bag-of-words embedding: one dimension per distinct word, L2-normalized."""

    def __init__(self, dim: int = 64):
        self._dim = dim
        self._vocabulary: dict[str, int] = {}

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dim
        for word in text.lower().split():
            index = self._vocabulary.setdefault(word, len(self._vocabulary))
            vector[index] += 1.0
        norm = sum(x * x for x in vector) ** 0.5 or 1.0
        return [x / norm for x in vector]


PREDICATE = re.compile(r"@\.(\w+) (==|!=) '([^']*)'")


def _matches(predicate: str, metadata: dict) -> bool:
    """Evaluate `@.key == 'value'` terms joined by && and || (one outer group at most)."""
    if predicate.startswith("(") and predicate.endswith(")"):
        predicate = predicate[1:-1]
    assert "(" not in predicate, f"grouped predicates are not supported: {predicate}"
    for alternative in predicate.split(" || "):
        terms = [PREDICATE.fullmatch(term.strip()) for term in alternative.split(" && ")]
        assert all(terms), f"unsupported predicate: {predicate}"
        if all(
            key in metadata and (metadata[key] == value) == (op == "==")
            for key, op, value in (term.groups() for term in terms)
        ):
            return True
    return False


class InMemoryDatabase:
    """
    Database stand-in holding one vector table in a dict.

    Understands the statements OracleVectorStore issues: the MERGE upsert,
    DELETE by id and the cosine similarity query with an optional
    json_exists filter. DDL is accepted and recorded.
    """

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.statements: list[str] = []

    async def execute(self, query, params=None) -> int:
        self.statements.append(query)
        return 0

    async def executemany(self, query, rows, batch_size=None) -> list[int]:
        statement = " ".join(query.split())
        if statement.startswith("MERGE INTO"):
            for row in rows:
                self.rows[row["id"]] = {
                    "id": row["id"],
                    "text": row["text"],
                    "embeddings": list(row["embeddings"]),
                    "metadata": json.loads(row["metadata"]),
                }
            return [1] * len(rows)
        if statement.startswith("DELETE FROM"):
            return [1 if self.rows.pop(row["id"], None) else 0 for row in rows]
        raise AssertionError(f"unexpected statement: {statement}")

    async def fetch(self, query, params=None) -> list[dict]:
        assert "COSINE" in query, "only cosine distance is supported"
        match = re.search(r"json_exists\(metadata, '\$\?\((.*?)\)'\)", query)
        predicate = match.group(1).replace("''", "'") if match else None

        results = []
        for row in self.rows.values():
            if predicate and not _matches(predicate, row["metadata"]):
                continue
            distance = _cosine_distance(row["embeddings"], list(params["query_vector"]))
            if distance <= params["cutoff"]:
                results.append(
                    {
                        "id": row["id"],
                        "text": row["text"],
                        "metadata": dict(row["metadata"]),
                        "distance": distance,
                    }
                )
        results.sort(key=lambda r: r["distance"])
        return results[: params["top_k"]]

    async def fetchval(self, query, params=None):
        return None


def _cosine_distance(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return 1.0 - dot / norm if norm else 1.0


@pytest.fixture
def memory_database() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def keyword_embedding_model() -> KeywordEmbeddingModel:
    return KeywordEmbeddingModel()


@pytest.fixture
def memory_store(memory_database, keyword_embedding_model, metrics) -> OracleVectorStore:
    """OracleVectorStore over an in-memory table with keyword embeddings."""
    return OracleVectorStore(
        database=memory_database,
        embedding_model=keyword_embedding_model,
        config=VectorStoreConfig(table_name="memory_vectors", dimensions=64, batch_size=2),
        metrics=metrics,
    )
