"""Pytest fixtures for oracle-vectorstore tests."""

import math
from types import SimpleNamespace
from unittest.mock import AsyncMock

import oracledb
import pytest
from prometheus_client import CollectorRegistry

from oracle_vectorstore.config.settings import Settings
from oracle_vectorstore.embedding.service import EmbeddingModel
from oracle_vectorstore.observability.metrics import MetricsCollector
from oracle_vectorstore.vectorstore.base import Document

EMBEDDING_DIM = 8


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        oracle_dsn="localhost:1521/freepdb1",
        oracle_user="vector_test",
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on its own registry, so tests never share counters."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def mock_database() -> AsyncMock:
    """Mock Database instance."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value=0)
    db.executemany = AsyncMock(side_effect=lambda query, rows, batch_size=None: [1] * len(rows))
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def sample_embedding() -> list[float]:
    """Sample normalized embedding."""
    value = 1.0 / math.sqrt(EMBEDDING_DIM)
    return [value] * EMBEDDING_DIM


@pytest.fixture
def mock_embedding_model(sample_embedding) -> AsyncMock:
    """Mock EmbeddingModel returning the same embedding for any text."""
    model = AsyncMock(spec=EmbeddingModel)
    model.embed = AsyncMock(return_value=sample_embedding)
    model.embed_document = AsyncMock(return_value=sample_embedding)
    model.dimensions = AsyncMock(return_value=EMBEDDING_DIM)
    return model


@pytest.fixture
def sample_documents() -> list[Document]:
    """Documents with country/year metadata."""
    return [
        Document(
            id="doc_bg_2020",
            content="The World is Big and Salvation Lurks Around the Corner",
            metadata={"country": "BG", "year": 2020},
        ),
        Document(
            id="doc_nl",
            content="The World is Big and Salvation Lurks Around the Corner",
            metadata={"country": "NL"},
        ),
        Document(
            id="doc_bg_2023",
            content="The World is Big and Salvation Lurks Around the Corner",
            metadata={"country": "BG", "year": 2023},
        ),
    ]


@pytest.fixture
def ora_error():
    """Factory for oracledb.DatabaseError carrying an ORA- error number."""

    def make(code: int, message: str = "") -> oracledb.DatabaseError:
        return oracledb.DatabaseError(
            SimpleNamespace(code=code, message=message or f"ORA-{code:05d}")
        )

    return make
