"""Pytest fixtures for embedding tests."""

import pytest

from oracle_vectorstore.embedding.config import EmbeddingConfig


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    """Configuration for testing."""
    return EmbeddingConfig(
        base_url="http://embeddings.test/v1/",
        model_name="test-embed",
        timeout_seconds=5.0,
    )


def embeddings_response(*vectors: list[float]) -> dict:
    """OpenAI-compatible /embeddings response body."""
    return {
        "object": "list",
        "model": "test-embed",
        "data": [
            {"object": "embedding", "index": i, "embedding": vector}
            for i, vector in enumerate(vectors)
        ],
    }


@pytest.fixture
def make_response():
    return embeddings_response
