"""
Embedding models for the vector store.

This module provides:
- EmbeddingModel: Interface consumed by the vector store
- HTTPEmbeddingModel: OpenAI-compatible HTTP implementation
- EmbeddingConfig: Configuration settings for the HTTP model
- EmbeddingError: Raised on embedding failures
"""

from oracle_vectorstore.embedding.config import EmbeddingConfig
from oracle_vectorstore.embedding.service import (
    EmbeddingError,
    EmbeddingModel,
    HTTPEmbeddingModel,
)

__all__ = [
    "EmbeddingConfig",
    "EmbeddingError",
    "EmbeddingModel",
    "HTTPEmbeddingModel",
]
