"""
Vector store backed by Oracle Database 23ai.

Main components:
- VectorStore: Abstract base class defining the vector store interface
- OracleVectorStore: Oracle implementation (VECTOR column, JSON metadata)
- VectorSchemaManager: Table and vector index provisioning
- Document, SearchRequest, RankedResult: Shared data classes
- VectorStoreConfig: Environment-driven settings (VECTORSTORE_ prefix)
"""

from oracle_vectorstore.vectorstore.base import (
    Document,
    RankedResult,
    SearchRequest,
    VectorStore,
)
from oracle_vectorstore.vectorstore.config import VectorStoreConfig
from oracle_vectorstore.vectorstore.defaults import DistanceType, IndexType
from oracle_vectorstore.vectorstore.errors import (
    SchemaError,
    SearchExecutionError,
    VectorStoreError,
    WriteError,
)
from oracle_vectorstore.vectorstore.oracle_store import OracleVectorStore
from oracle_vectorstore.vectorstore.schema import VectorSchemaManager

__all__ = [
    "Document",
    "DistanceType",
    "IndexType",
    "OracleVectorStore",
    "RankedResult",
    "SchemaError",
    "SearchExecutionError",
    "SearchRequest",
    "VectorSchemaManager",
    "VectorStore",
    "VectorStoreConfig",
    "VectorStoreError",
    "WriteError",
]
