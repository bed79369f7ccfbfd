"""
Configuration for vector store operations.

Uses Pydantic BaseSettings for environment variable support.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oracle_vectorstore.vectorstore.defaults import (
    DEFAULT_ACCURACY,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DISTANCE_TYPE,
    DEFAULT_INDEX_TYPE,
    DEFAULT_TABLE_NAME,
    DEFAULT_TOP_K,
    INVALID_EMBEDDING_DIMENSION,
    SIMILARITY_THRESHOLD_ACCEPT_ALL,
    DistanceType,
    IndexType,
    coerce_accuracy,
)


class VectorStoreConfig(BaseSettings):
    """
    Configuration for OracleVectorStore.

    All settings can be overridden via environment variables with
    VECTORSTORE_ prefix (e.g., VECTORSTORE_INDEX_TYPE=HNSW).
    """

    model_config = SettingsConfigDict(
        env_prefix="VECTORSTORE_",
        validate_assignment=True,
    )

    # Schema
    table_name: str = Field(
        default=DEFAULT_TABLE_NAME,
        pattern=r"^[A-Za-z][A-Za-z0-9_$#]{0,127}$",
        description="Backing table name",
    )
    dimensions: int = Field(
        default=INVALID_EMBEDDING_DIMENSION,
        description="Embedding dimensions (-1 = detect from embedding model, else 1536)",
    )
    remove_existing_table: bool = Field(
        default=False,
        description="Drop the backing table before creating it",
    )

    # Index
    distance_type: DistanceType = Field(
        default=DEFAULT_DISTANCE_TYPE,
        description="Distance function for search and index",
    )
    index_type: IndexType = Field(
        default=DEFAULT_INDEX_TYPE,
        description="Approximate search index (NONE, IVF, HNSW)",
    )
    accuracy: int = Field(
        default=DEFAULT_ACCURACY,
        description="Index target accuracy percentage (0-100, invalid -> 90)",
    )

    # Batch processing
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        ge=1,
        le=10_000,
        description="Rows per upsert/delete batch",
    )

    # Search defaults
    default_top_k: int = Field(
        default=DEFAULT_TOP_K,
        ge=1,
        description="Default number of results to return",
    )
    default_similarity_threshold: float = Field(
        default=SIMILARITY_THRESHOLD_ACCEPT_ALL,
        ge=0.0,
        le=1.0,
        description="Default minimum similarity threshold",
    )

    @field_validator("accuracy", mode="before")
    @classmethod
    def _coerce_accuracy(cls, value: object) -> int:
        """Out-of-range or non-integer accuracy falls back to the default."""
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                return coerce_accuracy(None)
        return coerce_accuracy(value)  # type: ignore[arg-type]
