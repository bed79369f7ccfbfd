"""
Embedding client configuration.

Provides Pydantic settings for the HTTP embedding model used to turn
document and query text into vectors.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """
    Configuration for the OpenAI-compatible embedding endpoint.

    Settings can be overridden via environment variables prefixed with EMBEDDING_.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Base URL of an OpenAI-compatible API (Ollama default)",
    )
    model_name: str = Field(
        default="nomic-embed-text",
        description="Embedding model name sent with each request",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token (not required for local servers)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Request timeout in seconds",
    )
    dimensions: int | None = Field(
        default=None,
        ge=1,
        description="Known embedding dimensions; probed from the model when unset",
    )
