"""
Embedding model interface and an HTTP implementation.

The vector store only depends on the EmbeddingModel interface:
embed(text), embed_document(document) and dimensions().
HTTPEmbeddingModel talks to any OpenAI-compatible /embeddings endpoint
(OpenAI, Ollama, vLLM, text-embeddings-inference).
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from oracle_vectorstore.embedding.config import EmbeddingConfig

if TYPE_CHECKING:
    from oracle_vectorstore.vectorstore.base import Document

logger = structlog.get_logger(__name__)

# Text embedded once to discover the model's dimensionality
DIMENSIONS_PROBE_TEXT = "Test String"


class EmbeddingError(Exception):
    """Raised when the embedding service fails or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmbeddingModel(ABC):
    """Produces embedding vectors for text."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    async def embed_document(self, document: "Document") -> list[float]:
        """Embed a document's content."""
        return await self.embed(document.content)

    async def dimensions(self) -> int:
        """
        Dimensionality of the produced vectors.

        The default implementation embeds a probe text and measures it.
        """
        return len(await self.embed(DIMENSIONS_PROBE_TEXT))


class HTTPEmbeddingModel(EmbeddingModel):
    """
    Embedding model backed by an OpenAI-compatible HTTP API.

    Usage:
        async with HTTPEmbeddingModel() as model:
            vector = await model.embed("The World is Big")
    """

    def __init__(
        self,
        config: EmbeddingConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the HTTP embedding model.

        Args:
            config: Endpoint configuration (uses defaults if None)
            client: Existing client (created lazily if None)
        """
        self._config = config or EmbeddingConfig()
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = self._config.dimensions

    async def __aenter__(self) -> "HTTPEmbeddingModel":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {}
            if self._config.api_key is not None:
                headers["Authorization"] = f"Bearer {self._config.api_key.get_secret_value()}"
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers=headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._config.model_name

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            EmbeddingError: On HTTP errors or a malformed response
        """
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed several texts in one request.

        Returns:
            One vector per input text, in input order

        Raises:
            EmbeddingError: On HTTP errors or a malformed response
        """
        if not texts:
            return []

        url = f"{self._config.base_url.rstrip('/')}/embeddings"
        payload = {"input": texts, "model": self._config.model_name}

        try:
            response = await self._get_client().post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Embedding request failed",
                url=url,
                status=e.response.status_code,
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error("Embedding request error", url=url, error=str(e))
            raise EmbeddingError(f"Failed to connect to embedding service: {e}") from e

        try:
            data = sorted(response.json()["data"], key=lambda item: item.get("index", 0))
            vectors = [[float(x) for x in item["embedding"]] for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Invalid response from embedding service: {e}") from e

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got {len(vectors)}"
            )

        if self._dimensions is None and vectors and vectors[0]:
            self._dimensions = len(vectors[0])

        return vectors

    async def dimensions(self) -> int:
        """Configured dimensions, or probe the model once and cache the result."""
        if self._dimensions is None:
            self._dimensions = len(await self.embed(DIMENSIONS_PROBE_TEXT))
        return self._dimensions
