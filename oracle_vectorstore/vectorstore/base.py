"""
Abstract base class and data models for vector store implementations.

Defines the interface that all vector store backends must implement,
plus shared data structures for documents, search requests and results.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any

from oracle_vectorstore.filter.expression import Expression, Group
from oracle_vectorstore.filter.parser import parse_filter
from oracle_vectorstore.vectorstore.defaults import (
    DEFAULT_TOP_K,
    SIMILARITY_THRESHOLD_ACCEPT_ALL,
)


@dataclass
class Document:
    """
    A text document with metadata.

    Attributes:
        content: Document text (embedded and stored verbatim)
        metadata: Metadata map; stored as a JSON object with string values
        id: Upsert key; a random UUID when not supplied
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class SearchRequest:
    """
    Similarity search parameters.

    Attributes:
        query: Text to embed and search for
        top_k: Maximum number of results (must be > 0)
        similarity_threshold: Minimum similarity in [0.0, 1.0]; 0.0 accepts all
        filter_expression: Optional metadata filter, either a parsed tree or
            filter text ("country == 'BG' && year >= 2020"). Text is parsed
            when the request is created.
    """

    query: str
    top_k: int = DEFAULT_TOP_K
    similarity_threshold: float = SIMILARITY_THRESHOLD_ACCEPT_ALL
    filter_expression: Expression | Group | str | None = None

    def __post_init__(self) -> None:
        """Validate parameters and parse filter text."""
        if self.top_k <= 0:
            raise ValueError(f"top_k must be greater than 0, got {self.top_k}")

        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be between 0.0 and 1.0, "
                f"got {self.similarity_threshold}"
            )

        if isinstance(self.filter_expression, str):
            self.filter_expression = parse_filter(self.filter_expression)

    @property
    def has_filter(self) -> bool:
        return self.filter_expression is not None

    def with_filter(self, filter_expression: Expression | Group | str | None) -> "SearchRequest":
        """Return a copy of this request with a different filter."""
        return replace(self, filter_expression=filter_expression)


@dataclass
class RankedResult:
    """
    A document returned by a similarity search.

    Attributes:
        document: Matched document; its metadata also carries "distance"
        distance: Distance between the stored and query embeddings
            (lower is closer). Computed per query, never stored.
    """

    document: Document
    distance: float

    @property
    def id(self) -> str:
        return self.document.id


class VectorStore(ABC):
    """
    Abstract base class for vector store implementations.

    Defines the core interface for storing documents with their embeddings
    and searching them by similarity.

    All methods are async to support non-blocking I/O.
    """

    @abstractmethod
    async def add(self, documents: list[Document]) -> None:
        """
        Embed and upsert documents, keyed by document id.

        Raises:
            WriteError: If the batch could not be written
        """
        ...

    @abstractmethod
    async def delete(self, ids: list[str]) -> bool:
        """
        Delete documents by id.

        Returns:
            True if exactly len(ids) rows were deleted
        """
        ...

    @abstractmethod
    async def similarity_search(self, request: SearchRequest) -> list[RankedResult]:
        """
        Search for documents similar to the request query.

        Returns:
            Results sorted by ascending distance, at most request.top_k

        Raises:
            SearchExecutionError: If the search query failed
        """
        ...
