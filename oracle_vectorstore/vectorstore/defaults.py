"""
Index/distance options and default values for the Oracle vector store.

Defaults are module constants; nothing here is mutated at runtime.
"""

from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class IndexType(str, Enum):
    """Approximate search index requested from the database."""

    # Exact search, no vector index
    NONE = "NONE"
    # Inverted File Flat: a Neighbor Partition vector index. Narrows the
    # search area to the closest partitions (clusters).
    IVF = "IVF"
    # Hierarchical Navigable Small World: an In-Memory Neighbor Graph
    # vector index.
    HNSW = "HNSW"


class DistanceType(str, Enum):
    """Distance functions understood by VECTOR_DISTANCE and CREATE VECTOR INDEX."""

    # 1 - cosine similarity, in [0, 2] (in [0, 1] for non-negative embeddings)
    COSINE = "COSINE"
    # Negated inner product
    DOT = "DOT"
    # L2 distance
    EUCLIDEAN = "EUCLIDEAN"
    # L1 distance
    MANHATTAN = "MANHATTAN"


DEFAULT_ACCURACY = 90
MIN_ACCURACY = 0
MAX_ACCURACY = 100

DEFAULT_INDEX_TYPE = IndexType.NONE
DEFAULT_DISTANCE_TYPE = DistanceType.COSINE

# Dimensionality of OpenAI text-embedding-ada-002 / text-embedding-3-small
DEFAULT_EMBEDDING_DIMENSIONS = 1536
INVALID_EMBEDDING_DIMENSION = -1

DEFAULT_TABLE_NAME = "vector_store"
DEFAULT_BATCH_SIZE = 100
DEFAULT_TOP_K = 4
SIMILARITY_THRESHOLD_ACCEPT_ALL = 0.0


def coerce_accuracy(value: int | None) -> int:
    """
    Return `value` if it is a valid target accuracy, else DEFAULT_ACCURACY.

    Valid accuracies are integers in [0, 100]. Anything else is replaced by
    the default and a warning is logged.
    """
    if (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_ACCURACY <= value <= MAX_ACCURACY
    ):
        return value

    logger.warning(
        "Invalid accuracy value provided, falling back to default value",
        accuracy=value,
        default=DEFAULT_ACCURACY,
    )
    return DEFAULT_ACCURACY
