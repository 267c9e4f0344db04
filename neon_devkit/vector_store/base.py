"""Base document store interface.

Defines the read contract the hybrid ranker depends on, independent of the
backing implementation. Chunks (embeddings) belong to documents; every row
returned carries the chunk id, its owning document id, the chunk text and
the document title.

All methods are asynchronous.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Hashable, List, Sequence


@dataclass(frozen=True)
class VectorMatch:
    """A chunk returned by nearest-neighbour search.

    ``distance`` is cosine distance: 0 for identical direction, up to 2 for
    opposite vectors.
    """
    chunk_id: Hashable
    document_id: Hashable
    chunk: str
    title: str
    distance: float

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


@dataclass(frozen=True)
class TextMatch:
    """A chunk whose document matched a full-text query."""
    chunk_id: Hashable
    document_id: Hashable
    chunk: str
    title: str
    relevance: float


class DocumentStore(ABC):
    """Abstract base class for document/embedding stores.

    Implementations must return rows already ordered: ascending distance for
    ``nearest_by_vector`` and descending relevance for ``match_by_text``.
    They must also guarantee that deleting a document removes its chunks.
    """

    @abstractmethod
    async def nearest_by_vector(self, vector: Sequence[float], k: int) -> List[VectorMatch]:
        """Return up to ``k`` chunks ordered by ascending cosine distance."""

    @abstractmethod
    async def match_by_text(self, query: str, k: int) -> List[TextMatch]:
        """Return up to ``k`` matching chunks ordered by descending relevance.

        Non-matching chunks are excluded entirely.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""

    async def close(self) -> None:
        """Release any held resources."""


class VectorStoreError(Exception):
    """Base exception for store operations."""
    pass


class BackendUnavailable(VectorStoreError):
    """The storage backend failed: connection loss, timeout, or a malformed response."""
    pass


class DimensionMismatch(VectorStoreError, ValueError):
    """A vector does not have the dimension the corpus is configured for."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected vector dimension {expected}, got {actual}")
