"""Errors raised by the search layer.

Caller-input errors derive from ``SearchError`` (a ``ValueError``) and are
never retried. Storage failures arrive as ``BackendUnavailable`` from the
store layer and are re-exported here so callers need a single import.
"""

from neon_devkit.vector_store.base import BackendUnavailable, DimensionMismatch


class SearchError(ValueError):
    """Base exception for invalid search input."""
    pass


class InvalidWeights(SearchError):
    """Semantic and keyword weights are negative or do not sum to 1."""

    def __init__(self, semantic_weight: float, keyword_weight: float, reason: str):
        self.semantic_weight = semantic_weight
        self.keyword_weight = keyword_weight
        super().__init__(
            f"Invalid weights semantic={semantic_weight} keyword={keyword_weight}: {reason}"
        )


class EmptyQuery(SearchError):
    """Keyword search was requested with an empty or whitespace-only query."""
    pass


class InvalidLimit(SearchError):
    """``limit`` is not a positive integer."""
    pass


__all__ = [
    "BackendUnavailable",
    "DimensionMismatch",
    "EmptyQuery",
    "InvalidLimit",
    "InvalidWeights",
    "SearchError",
]
