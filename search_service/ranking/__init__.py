"""Ranking utilities: weighted RRF fusion, result types, and search errors."""

from .exceptions import (
    BackendUnavailable,
    DimensionMismatch,
    EmptyQuery,
    InvalidLimit,
    InvalidWeights,
    SearchError,
)
from .fusion import RRF_K, RankedResult, ReciprocalRankFusion, ScoredChunk

__all__ = [
    "BackendUnavailable",
    "DimensionMismatch",
    "EmptyQuery",
    "InvalidLimit",
    "InvalidWeights",
    "RRF_K",
    "RankedResult",
    "ReciprocalRankFusion",
    "ScoredChunk",
    "SearchError",
]
