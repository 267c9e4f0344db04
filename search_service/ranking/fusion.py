"""Weighted Reciprocal Rank Fusion for hybrid search.

Each ranking signal contributes ``weight / (RRF_K + rank)`` for the chunks it
returned; a chunk missing from one signal gets nothing from that signal's
term. The two candidate lists are merged by chunk id (a full outer join done
as a dict merge) and sorted by the combined score.

Ranks are 1-based positions in the candidate lists as the store returned
them, so callers must pass lists already in rank order.
"""

import math
from dataclasses import dataclass
from typing import Dict, Hashable, List, Optional, Sequence

import structlog

from neon_devkit.vector_store.base import TextMatch, VectorMatch
from .exceptions import InvalidWeights

logger = structlog.get_logger("search.fusion")

# Smoothing constant; fixed so scores stay comparable across deployments.
RRF_K = 60

WEIGHT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class RankedResult:
    """One fused hybrid-search row.

    ``semantic_score`` is ``1 - cosine distance`` and ``keyword_score`` the
    raw text relevance; either is 0 when that signal did not return the
    chunk, in which case the matching ``*_rank`` is ``None``.
    """
    chunk_id: Hashable
    document_id: Hashable
    chunk: str
    title: str
    semantic_score: float
    keyword_score: float
    combined_score: float
    semantic_rank: Optional[int] = None
    keyword_rank: Optional[int] = None


@dataclass(frozen=True)
class ScoredChunk:
    """A single-signal search row (semantic-only or keyword-only)."""
    chunk_id: Hashable
    document_id: Hashable
    chunk: str
    title: str
    score: float


def validate_weights(semantic_weight: float, keyword_weight: float) -> None:
    """Raise ``InvalidWeights`` unless both weights are non-negative and sum to 1."""
    for weight in (semantic_weight, keyword_weight):
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise InvalidWeights(semantic_weight, keyword_weight, "weights must be numbers")
        if not math.isfinite(weight):
            raise InvalidWeights(semantic_weight, keyword_weight, "weights must be finite")
        if weight < 0:
            raise InvalidWeights(semantic_weight, keyword_weight, "weights must be non-negative")

    if abs(semantic_weight + keyword_weight - 1.0) > WEIGHT_TOLERANCE:
        raise InvalidWeights(semantic_weight, keyword_weight, "weights must sum to 1")


def rrf_term(weight: float, rank: Optional[int]) -> float:
    """Weighted reciprocal-rank contribution; an absent rank contributes 0."""
    if rank is None:
        return 0.0
    return weight * (1.0 / (RRF_K + rank))


class ReciprocalRankFusion:
    """Weighted RRF over one semantic and one keyword candidate list."""

    def __init__(self, semantic_weight: float = 0.7, keyword_weight: float = 0.3):
        validate_weights(semantic_weight, keyword_weight)
        self.semantic_weight = semantic_weight
        self.keyword_weight = keyword_weight

    def fuse(
        self,
        semantic_results: Sequence[VectorMatch],
        keyword_results: Sequence[TextMatch],
        limit: Optional[int] = None
    ) -> List[RankedResult]:
        """Merge both lists by chunk id and return rows by combined score.

        Ties are broken by semantic score, then keyword score (both
        descending), then chunk id ascending.
        """
        semantic_map: Dict[Hashable, tuple] = {}
        for rank, match in enumerate(semantic_results, start=1):
            semantic_map.setdefault(match.chunk_id, (rank, match))

        keyword_map: Dict[Hashable, tuple] = {}
        for rank, match in enumerate(keyword_results, start=1):
            keyword_map.setdefault(match.chunk_id, (rank, match))

        fused_results = []
        for chunk_id in semantic_map.keys() | keyword_map.keys():
            semantic_rank, semantic_match = semantic_map.get(chunk_id, (None, None))
            keyword_rank, keyword_match = keyword_map.get(chunk_id, (None, None))
            source = semantic_match or keyword_match

            fused_results.append(RankedResult(
                chunk_id=chunk_id,
                document_id=source.document_id,
                chunk=source.chunk,
                title=source.title,
                semantic_score=semantic_match.similarity if semantic_match else 0.0,
                keyword_score=keyword_match.relevance if keyword_match else 0.0,
                combined_score=(
                    rrf_term(self.semantic_weight, semantic_rank)
                    + rrf_term(self.keyword_weight, keyword_rank)
                ),
                semantic_rank=semantic_rank,
                keyword_rank=keyword_rank,
            ))

        fused_results.sort(key=lambda r: (
            -r.combined_score,
            -r.semantic_score,
            -r.keyword_score,
            r.chunk_id,
        ))

        logger.debug(
            "RRF fusion completed",
            semantic_count=len(semantic_results),
            keyword_count=len(keyword_results),
            fused_count=len(fused_results),
            semantic_weight=self.semantic_weight,
            keyword_weight=self.keyword_weight
        )

        if limit is not None:
            return fused_results[:limit]
        return fused_results


def semantic_rows(matches: Sequence[VectorMatch]) -> List[ScoredChunk]:
    """Semantic-only rows, most similar first. Similarity is not clamped."""
    rows = [
        ScoredChunk(m.chunk_id, m.document_id, m.chunk, m.title, m.similarity)
        for m in matches
    ]
    rows.sort(key=lambda r: -r.score)
    return rows


def keyword_rows(matches: Sequence[TextMatch]) -> List[ScoredChunk]:
    """Keyword-only rows, most relevant first."""
    rows = [
        ScoredChunk(m.chunk_id, m.document_id, m.chunk, m.title, m.relevance)
        for m in matches
    ]
    rows.sort(key=lambda r: -r.score)
    return rows
