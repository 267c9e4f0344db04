"""Hybrid ranker combining semantic and keyword retrieval.

Semantic candidates come from nearest-neighbour search over chunk
embeddings, keyword candidates from full-text matching over document text.
Both are over-fetched to ``2 * limit``, retrieved concurrently, and merged
with weighted Reciprocal Rank Fusion.

The ranker holds no mutable state and never retries: input errors raise
immediately and storage failures surface as ``BackendUnavailable``.
"""

import asyncio
import time
from typing import Any, Awaitable, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from neon_devkit.vector_store.base import (
    BackendUnavailable,
    DimensionMismatch,
    DocumentStore,
    TextMatch,
    VectorMatch,
    VectorStoreError,
)
from ..ranking.exceptions import EmptyQuery, InvalidLimit, SearchError
from ..ranking.fusion import (
    RankedResult,
    ReciprocalRankFusion,
    ScoredChunk,
    keyword_rows,
    semantic_rows,
    validate_weights,
)

logger = structlog.get_logger("search.hybrid_ranker")

DEFAULT_LIMIT = 10
DEFAULT_SEMANTIC_WEIGHT = 0.7
DEFAULT_KEYWORD_WEIGHT = 0.3
CANDIDATE_MULTIPLIER = 2


class HybridRanker:
    """Runs hybrid, semantic-only and keyword-only searches against a store.

    Parameters
    - store: The ``DocumentStore`` providing both retrieval primitives
    - vector_dimension: Dimension every query embedding must have
    - timeout: Optional seconds allowed for the store calls of one search;
      exceeding it abandons them and raises ``BackendUnavailable``
    """

    def __init__(
        self,
        store: DocumentStore,
        vector_dimension: int,
        timeout: Optional[float] = None
    ):
        self.store = store
        self.vector_dimension = vector_dimension
        self.timeout = timeout

    async def hybrid_search(
        self,
        query: str,
        query_embedding: Sequence[float],
        limit: int = DEFAULT_LIMIT,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT
    ) -> List[RankedResult]:
        """Fuse semantic and keyword rankings into at most ``limit`` results."""
        validate_weights(semantic_weight, keyword_weight)
        self._validate_limit(limit)
        self._validate_query(query)
        embedding = self._validate_embedding(query_embedding)

        start_time = time.perf_counter()
        candidate_count = limit * CANDIDATE_MULTIPLIER

        semantic_candidates, keyword_candidates = await self._with_timeout(
            self._gather_candidates(embedding, query, candidate_count),
            operation="hybrid_search"
        )

        fusion = ReciprocalRankFusion(semantic_weight, keyword_weight)
        results = fusion.fuse(semantic_candidates, keyword_candidates, limit=limit)

        logger.info(
            "Hybrid search completed",
            query=query[:50],
            limit=limit,
            semantic_candidates=len(semantic_candidates),
            keyword_candidates=len(keyword_candidates),
            results_count=len(results),
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2)
        )
        return results

    async def semantic_search(
        self,
        query_embedding: Sequence[float],
        limit: int = DEFAULT_LIMIT
    ) -> List[ScoredChunk]:
        """Nearest chunks by cosine similarity, most similar first."""
        self._validate_limit(limit)
        embedding = self._validate_embedding(query_embedding)

        matches = await self._with_timeout(
            self._call_store(self.store.nearest_by_vector(embedding, limit), "nearest_by_vector"),
            operation="semantic_search"
        )
        results = semantic_rows(matches)[:limit]

        logger.info("Semantic search completed", limit=limit, results_count=len(results))
        return results

    async def keyword_search(self, query: str, limit: int = DEFAULT_LIMIT) -> List[ScoredChunk]:
        """Chunks of documents matching ``query``, most relevant first."""
        self._validate_limit(limit)
        self._validate_query(query)

        matches = await self._with_timeout(
            self._call_store(self.store.match_by_text(query, limit), "match_by_text"),
            operation="keyword_search"
        )
        results = keyword_rows(matches)[:limit]

        logger.info("Keyword search completed", query=query[:50], limit=limit, results_count=len(results))
        return results

    async def _gather_candidates(
        self,
        embedding: List[float],
        query: str,
        k: int
    ) -> Tuple[List[VectorMatch], List[TextMatch]]:
        """Run both retrievals as concurrent tasks; if one fails, cancel the other."""
        tasks = [
            asyncio.ensure_future(
                self._call_store(self.store.nearest_by_vector(embedding, k), "nearest_by_vector")
            ),
            asyncio.ensure_future(
                self._call_store(self.store.match_by_text(query, k), "match_by_text")
            ),
        ]
        try:
            semantic_candidates, keyword_candidates = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return semantic_candidates, keyword_candidates

    async def _call_store(self, call: Awaitable[Any], operation: str) -> Any:
        """Await a store call; anything other than a store error becomes ``BackendUnavailable``."""
        try:
            return await call
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error("Store call failed", operation=operation, error=str(e))
            raise BackendUnavailable(f"{operation} failed: {e}") from e

    async def _with_timeout(self, call: Awaitable[Any], operation: str) -> Any:
        if self.timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Search timed out", operation=operation, timeout=self.timeout)
            raise BackendUnavailable(f"{operation} timed out after {self.timeout}s") from e

    def _validate_embedding(self, query_embedding: Sequence[float]) -> List[float]:
        try:
            array = np.asarray(query_embedding, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise SearchError(f"Query embedding must be numeric: {e}") from e

        if array.ndim != 1:
            raise SearchError("Query embedding must be one-dimensional")
        if array.shape[0] != self.vector_dimension:
            raise DimensionMismatch(self.vector_dimension, array.shape[0])
        if not np.all(np.isfinite(array)):
            raise SearchError("Query embedding must contain only finite values")
        return array.tolist()

    @staticmethod
    def _validate_limit(limit: int) -> None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidLimit(f"limit must be a positive integer, got {limit!r}")

    @staticmethod
    def _validate_query(query: str) -> None:
        if not isinstance(query, str) or not query.strip():
            raise EmptyQuery("Query must contain non-whitespace text for keyword search")
