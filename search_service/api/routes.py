"""API routes for the search service."""

import time
from dataclasses import asdict
from typing import Any, Awaitable, Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
import structlog

from neon_devkit.common.metrics import MetricsCollector
from ..hybrid.ranker import (
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_LIMIT,
    DEFAULT_SEMANTIC_WEIGHT,
    HybridRanker,
)
from ..ranking.exceptions import BackendUnavailable

logger = structlog.get_logger("search_service.api")

router = APIRouter()


class HybridSearchRequest(BaseModel):
    """Request model for hybrid search."""
    query: str = Field(..., description="Raw search phrase")
    query_embedding: List[float] = Field(..., description="Embedding of the query")
    limit: int = Field(DEFAULT_LIMIT, description="Maximum number of results")
    semantic_weight: float = Field(DEFAULT_SEMANTIC_WEIGHT, description="Weight of the semantic ranking")
    keyword_weight: float = Field(DEFAULT_KEYWORD_WEIGHT, description="Weight of the keyword ranking")


class SemanticSearchRequest(BaseModel):
    """Request model for semantic-only search."""
    query_embedding: List[float] = Field(..., description="Embedding of the query")
    limit: int = Field(DEFAULT_LIMIT, description="Maximum number of results")


class KeywordSearchRequest(BaseModel):
    """Request model for keyword-only search."""
    query: str = Field(..., description="Raw search phrase")
    limit: int = Field(DEFAULT_LIMIT, description="Maximum number of results")


class HybridResult(BaseModel):
    chunk_id: Any
    document_id: Any
    chunk: str
    title: str
    semantic_score: float
    keyword_score: float
    combined_score: float
    semantic_rank: Optional[int] = None
    keyword_rank: Optional[int] = None


class ScoredResult(BaseModel):
    chunk_id: Any
    document_id: Any
    chunk: str
    title: str
    score: float


class HybridSearchResponse(BaseModel):
    results: List[HybridResult]
    total: int
    latency_ms: float


class ScoredSearchResponse(BaseModel):
    results: List[ScoredResult]
    total: int
    latency_ms: float


def get_ranker(request: Request) -> HybridRanker:
    """Get the ranker from application state."""
    return request.app.state.ranker


def get_metrics(request: Request) -> Optional[MetricsCollector]:
    """Get the metrics collector from application state, if any."""
    return getattr(request.app.state, "metrics_collector", None)


async def _run_search(
    mode: str,
    search: Callable[[], Awaitable[list]],
    metrics_collector: Optional[MetricsCollector]
):
    """Run a search, map domain errors to HTTP status codes, record metrics."""
    start_time = time.time()
    outcome = "ok"
    results: list = []

    try:
        results = await search()
        return results, (time.time() - start_time) * 1000
    except ValueError as e:
        outcome = "invalid"
        logger.warning("Search rejected", mode=mode, error=str(e))
        raise HTTPException(status_code=422, detail=str(e))
    except BackendUnavailable as e:
        outcome = "unavailable"
        logger.error("Search backend unavailable", mode=mode, error=str(e))
        raise HTTPException(status_code=503, detail=f"Search backend unavailable: {e}")
    except Exception as e:
        outcome = "error"
        logger.error("Search failed", mode=mode, error=str(e))
        raise
    finally:
        if metrics_collector is not None:
            metrics_collector.record_search(
                mode=mode,
                duration=time.time() - start_time,
                outcome=outcome,
                result_count=len(results) if outcome == "ok" else None
            )


@router.post("/search/hybrid", response_model=HybridSearchResponse)
async def hybrid_search(
    request: HybridSearchRequest,
    ranker: HybridRanker = Depends(get_ranker),
    metrics_collector: Optional[MetricsCollector] = Depends(get_metrics)
):
    """Semantic and keyword search fused with weighted RRF."""
    results, latency_ms = await _run_search(
        "hybrid",
        lambda: ranker.hybrid_search(
            query=request.query,
            query_embedding=request.query_embedding,
            limit=request.limit,
            semantic_weight=request.semantic_weight,
            keyword_weight=request.keyword_weight
        ),
        metrics_collector
    )

    return HybridSearchResponse(
        results=[HybridResult(**asdict(r)) for r in results],
        total=len(results),
        latency_ms=latency_ms
    )


@router.post("/search/semantic", response_model=ScoredSearchResponse)
async def semantic_search(
    request: SemanticSearchRequest,
    ranker: HybridRanker = Depends(get_ranker),
    metrics_collector: Optional[MetricsCollector] = Depends(get_metrics)
):
    """Vector similarity search only."""
    results, latency_ms = await _run_search(
        "semantic",
        lambda: ranker.semantic_search(request.query_embedding, limit=request.limit),
        metrics_collector
    )

    return ScoredSearchResponse(
        results=[ScoredResult(**asdict(r)) for r in results],
        total=len(results),
        latency_ms=latency_ms
    )


@router.post("/search/keyword", response_model=ScoredSearchResponse)
async def keyword_search(
    request: KeywordSearchRequest,
    ranker: HybridRanker = Depends(get_ranker),
    metrics_collector: Optional[MetricsCollector] = Depends(get_metrics)
):
    """Full-text search only."""
    results, latency_ms = await _run_search(
        "keyword",
        lambda: ranker.keyword_search(request.query, limit=request.limit),
        metrics_collector
    )

    return ScoredSearchResponse(
        results=[ScoredResult(**asdict(r)) for r in results],
        total=len(results),
        latency_ms=latency_ms
    )
