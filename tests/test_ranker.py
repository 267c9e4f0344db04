"""Tests for the hybrid ranker."""

import pytest

from search_service.hybrid.ranker import HybridRanker
from search_service.ranking.exceptions import (
    BackendUnavailable,
    DimensionMismatch,
    EmptyQuery,
    InvalidLimit,
    InvalidWeights,
)
from tests.conftest import DIMENSION
from tests.fakes import FakeDocumentStore, text_match, vector_match


@pytest.mark.asyncio
async def test_hybrid_search_scenario(abc_ranker, query_embedding):
    results = await abc_ranker.hybrid_search("energy prices", query_embedding, limit=3)

    assert [r.chunk_id for r in results] == ["B", "C", "A"]
    assert [round(r.combined_score, 6) for r in results] == [0.016208, 0.015950, 0.011475]
    assert results[2].keyword_score == 0.0


@pytest.mark.asyncio
async def test_hybrid_search_overfetches_twice_the_limit(abc_ranker, abc_store, query_embedding):
    await abc_ranker.hybrid_search("energy", query_embedding, limit=4)

    assert abc_store.vector_calls[0][1] == 8
    assert abc_store.text_calls == [("energy", 8)]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 2, 3, 10])
async def test_hybrid_search_respects_limit(abc_ranker, query_embedding, limit):
    results = await abc_ranker.hybrid_search("energy", query_embedding, limit=limit)

    assert len(results) <= limit
    scores = [r.combined_score for r in results]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 10, 0, -5])
async def test_weights_not_summing_to_one_always_fail(abc_ranker, abc_store, query_embedding, limit):
    with pytest.raises(InvalidWeights):
        await abc_ranker.hybrid_search(
            "energy", query_embedding, limit=limit, semantic_weight=0.7, keyword_weight=0.4
        )
    assert abc_store.vector_calls == []
    assert abc_store.text_calls == []


@pytest.mark.asyncio
async def test_dimension_mismatch(abc_ranker, abc_store):
    with pytest.raises(DimensionMismatch) as exc_info:
        await abc_ranker.hybrid_search("energy", [0.1] * 512)

    assert exc_info.value.expected == DIMENSION
    assert exc_info.value.actual == 512
    assert abc_store.vector_calls == []


@pytest.mark.asyncio
async def test_semantic_search_dimension_mismatch(abc_ranker):
    with pytest.raises(DimensionMismatch):
        await abc_ranker.semantic_search([0.1] * 512)


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
async def test_empty_query(abc_ranker, query_embedding, query):
    with pytest.raises(EmptyQuery):
        await abc_ranker.hybrid_search(query, query_embedding)
    with pytest.raises(EmptyQuery):
        await abc_ranker.keyword_search(query)


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, -1, 2.5, True, "10"])
async def test_invalid_limit(abc_ranker, query_embedding, limit):
    with pytest.raises(InvalidLimit):
        await abc_ranker.hybrid_search("energy", query_embedding, limit=limit)


@pytest.mark.asyncio
async def test_non_numeric_embedding_is_rejected(abc_ranker):
    with pytest.raises(ValueError):
        await abc_ranker.semantic_search(["a"] * DIMENSION)


@pytest.mark.asyncio
async def test_retrievals_run_concurrently(query_embedding):
    store = FakeDocumentStore(
        vector_matches=[vector_match(1, 0.1)],
        text_matches=[text_match(1, 0.5)],
        require_concurrency=True,
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    results = await ranker.hybrid_search("energy", query_embedding)

    assert [r.chunk_id for r in results] == [1]


@pytest.mark.asyncio
async def test_store_failure_is_reported_as_backend_unavailable(query_embedding):
    store = FakeDocumentStore(
        vector_matches=[vector_match(1, 0.1)],
        text_error=ConnectionResetError("connection lost"),
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    with pytest.raises(BackendUnavailable) as exc_info:
        await ranker.hybrid_search("energy", query_embedding)

    assert isinstance(exc_info.value.__cause__, ConnectionResetError)


@pytest.mark.asyncio
async def test_backend_unavailable_passes_through_unchanged(query_embedding):
    error = BackendUnavailable("pool exhausted")
    store = FakeDocumentStore(vector_error=error)
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    with pytest.raises(BackendUnavailable) as exc_info:
        await ranker.hybrid_search("energy", query_embedding)

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_failure_cancels_the_other_retrieval(query_embedding):
    store = FakeDocumentStore(
        vector_delay=10.0,
        text_error=TimeoutError("statement timeout"),
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    with pytest.raises(BackendUnavailable):
        await ranker.hybrid_search("energy", query_embedding)

    assert store.cancelled == ["vector"]


@pytest.mark.asyncio
async def test_timeout_abandons_both_retrievals(query_embedding):
    store = FakeDocumentStore(vector_delay=5.0, text_delay=5.0)
    ranker = HybridRanker(store, vector_dimension=DIMENSION, timeout=0.05)

    with pytest.raises(BackendUnavailable, match="timed out"):
        await ranker.hybrid_search("energy", query_embedding)

    assert sorted(store.cancelled) == ["text", "vector"]


@pytest.mark.asyncio
async def test_semantic_search_returns_similarity_order(query_embedding):
    store = FakeDocumentStore(
        vector_matches=[vector_match(i, 0.1 * i) for i in range(1, 6)],
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    results = await ranker.semantic_search(query_embedding, limit=3)

    assert [r.chunk_id for r in results] == [1, 2, 3]
    assert [round(r.score, 6) for r in results] == [0.9, 0.8, 0.7]
    assert store.vector_calls[0][1] == 3
    assert store.text_calls == []


@pytest.mark.asyncio
async def test_keyword_search_returns_relevance_order():
    store = FakeDocumentStore(
        text_matches=[text_match("x", 0.9), text_match("y", 0.4), text_match("z", 0.1)],
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    results = await ranker.keyword_search("solar", limit=2)

    assert [(r.chunk_id, r.score) for r in results] == [("x", 0.9), ("y", 0.4)]
    assert store.text_calls == [("solar", 2)]
    assert store.vector_calls == []


@pytest.mark.asyncio
async def test_keyword_search_with_no_matches_is_empty():
    ranker = HybridRanker(FakeDocumentStore(), vector_dimension=DIMENSION)

    assert await ranker.keyword_search("nothing matches") == []


@pytest.mark.asyncio
async def test_semantic_only_weighting_agrees_with_semantic_search(query_embedding):
    store = FakeDocumentStore(
        vector_matches=[vector_match(i, 0.05 * i) for i in range(8)],
        text_matches=[text_match(7, 0.9), text_match(3, 0.5)],
    )
    ranker = HybridRanker(store, vector_dimension=DIMENSION)

    hybrid = await ranker.hybrid_search(
        "energy", query_embedding, limit=4, semantic_weight=1.0, keyword_weight=0.0
    )
    semantic = await ranker.semantic_search(query_embedding, limit=4)

    semantic_ids = [r.chunk_id for r in semantic]
    shared = [r.chunk_id for r in hybrid if r.chunk_id in semantic_ids]
    assert shared == [cid for cid in semantic_ids if cid in shared]
