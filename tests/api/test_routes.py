"""Tests for the search service HTTP API."""

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from neon_devkit.common.metrics import MetricsCollector
from search_service.hybrid.ranker import HybridRanker
from search_service.main import create_app
from tests.fakes import FakeDocumentStore, text_match, vector_match

DIMENSION = 4
EMBEDDING = [0.1, 0.2, 0.3, 0.4]


def build_client(store):
    app = create_app(use_lifespan=False)
    app.state.store = store
    app.state.ranker = HybridRanker(store, vector_dimension=DIMENSION)
    app.state.metrics_collector = MetricsCollector("test-search", registry=CollectorRegistry())
    return TestClient(app)


@pytest.fixture
def store():
    return FakeDocumentStore(
        vector_matches=[vector_match("A", 0.1), vector_match("B", 0.2), vector_match("C", 0.3)],
        text_matches=[text_match("B", 0.8), text_match("C", 0.4)],
    )


@pytest.fixture
def client(store):
    return build_client(store)


def test_hybrid_search(client):
    response = client.post("/api/v1/search/hybrid", json={
        "query": "energy prices",
        "query_embedding": EMBEDDING,
        "limit": 3,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [r["chunk_id"] for r in body["results"]] == ["B", "C", "A"]
    first = body["results"][0]
    assert first["semantic_rank"] == 2
    assert first["keyword_rank"] == 1
    assert first["keyword_score"] == pytest.approx(0.8)
    assert body["results"][2]["keyword_rank"] is None


def test_hybrid_search_invalid_weights(client):
    response = client.post("/api/v1/search/hybrid", json={
        "query": "energy",
        "query_embedding": EMBEDDING,
        "semantic_weight": 0.7,
        "keyword_weight": 0.4,
    })

    assert response.status_code == 422
    assert "sum to 1" in response.json()["detail"]


def test_hybrid_search_dimension_mismatch(client):
    response = client.post("/api/v1/search/hybrid", json={
        "query": "energy",
        "query_embedding": [0.1, 0.2],
    })

    assert response.status_code == 422
    assert "dimension" in response.json()["detail"]


def test_keyword_search_empty_query(client):
    response = client.post("/api/v1/search/keyword", json={"query": "   "})

    assert response.status_code == 422


def test_backend_unavailable_is_503():
    client = build_client(FakeDocumentStore(vector_error=ConnectionRefusedError("down")))

    response = client.post("/api/v1/search/semantic", json={"query_embedding": EMBEDDING})

    assert response.status_code == 503


def test_semantic_search(client):
    response = client.post("/api/v1/search/semantic", json={"query_embedding": EMBEDDING, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert [r["chunk_id"] for r in body["results"]] == ["A", "B"]
    assert body["results"][0]["score"] == pytest.approx(0.9)


def test_keyword_search(client):
    response = client.post("/api/v1/search/keyword", json={"query": "energy"})

    assert response.status_code == 200
    assert [r["chunk_id"] for r in response.json()["results"]] == ["B", "C"]


def test_health(client, store):
    assert client.get("/health").status_code == 200

    store.healthy = False
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_metrics_endpoint(client):
    client.post("/api/v1/search/keyword", json={"query": "energy"})

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'search_requests_total{mode="keyword",outcome="ok"} 1.0' in response.text
    assert "http_requests_total" in response.text


def test_root(client):
    body = client.get("/").json()

    assert body["service"] == "search-service"
    assert body["endpoints"]["hybrid"] == "/api/v1/search/hybrid"


class ExplodingRanker:
    async def keyword_search(self, query, limit):
        raise RuntimeError("boom")


def test_unexpected_error_is_counted_as_error():
    app = create_app(use_lifespan=False)
    app.state.ranker = ExplodingRanker()
    collector = MetricsCollector("test-search", registry=CollectorRegistry())
    app.state.metrics_collector = collector
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/v1/search/keyword", json={"query": "energy"})

    assert response.status_code == 500
    metrics = collector.get_metrics()
    assert 'search_requests_total{mode="keyword",outcome="error"} 1.0' in metrics
    assert 'outcome="ok"' not in metrics
