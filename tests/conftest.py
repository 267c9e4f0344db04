"""Shared fixtures."""

import pytest

from search_service.hybrid.ranker import HybridRanker
from tests.fakes import FakeDocumentStore, text_match, vector_match

DIMENSION = 1536


@pytest.fixture
def query_embedding():
    return [0.01] * DIMENSION


@pytest.fixture
def abc_store():
    """Three chunks: semantic order A, B, C; keyword order B, C (A has no text match)."""
    return FakeDocumentStore(
        vector_matches=[
            vector_match("A", 0.10),
            vector_match("B", 0.20),
            vector_match("C", 0.30),
        ],
        text_matches=[
            text_match("B", 0.80),
            text_match("C", 0.40),
        ],
    )


@pytest.fixture
def abc_ranker(abc_store):
    return HybridRanker(abc_store, vector_dimension=DIMENSION)
