"""Document/embedding store adapters.

Primary components:
- ``base``: abstract ``DocumentStore`` contract, row types, and exceptions.
- ``pgvector``: PostgreSQL/pgvector implementation of the contract.
- ``schema``: DDL for the documents and embeddings tables.
- ``factory``: helpers to construct a store from typed config.

Guidance:
- Prefer ``factory.create_document_store_from_config`` so the search service
  stays decoupled from a specific backend.
"""

from .base import (
    BackendUnavailable,
    DimensionMismatch,
    DocumentStore,
    TextMatch,
    VectorMatch,
    VectorStoreError,
)

__all__ = [
    "BackendUnavailable",
    "DimensionMismatch",
    "DocumentStore",
    "TextMatch",
    "VectorMatch",
    "VectorStoreError",
]
