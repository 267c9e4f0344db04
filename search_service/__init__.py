"""Hybrid search service.

Serves semantic, keyword, and RRF-fused hybrid search over a Neon
(Postgres + pgvector) corpus of documents and chunk embeddings.
"""
