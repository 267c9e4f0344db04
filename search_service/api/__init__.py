"""HTTP API routes for the search service."""
