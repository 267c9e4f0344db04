"""PgVector implementation of the document store.

Chunks live in ``embeddings`` and are joined to ``documents`` for titles.
Nearest-neighbour search orders by the ``<=>`` cosine distance operator;
keyword search filters with ``fts @@ websearch_to_tsquery`` and orders by
``ts_rank``.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- Queries are funneled through ``_execute_query`` so every driver failure
  surfaces as ``BackendUnavailable``
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import asyncpg
import numpy as np
import structlog
from asyncpg import Connection, Pool
from pgvector.asyncpg import register_vector

from .base import (
    BackendUnavailable,
    DimensionMismatch,
    DocumentStore,
    TextMatch,
    VectorMatch,
)

logger = structlog.get_logger("vector_store.pgvector")

NEAREST_BY_VECTOR_SQL = """
    SELECT e.id AS chunk_id,
           e.document_id,
           e.chunk,
           d.title,
           e.embedding <=> $1 AS distance
    FROM embeddings e
    JOIN documents d ON e.document_id = d.id
    ORDER BY e.embedding <=> $1, e.id
    LIMIT $2
"""

MATCH_BY_TEXT_SQL = """
    SELECT e.id AS chunk_id,
           e.document_id,
           e.chunk,
           d.title,
           ts_rank(d.fts, websearch_to_tsquery($1::regconfig, $2)) AS relevance
    FROM embeddings e
    JOIN documents d ON e.document_id = d.id
    WHERE d.fts @@ websearch_to_tsquery($1::regconfig, $2)
    ORDER BY relevance DESC, e.id
    LIMIT $3
"""


class PgVectorStore(DocumentStore):
    """PgVector implementation of the document store."""

    def __init__(
        self,
        dsn: str,
        pool_size: int = 10,
        command_timeout: float = 60,
        vector_dimension: Optional[int] = None,
        text_search_config: str = "english",
    ):
        """Configure a PgVector-backed store.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - pool_size: Max size of the asyncpg connection pool
        - command_timeout: Seconds to allow per DB command
        - vector_dimension: Expected dimensionality for stored and query vectors
        - text_search_config: Postgres text search configuration for queries
        """
        self.dsn = dsn
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.vector_dimension = vector_dimension
        self.text_search_config = text_search_config
        self._pool: Optional[Pool] = None

    async def _init_connection(self, conn: Connection) -> None:
        """Register the pgvector codec on each pooled connection."""
        await register_vector(conn)

    async def _get_pool(self) -> Pool:
        """Get or lazily create the connection pool."""
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    command_timeout=self.command_timeout,
                    init=self._init_connection,
                )
                logger.info("Created PgVector connection pool", pool_size=self.pool_size)
            except Exception as e:
                logger.error("Failed to create PgVector connection pool", error=str(e))
                raise BackendUnavailable(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _execute_query(
        self,
        query: str,
        *args: Any,
        fetch: bool = False,
        fetch_one: bool = False,
        fetch_val: bool = False
    ) -> Any:
        """Execute a query, wrapping every failure in ``BackendUnavailable``.

        The ``fetch``/``fetch_one``/``fetch_val`` flags pick the asyncpg call.
        """
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                if fetch_val:
                    return await conn.fetchval(query, *args)
                if fetch_one:
                    return await conn.fetchrow(query, *args)
                if fetch:
                    return await conn.fetch(query, *args)
                return await conn.execute(query, *args)
        except Exception as e:
            logger.error("Query execution failed", query=" ".join(query.split())[:120], error=str(e))
            raise BackendUnavailable(f"Query failed: {e}") from e

    async def nearest_by_vector(self, vector: Sequence[float], k: int) -> List[VectorMatch]:
        """Nearest chunks by cosine distance, closest first."""
        vector_array = self._ensure_vector_dimension(vector)
        rows = await self._execute_query(NEAREST_BY_VECTOR_SQL, vector_array, k, fetch=True)

        try:
            matches = [
                VectorMatch(
                    chunk_id=row["chunk_id"],
                    document_id=row["document_id"],
                    chunk=row["chunk"],
                    title=row["title"],
                    distance=float(row["distance"]),
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendUnavailable(f"Malformed nearest-neighbour row: {e}") from e

        logger.debug("Vector search completed", k=k, results_count=len(matches))
        return matches

    async def match_by_text(self, query: str, k: int) -> List[TextMatch]:
        """Chunks of documents matching ``query``, most relevant first."""
        rows = await self._execute_query(
            MATCH_BY_TEXT_SQL, self.text_search_config, query, k, fetch=True
        )

        try:
            matches = [
                TextMatch(
                    chunk_id=row["chunk_id"],
                    document_id=row["document_id"],
                    chunk=row["chunk"],
                    title=row["title"],
                    relevance=float(row["relevance"]),
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendUnavailable(f"Malformed text-match row: {e}") from e

        logger.debug("Text search completed", k=k, results_count=len(matches))
        return matches

    async def insert_document(
        self,
        title: str,
        content: str,
        url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> int:
        """Insert a document and return its id. ``fts`` is generated by Postgres."""
        document_id = await self._execute_query(
            """
                INSERT INTO documents (title, content, url, metadata)
                VALUES ($1, $2, $3, $4::jsonb)
                RETURNING id
            """,
            title,
            content,
            url,
            json.dumps(metadata) if metadata is not None else None,
            fetch_val=True
        )
        logger.info("Inserted document", document_id=document_id, title=title[:80])
        return document_id

    async def insert_chunks(
        self,
        document_id: int,
        chunks: Iterable[Tuple[int, str, Sequence[float]]]
    ) -> int:
        """Insert ``(chunk_index, text, vector)`` rows for a document.

        Every vector is dimension-checked before anything is written.
        Returns the number of rows inserted.
        """
        batch_data = [
            (document_id, chunk_index, text, self._ensure_vector_dimension(vector))
            for chunk_index, text, vector in chunks
        ]
        if not batch_data:
            return 0

        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.executemany(
                        """
                            INSERT INTO embeddings (document_id, chunk_index, chunk, embedding)
                            VALUES ($1, $2, $3, $4)
                        """,
                        batch_data
                    )
        except Exception as e:
            logger.error(
                "Batch insert of chunks failed",
                document_id=document_id,
                count=len(batch_data),
                error=str(e)
            )
            raise BackendUnavailable(f"Batch insert failed: {e}") from e

        logger.info("Inserted chunks", document_id=document_id, count=len(batch_data))
        return len(batch_data)

    async def delete_document(self, document_id: int) -> bool:
        """Delete a document; its embeddings go with it via ON DELETE CASCADE."""
        result = await self._execute_query(
            "DELETE FROM documents WHERE id = $1",
            document_id
        )
        deleted = result.split()[-1] != "0"

        if deleted:
            logger.info("Deleted document", document_id=document_id)
        else:
            logger.warning("Document not found for deletion", document_id=document_id)
        return deleted

    async def count_embeddings(self) -> int:
        """Count stored chunks."""
        count = await self._execute_query("SELECT COUNT(*) FROM embeddings", fetch_val=True)
        return int(count or 0)

    async def health_check(self) -> bool:
        """Check if the database answers ``SELECT 1``."""
        try:
            await self._execute_query("SELECT 1", fetch_val=True)
            return True
        except BackendUnavailable as e:
            logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PgVector connection pool")

    def _ensure_vector_dimension(self, vector: Iterable[float]) -> np.ndarray:
        """Coerce to a 1-D float32 array of the configured dimension."""
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1:
            raise ValueError("Vector must be one-dimensional")

        if self.vector_dimension is not None and array.shape[0] != self.vector_dimension:
            raise DimensionMismatch(self.vector_dimension, array.shape[0])
        return array
