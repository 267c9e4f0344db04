"""Schema for the documents and embeddings tables.

Documents carry a generated ``tsvector`` over title and content for keyword
matching. Embeddings hold one chunk of a document plus its vector; deleting
a document cascades to its embeddings. Indexes:

- HNSW on ``embeddings.embedding`` with ``vector_cosine_ops``
- GIN on ``documents.fts``
- B-tree on ``embeddings.document_id``
"""

import re
from typing import List

import structlog
from asyncpg import Connection

logger = structlog.get_logger("vector_store.schema")

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def schema_statements(dimension: int, text_search_config: str = "english") -> List[str]:
    """Build the DDL statements for a corpus of the given vector dimension."""
    if not isinstance(dimension, int) or dimension <= 0:
        raise ValueError(f"Vector dimension must be a positive integer, got {dimension!r}")
    if not _IDENTIFIER.match(text_search_config):
        raise ValueError(f"Invalid text search configuration: {text_search_config!r}")

    return [
        "CREATE EXTENSION IF NOT EXISTS vector;",
        f"""
            CREATE TABLE IF NOT EXISTS documents (
                id SERIAL PRIMARY KEY,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                url VARCHAR(2048),
                fts TSVECTOR GENERATED ALWAYS AS (
                    to_tsvector('{text_search_config}', coalesce(title, '') || ' ' || coalesce(content, ''))
                ) STORED,
                metadata JSONB,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
        """,
        f"""
            CREATE TABLE IF NOT EXISTS embeddings (
                id SERIAL PRIMARY KEY,
                document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                chunk_index INTEGER NOT NULL DEFAULT 0,
                chunk TEXT NOT NULL,
                embedding vector({dimension}) NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
        """,
        "CREATE INDEX IF NOT EXISTS documents_fts_idx ON documents USING gin (fts);",
        "CREATE INDEX IF NOT EXISTS embeddings_vector_idx ON embeddings USING hnsw (embedding vector_cosine_ops);",
        "CREATE INDEX IF NOT EXISTS embeddings_document_idx ON embeddings (document_id);",
        """
            CREATE OR REPLACE FUNCTION update_updated_at_column()
            RETURNS TRIGGER AS $$
            BEGIN
                NEW.updated_at = CURRENT_TIMESTAMP;
                RETURN NEW;
            END;
            $$ language 'plpgsql';
        """,
        """
            DROP TRIGGER IF EXISTS update_documents_updated_at ON documents;
            CREATE TRIGGER update_documents_updated_at BEFORE UPDATE ON documents
                FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """,
    ]


async def create_schema(
    conn: Connection,
    dimension: int,
    text_search_config: str = "english"
) -> None:
    """Apply the schema on an open connection, inside one transaction."""
    statements = schema_statements(dimension, text_search_config)
    async with conn.transaction():
        for statement in statements:
            await conn.execute(statement)
    logger.info(
        "Schema applied",
        vector_dimension=dimension,
        text_search_config=text_search_config,
        statements=len(statements)
    )
