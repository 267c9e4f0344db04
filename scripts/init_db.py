#!/usr/bin/env python3
"""Initialize the documents/embeddings schema at the configured vector dimension."""

import asyncio
import sys
from typing import Optional

import asyncpg
import structlog

from neon_devkit.common.config import SearchConfig
from neon_devkit.common.logging import configure_logging
from neon_devkit.vector_store.schema import create_schema

logger = structlog.get_logger("init_db")


async def init_database(config: Optional[SearchConfig] = None) -> None:
    config = config or SearchConfig()
    if not config.database_url:
        raise ValueError("DATABASE_URL environment variable is required")

    logger.info("Initializing database", vector_dimension=config.vector_dimension)
    conn = await asyncpg.connect(config.database_url)
    try:
        await create_schema(conn, config.vector_dimension, config.text_search_config)
    finally:
        await conn.close()

    logger.info("Database initialization completed")


def main() -> int:
    config = SearchConfig()
    configure_logging("init_db", config.log_level, "console", stream=sys.stderr)

    try:
        asyncio.run(init_database(config))
    except (ValueError, OSError, asyncpg.PostgresError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
