"""Document store factory.

Centralizes creation of concrete ``DocumentStore`` backends so the search
service does not depend on implementation details.
"""

from enum import Enum
from typing import Any, Dict

import structlog

from ..common.config import SearchConfig
from .base import DocumentStore
from .pgvector import PgVectorStore

logger = structlog.get_logger("vector_store.factory")


class StoreType(Enum):
    """Supported store backends."""
    PGVECTOR = "pgvector"


class DocumentStoreFactory:
    """Factory for creating store instances."""

    @staticmethod
    def create(store_type: StoreType, config: Dict[str, Any]) -> DocumentStore:
        """Create a store instance.

        Parameters
        - store_type: A ``StoreType`` enum value
        - config: Backend-specific parameters (e.g. ``dsn`` for pgvector)
        """
        if store_type == StoreType.PGVECTOR:
            dsn = config.get("dsn")
            if not dsn:
                raise ValueError("PgVector requires 'dsn' in config")

            return PgVectorStore(
                dsn=dsn,
                pool_size=config.get("pool_size", 10),
                command_timeout=config.get("command_timeout", 60),
                vector_dimension=config.get("vector_dimension"),
                text_search_config=config.get("text_search_config", "english"),
            )

        raise ValueError(f"Unsupported store type: {store_type}")

    @staticmethod
    def create_from_config(config: Dict[str, Any]) -> DocumentStore:
        """Create a store from a dict carrying a ``type`` key plus backend fields."""
        store_type_str = config.get("type", "pgvector")

        try:
            store_type = StoreType(store_type_str)
        except ValueError:
            raise ValueError(f"Unsupported store type: {store_type_str}")

        return DocumentStoreFactory.create(store_type, config)


def create_document_store_from_config(config: SearchConfig) -> DocumentStore:
    """Build the store described by a ``SearchConfig``.

    Raises ``ValueError`` when ``DATABASE_URL`` is unset or the backend is
    unknown.
    """
    if not config.database_url:
        raise ValueError("DATABASE_URL environment variable is required")

    store = DocumentStoreFactory.create_from_config({
        "type": config.store_backend,
        "dsn": config.database_url,
        "pool_size": config.store_pool_size,
        "command_timeout": config.store_command_timeout,
        "vector_dimension": config.vector_dimension,
        "text_search_config": config.text_search_config,
    })
    logger.info(
        "Document store configured",
        backend=config.store_backend,
        vector_dimension=config.vector_dimension
    )
    return store
