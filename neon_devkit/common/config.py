"""Configuration management for the Neon developer kit.

Environment-driven settings for the search service and the CLI scripts,
built on ``pydantic_settings.BaseSettings`` so values can come from
environment variables, a ``.env`` file, or defaults. Field names match the
environment variable names (case-insensitive).

Usage
- Inject the appropriate config at the entrypoint:
  ``config = SearchConfig()``
- Or select dynamically: ``config = get_config("search")``
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration shared by every entrypoint.

    Notes
    - Add new shared settings here so downstream configs inherit them.
    - Prefer a typed field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="local", description="Deployment environment name")

    # Database
    database_url: Optional[str] = Field(default=None, description="Postgres connection string")

    # Logging
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: str = Field(default="json", description="json or console")


class SearchConfig(BaseConfig):
    """Configuration for the hybrid search service.

    The vector dimension must match the embedding model that produced the
    stored vectors and the query vectors.
    """

    vector_dimension: int = Field(default=1536, gt=0)
    text_search_config: str = Field(default="english")

    store_backend: str = Field(default="pgvector")
    store_pool_size: int = Field(default=10, gt=0)
    store_command_timeout: float = Field(default=60.0, gt=0)

    # Per-call timeout for the two candidate retrievals; unset means none.
    search_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    search_port: int = Field(default=9007)


class NeonApiConfig(BaseConfig):
    """Configuration for the Neon control-plane API."""

    neon_api_key: Optional[str] = Field(default=None)
    neon_api_url: str = Field(default="https://console.neon.tech/api/v2")
    neon_api_timeout: float = Field(default=30.0, gt=0)


def get_config(service_name: str) -> BaseConfig:
    """Get configuration for a named entrypoint.

    Parameters
    - service_name: ``search`` or ``neon-api``; anything else yields
      ``BaseConfig``.
    """
    config_map = {
        "search": SearchConfig,
        "neon-api": NeonApiConfig,
    }

    config_class = config_map.get(service_name, BaseConfig)
    return config_class()
