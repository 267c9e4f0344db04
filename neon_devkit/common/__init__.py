"""Common utilities shared by the search service and scripts.

Includes:
- ``config``: pydantic-settings configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.

Import pattern:
- from neon_devkit.common.config import SearchConfig
- from neon_devkit.common.logging import configure_logging
"""
