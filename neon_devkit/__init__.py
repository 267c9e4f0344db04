"""Shared libraries for the Neon developer kit.

Subpackages:
- ``neon_devkit.common``: configuration, logging, and metrics.
- ``neon_devkit.vector_store``: document/embedding store contract, the
  pgvector backend, and the schema it expects.
- ``neon_devkit.neon``: Neon control-plane client and connection probes.

Notes:
- Keep search-service specifics in ``search_service``; modules here are
  shared by the service and the CLI scripts.
"""

__version__ = "0.1.0"
