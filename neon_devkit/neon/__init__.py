"""Neon service helpers.

- ``client``: control-plane REST client for ephemeral projects and branches.
- ``connection``: latency and server-version probes over HTTP and a pool.
"""

from .client import (
    Branch,
    BranchCleanupReport,
    EphemeralDatabase,
    NeonAPIError,
    NeonClient,
    NeonConfigError,
)
from .connection import ConnectionReport, ProbeResult, run_connection_checks

__all__ = [
    "Branch",
    "BranchCleanupReport",
    "ConnectionReport",
    "EphemeralDatabase",
    "NeonAPIError",
    "NeonClient",
    "NeonConfigError",
    "ProbeResult",
    "run_connection_checks",
]
