"""Connection probes for a Neon database.

Two transports are checked independently:

- ``http``: Neon's serverless SQL-over-HTTPS endpoint (``https://<host>/sql``)
- ``pool``: a regular Postgres wire-protocol connection through asyncpg

Each probe measures round-trip latency and reads ``version()``. Probes
never raise; failures are reported in the result.
"""

import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

import asyncpg
import httpx
import structlog

logger = structlog.get_logger("neon.connection")

HTTP_PROBE_SQL = "SELECT version() AS version, 1 AS health_check"
POOL_PROBE_SQL = "SELECT version() AS version, NOW() AS server_time"

_VERSION_PATTERN = re.compile(r"PostgreSQL ([\d.]+)")


@dataclass
class ProbeResult:
    ok: bool
    latency_ms: float
    version: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ConnectionReport:
    """Combined outcome of the requested probes."""
    http_ok: bool = False
    pool_ok: bool = False
    latency_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    server_version: Optional[str] = None
    error: Optional[str] = None

    @property
    def any_ok(self) -> bool:
        return self.http_ok or self.pool_ok


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def sql_http_endpoint(database_url: str) -> str:
    """The HTTPS SQL endpoint for the host named in a connection string."""
    host = urlparse(database_url).hostname
    if not host:
        raise ValueError("DATABASE_URL has no host")
    return f"https://{host}/sql"


def parse_postgres_version(version: Optional[str]) -> Optional[str]:
    """Extract ``X.Y`` from a ``version()`` string such as ``PostgreSQL 16.4 on ...``."""
    if not version:
        return None
    match = _VERSION_PATTERN.search(version)
    return match.group(1) if match else None


async def check_http_connection(
    database_url: str,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ProbeResult:
    """Run the probe query over Neon's HTTP endpoint."""
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(
                sql_http_endpoint(database_url),
                headers={"Neon-Connection-String": database_url},
                json={"query": HTTP_PROBE_SQL, "params": []},
            )
            response.raise_for_status()
            rows = response.json().get("rows") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("HTTP connection check failed", error=str(e))
        return ProbeResult(ok=False, latency_ms=_elapsed_ms(start), error=str(e))

    row = rows[0] if rows else {}
    # The endpoint returns values as text unless asked otherwise.
    ok = str(row.get("health_check")) == "1"
    return ProbeResult(ok=ok, latency_ms=_elapsed_ms(start), version=row.get("version"))


async def check_pool_connection(database_url: str, timeout: float = 10.0) -> ProbeResult:
    """Run the probe query through a one-connection asyncpg pool."""
    start = time.perf_counter()
    pool = None
    try:
        pool = await asyncpg.create_pool(
            database_url,
            min_size=1,
            max_size=1,
            timeout=timeout,
            command_timeout=timeout,
        )
        row = await pool.fetchrow(POOL_PROBE_SQL)
        return ProbeResult(ok=True, latency_ms=_elapsed_ms(start), version=row["version"])
    except Exception as e:
        logger.warning("Pool connection check failed", error=str(e))
        return ProbeResult(ok=False, latency_ms=_elapsed_ms(start), error=str(e))
    finally:
        if pool is not None:
            await pool.close()


async def run_connection_checks(database_url: str, mode: Optional[str] = None) -> ConnectionReport:
    """Probe the requested transports (``http``, ``pool``, or both when ``None``).

    The server version and error come from the first probe that reported one.
    """
    if mode not in (None, "http", "pool"):
        raise ValueError(f"Unknown connection mode: {mode!r}")

    start = time.perf_counter()
    report = ConnectionReport()

    if mode in (None, "http"):
        http_result = await check_http_connection(database_url)
        report.http_ok = http_result.ok
        report.server_version = http_result.version
        report.error = http_result.error

    if mode in (None, "pool"):
        pool_result = await check_pool_connection(database_url)
        report.pool_ok = pool_result.ok
        report.server_version = report.server_version or pool_result.version
        report.error = report.error or pool_result.error

    report.latency_ms = _elapsed_ms(start)
    logger.info(
        "Connection checks completed",
        mode=mode or "all",
        http_ok=report.http_ok,
        pool_ok=report.pool_ok,
        latency_ms=report.latency_ms
    )
    return report
