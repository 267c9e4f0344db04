#!/usr/bin/env python3
"""Validate a Neon database connection.

Usage::

    validate-connection            # HTTP and pooled connection
    validate-connection --http     # HTTP endpoint only
    validate-connection --pool     # pooled Postgres connection only

Reads ``DATABASE_URL``. Exits non-zero when it is missing or every
requested probe failed.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from neon_devkit.common.config import BaseConfig
from neon_devkit.common.logging import configure_logging
from neon_devkit.neon.connection import ConnectionReport, parse_postgres_version, run_connection_checks


def format_report(report: ConnectionReport) -> str:
    def status(ok: bool) -> str:
        return "✓ OK" if ok else "✗ Failed"

    lines = [
        "Results:",
        f"  HTTP Connection:      {status(report.http_ok)}",
        f"  Pool Connection:      {status(report.pool_ok)}",
        f"  Total Latency:        {report.latency_ms:.0f}ms",
    ]
    version = parse_postgres_version(report.server_version)
    if version:
        lines.append(f"  PostgreSQL Version:   {version}")
    if report.error:
        lines.append(f"\nError: {report.error}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate a Neon database connection")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--http", action="store_true", help="Only probe the HTTP endpoint")
    group.add_argument("--pool", action="store_true", help="Only probe a pooled connection")
    args = parser.parse_args(argv)

    config = BaseConfig()
    if not config.database_url:
        print("Error: DATABASE_URL environment variable is required", file=sys.stderr)
        return 1

    configure_logging("validate_connection", "WARNING", "console", stream=sys.stderr)

    mode = "http" if args.http else "pool" if args.pool else None
    print("Testing Neon database connection...\n")
    report = asyncio.run(run_connection_checks(config.database_url, mode=mode))
    print(format_report(report))

    return 0 if report.any_ok else 1


if __name__ == "__main__":
    sys.exit(main())
