#!/usr/bin/env python3
"""Create an ephemeral Neon database for testing.

Prints the connection URI on stdout so it can be captured by a shell::

    export DATABASE_URL="$(create-ephemeral-db my-test)"

Everything else (logs, hints) goes to stderr. Requires ``NEON_API_KEY``.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from neon_devkit.common.config import NeonApiConfig
from neon_devkit.common.logging import configure_logging
from neon_devkit.neon.client import EphemeralDatabase, NeonAPIError, NeonClient, NeonConfigError


async def create_ephemeral_db(
    name: Optional[str] = None,
    pg_version: int = 16,
    region_id: Optional[str] = None,
    config: Optional[NeonApiConfig] = None
) -> EphemeralDatabase:
    """Create a throwaway project and return its connection details."""
    async with NeonClient.from_config(config) as client:
        return await client.create_project(name=name, pg_version=pg_version, region_id=region_id)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create an ephemeral Neon database")
    parser.add_argument("name", nargs="?", help="Project name (default: ephemeral-<timestamp>)")
    parser.add_argument("--pg-version", type=int, default=16, help="Postgres major version")
    parser.add_argument("--region", help="Neon region id, e.g. aws-us-east-2")
    args = parser.parse_args(argv)

    config = NeonApiConfig()
    configure_logging("create_ephemeral_db", config.log_level, "console", stream=sys.stderr)

    try:
        db = asyncio.run(create_ephemeral_db(
            name=args.name,
            pg_version=args.pg_version,
            region_id=args.region,
            config=config
        ))
    except (NeonConfigError, NeonAPIError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(db.connection_uri)

    print("\nTo use this database:", file=sys.stderr)
    print(f'  export DATABASE_URL="{db.connection_uri}"', file=sys.stderr)
    print("\nTo clean up when done:", file=sys.stderr)
    print(f"  destroy-ephemeral-db {db.project_id}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
