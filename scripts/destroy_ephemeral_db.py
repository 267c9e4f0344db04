#!/usr/bin/env python3
"""Destroy an ephemeral Neon database or clean up test branches.

Usage::

    destroy-ephemeral-db <project-id>
    destroy-ephemeral-db --project <project-id> --prefix test/
    destroy-ephemeral-db --project <project-id> --branch <branch-id>
    destroy-ephemeral-db <project-id> --branch <branch-id>
    destroy-ephemeral-db --project <project-id> --delete-project

Requires ``NEON_API_KEY``.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from neon_devkit.common.config import NeonApiConfig
from neon_devkit.common.logging import configure_logging
from neon_devkit.neon.client import BranchCleanupReport, NeonAPIError, NeonClient, NeonConfigError


async def destroy_ephemeral_db(
    project_id: str,
    branch_id: Optional[str] = None,
    branch_prefix: Optional[str] = None,
    delete_project: bool = False,
    config: Optional[NeonApiConfig] = None
) -> Optional[BranchCleanupReport]:
    async with NeonClient.from_config(config) as client:
        return await client.destroy(
            project_id,
            branch_id=branch_id,
            branch_prefix=branch_prefix,
            delete_project=delete_project
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Destroy an ephemeral Neon database or its branches")
    parser.add_argument("project_id", nargs="?", help="Project to delete outright, or the project for --branch/--prefix")
    parser.add_argument("--project", dest="project_flag", help="Project id for branch operations")
    parser.add_argument("--branch", help="Delete a single branch by id")
    parser.add_argument("--prefix", help="Delete every branch whose name starts with this prefix")
    parser.add_argument("--delete-project", action="store_true", help="Delete the whole project")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # A lone positional id means "delete this project"; with any other
    # option it only names the project.
    project_id = args.project_flag or args.project_id
    shortcut = not (args.project_flag or args.branch or args.prefix or args.delete_project)
    delete_project = args.delete_project or (bool(args.project_id) and shortcut)

    if not project_id:
        parser.print_usage(sys.stderr)
        return 1

    config = NeonApiConfig()
    configure_logging("destroy_ephemeral_db", config.log_level, "console", stream=sys.stderr)

    try:
        report = asyncio.run(destroy_ephemeral_db(
            project_id,
            branch_id=args.branch,
            branch_prefix=args.prefix,
            delete_project=delete_project,
            config=config
        ))
    except (NeonConfigError, NeonAPIError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if report is not None:
        print(
            f"Deleted {len(report.deleted)} branches matching '{report.prefix}'"
            f" ({len(report.failed)} failed)",
            file=sys.stderr
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
