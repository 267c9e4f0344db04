"""Neon control-plane client.

Wraps the parts of the Neon REST API (v2) used to provision throwaway
databases for tests: create and delete projects, list and delete branches.
Requests are authenticated with a bearer API key.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..common.config import NeonApiConfig

logger = structlog.get_logger("neon.client")

DEFAULT_API_URL = "https://console.neon.tech/api/v2"


class NeonConfigError(Exception):
    """Neon API client is missing required configuration."""
    pass


class NeonAPIError(Exception):
    """A Neon API request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


@dataclass
class EphemeralDatabase:
    """A freshly created project and the URI of its default database."""
    project_id: str
    name: str
    connection_uri: str


@dataclass
class Branch:
    id: str
    name: str


@dataclass
class BranchCleanupReport:
    """Outcome of deleting branches by name prefix."""
    prefix: str
    deleted: List[Branch] = field(default_factory=list)
    failed: List[Branch] = field(default_factory=list)


class NeonClient:
    """Async client for the Neon control plane.

    Use as an async context manager so the underlying ``httpx.AsyncClient``
    is closed::

        async with NeonClient(api_key) as client:
            db = await client.create_project()
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not api_key:
            raise NeonConfigError("NEON_API_KEY environment variable is required")

        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[NeonApiConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "NeonClient":
        config = config or NeonApiConfig()
        return cls(
            config.neon_api_key,
            base_url=config.neon_api_url,
            timeout=config.neon_api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "NeonClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """Send a request; non-2xx responses and transport errors raise ``NeonAPIError``."""
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Neon API request failed", method=method, path=path, error=str(e))
            raise NeonAPIError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            logger.error(
                "Neon API returned an error",
                method=method,
                path=path,
                status_code=response.status_code
            )
            raise NeonAPIError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.content:
            return {}
        return response.json()

    async def create_project(
        self,
        name: Optional[str] = None,
        pg_version: int = 16,
        region_id: Optional[str] = None
    ) -> EphemeralDatabase:
        """Create a project and return its id and connection URI.

        The default name is ``ephemeral-<epoch milliseconds>``.
        """
        project_name = name or f"ephemeral-{int(time.time() * 1000)}"
        project: Dict[str, Any] = {"name": project_name, "pg_version": pg_version}
        if region_id:
            project["region_id"] = region_id

        logger.info("Creating ephemeral database", name=project_name, pg_version=pg_version)
        data = await self._request("POST", "/projects", json={"project": project})

        try:
            project_id = data["project"]["id"]
            connection_uri = data["connection_uris"][0]["connection_uri"]
        except (KeyError, IndexError, TypeError) as e:
            raise NeonAPIError(f"Unexpected create project response: missing {e}") from e

        logger.info("Database created", name=project_name, project_id=project_id)
        return EphemeralDatabase(project_id=project_id, name=project_name, connection_uri=connection_uri)

    async def delete_project(self, project_id: str) -> None:
        logger.info("Deleting project", project_id=project_id)
        await self._request("DELETE", f"/projects/{project_id}")
        logger.info("Project deleted", project_id=project_id)

    async def list_branches(self, project_id: str) -> List[Branch]:
        data = await self._request("GET", f"/projects/{project_id}/branches")
        return [
            Branch(id=branch["id"], name=branch.get("name") or "")
            for branch in data.get("branches", [])
        ]

    async def delete_branch(self, project_id: str, branch_id: str) -> None:
        logger.info("Deleting branch", project_id=project_id, branch_id=branch_id)
        await self._request("DELETE", f"/projects/{project_id}/branches/{branch_id}")
        logger.info("Branch deleted", project_id=project_id, branch_id=branch_id)

    async def delete_branches_by_prefix(self, project_id: str, prefix: str) -> BranchCleanupReport:
        """Delete every branch whose name starts with ``prefix``.

        A failed deletion is logged and recorded; the remaining branches are
        still attempted.
        """
        branches = [b for b in await self.list_branches(project_id) if b.name.startswith(prefix)]
        logger.info(
            "Found branches matching prefix",
            project_id=project_id,
            prefix=prefix,
            count=len(branches)
        )

        report = BranchCleanupReport(prefix=prefix)
        for branch in branches:
            try:
                await self.delete_branch(project_id, branch.id)
                report.deleted.append(branch)
            except NeonAPIError as e:
                logger.warning(
                    "Failed to delete branch",
                    branch_name=branch.name,
                    branch_id=branch.id,
                    error=str(e)
                )
                report.failed.append(branch)

        logger.info(
            "Cleanup complete",
            prefix=prefix,
            deleted=len(report.deleted),
            failed=len(report.failed)
        )
        return report

    async def destroy(
        self,
        project_id: str,
        branch_id: Optional[str] = None,
        branch_prefix: Optional[str] = None,
        delete_project: bool = False
    ) -> Optional[BranchCleanupReport]:
        """Delete a project, one branch, or branches by prefix, in that precedence."""
        if not project_id:
            raise ValueError("project_id is required")

        if delete_project:
            await self.delete_project(project_id)
            return None
        if branch_id:
            await self.delete_branch(project_id, branch_id)
            return None
        if branch_prefix:
            return await self.delete_branches_by_prefix(project_id, branch_prefix)

        raise ValueError(
            "Invalid options: provide project_id with delete_project, branch_id, or branch_prefix"
        )
