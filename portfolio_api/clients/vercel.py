"""Vercel REST client."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any, Optional

import httpx

from portfolio_api.clients.base import PlatformClient
from portfolio_api.config import settings
from portfolio_api.schemas.deployment import (
    DeploymentStatus,
    DeploymentTarget,
    Platform,
    RepositoryHandle,
)

logger = logging.getLogger(__name__)


def _https(url: Optional[str]) -> Optional[str]:
    if url and not url.startswith("http"):
        return f"https://{url}"
    return url


def _from_millis(value: Any) -> Optional[datetime]:
    # Vercel timestamps are epoch milliseconds
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return None


class VercelClient(PlatformClient):
    provider = "Vercel"
    platform = Platform.VERCEL
    link_error = "Failed to link GitHub repository to Vercel project"

    def __init__(
        self,
        token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        suffix_factory=None,
    ):
        super().__init__(settings.VERCEL_API_URL, token, transport, timeout, suffix_factory)

    async def _create_site(self, repo: RepositoryHandle, name: str) -> httpx.Response:
        return await self._send(
            "POST",
            "/v9/projects",
            json={
                "name": name,
                "gitRepository": {"type": "github", "repo": repo.full_name},
                # Static site: no build step, serve the repository root
                "framework": None,
                "buildCommand": None,
                "devCommand": None,
                "installCommand": None,
                "outputDirectory": None,
                "rootDirectory": None,
                "serverlessFunctionRegion": settings.VERCEL_REGION,
            },
        )

    def _target_from_api(self, data: dict[str, Any], repo: RepositoryHandle) -> DeploymentTarget:
        name = data["name"]
        return DeploymentTarget(
            platform=self.platform,
            site_name=name,
            site_id=data["id"],
            live_url=f"https://{name}.vercel.app",
            admin_url=f"https://vercel.com/{repo.owner}/{name}",
        )

    async def get_site(self, site_id: str, repo: RepositoryHandle) -> DeploymentTarget:
        data = await self._call(
            "GET", f"/v9/projects/{site_id}", f"Vercel project {site_id} not found"
        )
        return self._target_from_api(
            self._expect_object(data, f"Vercel project {site_id}", ("id", "name")), repo
        )

    async def _link_request(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> httpx.Response:
        return await self._send(
            "POST",
            f"/v9/projects/{target.site_id}/link",
            json={"type": "github", "repo": repo.full_name, "gitBranch": branch},
        )

    async def trigger_build(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> DeploymentTarget:
        logger.info(f"Triggering Vercel deployment for {target.site_name}")
        data = await self._call(
            "POST",
            "/v13/deployments",
            "Failed to trigger Vercel deployment",
            json={
                "name": target.site_name,
                "project": target.site_id,
                "gitSource": {"type": "github", "repo": repo.full_name, "ref": branch},
                "target": "production",
            },
        )
        data = self._expect_object(data or {}, "Vercel deployment")
        return target.model_copy(
            update={
                "deployment_url": _https(data.get("url")),
                "deployment_id": data.get("id") or data.get("uid"),
                "state": data.get("readyState") or data.get("status"),
            }
        )

    async def get_status(self, site_id: str) -> DeploymentStatus:
        _, deployments = await asyncio.gather(
            self._call("GET", f"/v9/projects/{site_id}", "Failed to get Vercel status"),
            self._call(
                "GET",
                "/v6/deployments",
                "Failed to get Vercel deployments",
                params={"projectId": site_id, "limit": 1},
            ),
        )
        deployments = self._expect_object(deployments, f"deployments of {site_id}")
        items = deployments.get("deployments") or []
        latest = items[0] if items else {}
        return DeploymentStatus(
            state=latest.get("state") or latest.get("readyState"),
            last_deploy_url=_https(latest.get("url")),
            deploy_id=latest.get("uid"),
            created_at=_from_millis(latest.get("createdAt") or latest.get("created")),
        )

    async def get_login(self) -> str:
        data = await self._call("GET", "/v2/user", "Invalid token")
        user = self._expect_object(data, "the authenticated user", ("user",))["user"] or {}
        return user.get("username") or user.get("email") or user["id"]
