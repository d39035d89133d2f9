"""Netlify REST client."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from portfolio_api.clients.base import PlatformClient
from portfolio_api.config import settings
from portfolio_api.core.errors import RemoteAPIError
from portfolio_api.schemas.deployment import (
    DeploymentStatus,
    DeploymentTarget,
    Platform,
    RepositoryHandle,
)

logger = logging.getLogger(__name__)

STATIC_BUILD_COMMAND = 'echo "Static site - no build required"'


class NetlifyClient(PlatformClient):
    provider = "Netlify"
    platform = Platform.NETLIFY
    link_error = "Failed to connect Netlify site to GitHub repository"

    def __init__(
        self,
        token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        suffix_factory=None,
    ):
        super().__init__(settings.NETLIFY_API_URL, token, transport, timeout, suffix_factory)

    @staticmethod
    def _repo_block(repo: RepositoryHandle, branch: str) -> dict[str, Any]:
        return {"provider": "github", "repo": repo.full_name, "branch": branch, "dir": "/"}

    async def _create_site(self, repo: RepositoryHandle, name: str) -> httpx.Response:
        return await self._send(
            "POST",
            "/sites",
            json={
                "name": name,
                "repo": {**self._repo_block(repo, repo.default_branch), "cmd": STATIC_BUILD_COMMAND},
                "build_settings": {"cmd": STATIC_BUILD_COMMAND, "dir": "/", "env": {}},
            },
        )

    def _target_from_api(self, data: dict[str, Any], repo: RepositoryHandle) -> DeploymentTarget:
        name = data["name"]
        return DeploymentTarget(
            platform=self.platform,
            site_name=name,
            site_id=data["id"],
            live_url=f"https://{name}.netlify.app",
            admin_url=f"https://app.netlify.com/sites/{name}",
            state=data.get("state"),
        )

    async def get_site(self, site_id: str, repo: RepositoryHandle) -> DeploymentTarget:
        data = await self._call("GET", f"/sites/{site_id}", f"Netlify site {site_id} not found")
        return self._target_from_api(
            self._expect_object(data, f"Netlify site {site_id}", ("id", "name")), repo
        )

    async def _link_request(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> httpx.Response:
        return await self._send(
            "PATCH",
            f"/sites/{target.site_id}",
            json={"repo": self._repo_block(repo, branch)},
        )

    async def trigger_build(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> DeploymentTarget:
        logger.info(f"Triggering Netlify build for {target.site_name}")
        data = await self._call(
            "POST", f"/sites/{target.site_id}/builds", "Failed to trigger Netlify build"
        )
        data = self._expect_object(data or {}, "Netlify build")
        return target.model_copy(
            update={"deployment_id": data.get("deploy_id") or data.get("id"), "state": "building"}
        )

    async def get_status(self, site_id: str) -> DeploymentStatus:
        site, deploys = await asyncio.gather(
            self._call("GET", f"/sites/{site_id}", "Failed to get Netlify status"),
            self._call(
                "GET",
                f"/sites/{site_id}/deploys",
                "Failed to get Netlify deploys",
                params={"per_page": 1},
            ),
        )
        site = self._expect_object(site, f"Netlify site {site_id}")
        if not isinstance(deploys, list):
            raise RemoteAPIError(f"Unexpected response from Netlify for deploys of {site_id}")
        latest = deploys[0] if deploys else {}
        return DeploymentStatus(
            state=latest.get("state"),
            last_deploy_url=latest.get("deploy_ssl_url") or latest.get("deploy_url"),
            deploy_id=latest.get("id"),
            created_at=latest.get("created_at"),
            site_state=site.get("state"),
        )

    async def get_login(self) -> str:
        data = self._expect_object(
            await self._call("GET", "/user", "Invalid token"), "the authenticated user", ("id",)
        )
        return data.get("slug") or data.get("email") or data["id"]
