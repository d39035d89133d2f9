"""Deployment pipeline: push files to GitHub, then publish them on a host."""

import logging
from typing import Optional

import httpx

from portfolio_api.clients.base import PlatformClient
from portfolio_api.clients.github import GitHubClient
from portfolio_api.clients.netlify import NetlifyClient
from portfolio_api.clients.vercel import VercelClient
from portfolio_api.core.errors import DeployError, PartialUploadError
from portfolio_api.core.metrics import record_deployment
from portfolio_api.schemas.deployment import (
    DeploymentResult,
    DeployRequest,
    DeployStep,
    Platform,
)
from portfolio_api.services.renderer import render_portfolio

logger = logging.getLogger(__name__)

PLATFORM_CLIENTS: dict[Platform, type[PlatformClient]] = {
    Platform.NETLIFY: NetlifyClient,
    Platform.VERCEL: VercelClient,
}

STEP_LABELS = {
    DeployStep.CREATING_REPO: "Failed to create GitHub repository",
    DeployStep.UPLOADING_FILES: "Failed to upload files to GitHub",
}


def failure_label(step: DeployStep, platform: Platform) -> str:
    if step is DeployStep.DEPLOYING_TO_PLATFORM:
        if platform is Platform.PAGES:
            return "Failed to set up GitHub Pages"
        return f"Failed to deploy to {platform.label}"
    return STEP_LABELS.get(step, "Deployment failed")


class DeploymentOrchestrator:
    """Runs one deployment attempt from file set to live URL.

    Steps run strictly in order: creating_repo, uploading_files,
    deploying_to_platform. The first failure ends the attempt; nothing is
    retried or rolled back. Running it again is safe because repository and
    site creation reuse what already exists.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def deploy(self, request: DeployRequest) -> DeploymentResult:
        result = DeploymentResult(success=False, platform=request.platform)
        try:
            await self._run(request, result)
        except DeployError as exc:
            label = failure_label(result.step, request.platform)
            logger.error(f"{label} for {request.owner}/{request.repo_name}: {exc.message}")
            if isinstance(exc, PartialUploadError):
                result.files = exc.outcomes
            result.error_message = f"{label}: {exc.message}"
            result.step = DeployStep.FAILED
        else:
            result.success = True
            result.step = DeployStep.SUCCEEDED
            logger.info(
                f"Deployed {request.owner}/{request.repo_name} to "
                f"{request.platform.label}: {result.site_url}"
            )

        await record_deployment(request.platform.value, result.success)
        return result

    async def _run(self, request: DeployRequest, result: DeploymentResult) -> None:
        files = request.files
        if files is None:
            files = render_portfolio(request.portfolio)

        async with GitHubClient(request.github_token, transport=self.transport) as github:
            result.step = DeployStep.CREATING_REPO
            repo = await github.ensure_repository(request.owner, request.repo_name)
            result.repository = repo
            result.repo_url = repo.html_url
            result.clone_url = repo.clone_url

            result.step = DeployStep.UPLOADING_FILES
            result.files = await github.upload_files(repo, files)

            result.step = DeployStep.DEPLOYING_TO_PLATFORM
            if request.platform is Platform.PAGES:
                target = await github.ensure_pages_enabled(repo)
            else:
                client_cls = PLATFORM_CLIENTS[request.platform]
                async with client_cls(request.platform_token, transport=self.transport) as host:
                    target = await host.deploy(
                        repo,
                        request.site_name or f"{request.owner}-portfolio".lower(),
                        site_id=request.site_id,
                    )

        result.target = target
        result.site_url = target.live_url
        result.admin_url = target.admin_url
