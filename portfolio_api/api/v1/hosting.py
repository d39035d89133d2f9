"""Netlify and Vercel deployment endpoints."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends

from portfolio_api.api.deps import get_http_transport, get_provider_token
from portfolio_api.clients.github import repository_from_url
from portfolio_api.clients.netlify import NetlifyClient
from portfolio_api.clients.vercel import VercelClient
from portfolio_api.schemas.deployment import (
    NetlifyDeployRequest,
    SiteDeployResponse,
    StatusResponse,
    VercelDeployRequest,
)

netlify_router = APIRouter()
vercel_router = APIRouter()


@netlify_router.post(
    "/deploy",
    response_model=SiteDeployResponse,
    summary="Deploy a GitHub repository to Netlify",
)
async def deploy_to_netlify(
    body: NetlifyDeployRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> SiteDeployResponse:
    """Create (or reuse) a site, connect the repository and trigger a build."""
    repo = repository_from_url(body.repo_url, body.branch)
    async with NetlifyClient(body.token, transport=transport) as netlify:
        target = await netlify.deploy(repo, body.site_name, site_id=body.site_id)

    return SiteDeployResponse(
        message="Site deployed to Netlify successfully",
        site_url=target.live_url,
        admin_url=target.admin_url,
        site_id=target.site_id,
        site_name=target.site_name,
        target=target,
    )


@netlify_router.get(
    "/status/{site_id}",
    response_model=StatusResponse,
    summary="Get the latest Netlify deploy",
)
async def netlify_status(
    site_id: str,
    token: str = Depends(get_provider_token),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> StatusResponse:
    async with NetlifyClient(token, transport=transport) as netlify:
        status = await netlify.get_status(site_id)
    return StatusResponse(status=status)


@vercel_router.post(
    "/deploy",
    response_model=SiteDeployResponse,
    summary="Deploy a GitHub repository to Vercel",
)
async def deploy_to_vercel(
    body: VercelDeployRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> SiteDeployResponse:
    """Create (or reuse) a project, link the repository and start a production deployment."""
    repo = repository_from_url(body.repo_url, body.branch)
    async with VercelClient(body.token, transport=transport) as vercel:
        target = await vercel.deploy(repo, body.project_name, site_id=body.project_id)

    return SiteDeployResponse(
        message="Project deployed to Vercel successfully",
        site_url=target.live_url,
        admin_url=target.admin_url,
        deployment_url=target.deployment_url,
        project_id=target.site_id,
        project_name=target.site_name,
        target=target,
    )


@vercel_router.get(
    "/status/{project_id}",
    response_model=StatusResponse,
    summary="Get the latest Vercel deployment",
)
async def vercel_status(
    project_id: str,
    token: str = Depends(get_provider_token),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> StatusResponse:
    async with VercelClient(token, transport=transport) as vercel:
        status = await vercel.get_status(project_id)
    return StatusResponse(status=status)
