"""GitHub repository and Pages endpoints."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends

from portfolio_api.api.deps import get_http_transport, get_provider_token
from portfolio_api.clients.github import GitHubClient, pages_url, repository_from_url
from portfolio_api.schemas.deployment import (
    PagesSetupRequest,
    RepositoryFilesRequest,
    RepositoryResponse,
    SiteDeployResponse,
    StatusResponse,
    UpdateFilesResponse,
    UsernameCheckResponse,
)

router = APIRouter()


@router.post(
    "/create-repo",
    response_model=RepositoryResponse,
    summary="Create or reuse a repository and upload files",
)
async def create_repo(
    body: RepositoryFilesRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> RepositoryResponse:
    """Create the repository (reusing it if it exists) and push every file."""
    async with GitHubClient(body.token, transport=transport) as github:
        repo = await github.ensure_repository(body.owner, body.repo_name)
        outcomes = await github.upload_files(repo, body.files)

    return RepositoryResponse(
        message="Repository created and files uploaded successfully",
        repo_url=repo.html_url,
        clone_url=repo.clone_url,
        site_url=pages_url(repo.owner, repo.name),
        repository=repo,
        files=outcomes,
        files_uploaded=len(outcomes),
    )


@router.post(
    "/update-files",
    response_model=UpdateFilesResponse,
    summary="Upload files to an existing repository",
)
async def update_files(
    body: RepositoryFilesRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> UpdateFilesResponse:
    async with GitHubClient(body.token, transport=transport) as github:
        repo = await github.get_repository(body.owner, body.repo_name)
        outcomes = await github.upload_files(repo, body.files)

    return UpdateFilesResponse(
        message="Repository files updated successfully",
        files=outcomes,
        files_updated=len(outcomes),
    )


@router.post(
    "/setup-pages",
    response_model=SiteDeployResponse,
    summary="Enable GitHub Pages",
)
async def setup_pages(
    body: PagesSetupRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> SiteDeployResponse:
    async with GitHubClient(body.token, transport=transport) as github:
        repo = await github.get_repository(body.owner, body.repo_name)
        target = await github.ensure_pages_enabled(repo)

    return SiteDeployResponse(
        message="GitHub Pages enabled successfully",
        site_url=target.live_url,
        admin_url=target.admin_url,
        site_name=target.site_name,
        target=target,
    )


@router.get(
    "/pages-status/{owner}/{repo}",
    response_model=StatusResponse,
    summary="Get the latest GitHub Pages build",
)
async def pages_status(
    owner: str,
    repo: str,
    token: str = Depends(get_provider_token),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> StatusResponse:
    handle = repository_from_url(f"https://github.com/{owner}/{repo}")
    async with GitHubClient(token, transport=transport) as github:
        status = await github.get_pages_status(handle)
    return StatusResponse(status=status)


@router.get(
    "/check-username/{username}",
    response_model=UsernameCheckResponse,
    summary="Check whether a GitHub username exists",
)
async def check_username(
    username: str,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> UsernameCheckResponse:
    async with GitHubClient(transport=transport) as github:
        exists = await github.user_exists(username)
    return UsernameCheckResponse(available=not exists, exists=exists)
