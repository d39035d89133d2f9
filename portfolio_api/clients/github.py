"""GitHub REST client: repositories, file contents and Pages."""

import asyncio
import base64
import logging
import re
from typing import Any, Optional
from urllib.parse import quote

import httpx

from portfolio_api.clients.http import ProviderClient, decode_body
from portfolio_api.config import settings
from portfolio_api.core.errors import (
    PartialUploadError,
    RemoteAPIError,
    RepositoryCreationError,
    ValidationError,
)
from portfolio_api.schemas.deployment import (
    DeploymentStatus,
    DeploymentTarget,
    FileRecord,
    FileUploadOutcome,
    Platform,
    RepositoryHandle,
    UploadAction,
)

logger = logging.getLogger(__name__)


def pages_url(owner: str, repo: str) -> str:
    """Public GitHub Pages URL of a project site."""
    return f"https://{owner.lower()}.github.io/{repo}"


REPO_URL = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")


def repository_from_url(url: str, default_branch: Optional[str] = None) -> RepositoryHandle:
    """Handle for a ``https://github.com/{owner}/{repo}`` URL (``.git`` suffix allowed)."""
    match = REPO_URL.search(url.strip())
    if not match:
        raise ValidationError("Invalid GitHub repository URL")
    owner, name = match.groups()
    return RepositoryHandle(
        owner=owner,
        name=name,
        default_branch=default_branch or settings.DEFAULT_BRANCH,
        html_url=f"https://github.com/{owner}/{name}",
        clone_url=f"https://github.com/{owner}/{name}.git",
    )


class GitHubClient(ProviderClient):
    """Repository client for the GitHub REST API."""

    provider = "GitHub"

    def __init__(
        self,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        poll_attempts: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ):
        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            headers["Authorization"] = f"token {token}"
        super().__init__(settings.GITHUB_API_URL, headers, transport, timeout)
        self.poll_attempts = (
            poll_attempts if poll_attempts is not None else settings.PAGES_POLL_ATTEMPTS
        )
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.PAGES_POLL_INTERVAL
        )

    # Repositories

    async def ensure_repository(self, owner: str, name: str) -> RepositoryHandle:
        """Create ``owner/name`` or reuse it when it already exists."""
        logger.info(f"Creating repository: {owner}/{name}")
        try:
            response = await self._send(
                "POST",
                "/user/repos",
                json={
                    "name": name,
                    "description": "Professional portfolio website generated with Portfolio Generator",
                    "private": False,
                    "auto_init": True,
                    "homepage": pages_url(owner, name),
                },
            )
            if response.status_code == 422:
                logger.info(f"Repository {owner}/{name} already exists, reusing it")
                try:
                    return await self.get_repository(owner, name)
                except RemoteAPIError as exc:
                    # Not a name clash after all; report GitHub's own 422
                    raise self._error(
                        response, "Failed to create repository", RepositoryCreationError
                    ) from exc
            if not response.is_success:
                raise self._error(response, "Failed to create repository")
            data = self._expect_object(
                decode_body(response), f"repository {owner}/{name}", ("name", "full_name")
            )
        except RepositoryCreationError:
            raise
        except RemoteAPIError as exc:
            raise RepositoryCreationError(
                exc.message, remote_status=exc.remote_status, payload=exc.payload
            ) from exc

        return RepositoryHandle.from_api(data)

    async def get_repository(self, owner: str, name: str) -> RepositoryHandle:
        data = await self._call(
            "GET", f"/repos/{owner}/{name}", f"Repository {owner}/{name} not found"
        )
        return RepositoryHandle.from_api(
            self._expect_object(data, f"repository {owner}/{name}", ("name", "full_name"))
        )

    # File contents

    def _contents_path(self, handle: RepositoryHandle, path: str) -> str:
        return f"/repos/{handle.full_name}/contents/{quote(path)}"

    async def get_file_record(self, handle: RepositoryHandle, path: str) -> FileRecord:
        """Look up the current blob sha of ``path``.

        A 404 means the file does not exist yet; any other failure is raised
        rather than read as absent.
        """
        branch = handle.default_branch
        response = await self._send(
            "GET", self._contents_path(handle, path), params={"ref": branch}
        )
        if response.status_code == 404:
            return FileRecord(path=path, sha=None, branch=branch)
        if not response.is_success:
            raise self._error(response, f"Failed to look up {path}")

        data = decode_body(response)
        if isinstance(data, list):
            raise RemoteAPIError(f"{path} is a directory in {handle.full_name}")
        data = self._expect_object(data, f"contents of {path}", ("sha",))
        return FileRecord(path=path, sha=data["sha"], branch=branch)

    async def put_file(
        self,
        handle: RepositoryHandle,
        path: str,
        content: str,
        sha: Optional[str] = None,
    ) -> FileUploadOutcome:
        """Create ``path``, or update it when ``sha`` of the current blob is given."""
        body: dict[str, Any] = {
            "message": f"Update {path}" if sha else f"Add {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": handle.default_branch,
        }
        if sha:
            body["sha"] = sha

        data = await self._call(
            "PUT", self._contents_path(handle, path), f"Failed to upload {path}", json=body
        )
        content_info = self._expect_object(data, f"upload of {path}").get("content")
        new_sha = content_info.get("sha") if isinstance(content_info, dict) else None
        action = UploadAction.UPDATED if sha else UploadAction.CREATED
        logger.info(f"{action.value.capitalize()} {path} in {handle.full_name}")
        return FileUploadOutcome(path=path, action=action, sha=new_sha)

    async def _upload_one(
        self, handle: RepositoryHandle, path: str, content: str
    ) -> FileUploadOutcome:
        try:
            record = await self.get_file_record(handle, path)
            return await self.put_file(handle, path, content, record.sha)
        except RemoteAPIError as exc:
            logger.error(f"Failed to upload {path}: {exc.message}")
            return FileUploadOutcome(path=path, action=UploadAction.FAILED, error=exc.message)

    async def upload_files(
        self, handle: RepositoryHandle, files: dict[str, str]
    ) -> list[FileUploadOutcome]:
        """Upload every file of ``files`` concurrently.

        Raises PartialUploadError if any file failed; files that were written
        before the failure stay in the repository and are listed in the
        error's outcomes.
        """
        logger.info(f"Uploading {len(files)} file(s) to {handle.full_name}")
        outcomes = list(
            await asyncio.gather(
                *(self._upload_one(handle, path, content) for path, content in files.items())
            )
        )
        failed = [outcome for outcome in outcomes if outcome.action is UploadAction.FAILED]
        if failed:
            first = failed[0]
            raise PartialUploadError(
                f"Failed to upload {first.path}: {first.error}", outcomes=outcomes
            )
        return outcomes

    # Pages

    async def ensure_pages_enabled(self, handle: RepositoryHandle) -> DeploymentTarget:
        """Enable GitHub Pages on the default branch and wait for the site record."""
        logger.info(f"Setting up GitHub Pages for {handle.full_name}")
        response = await self._send(
            "POST",
            f"/repos/{handle.full_name}/pages",
            json={"source": {"branch": handle.default_branch, "path": "/"}},
        )
        if response.status_code == 409:
            logger.info(f"GitHub Pages already enabled for {handle.full_name}")
        elif not response.is_success:
            raise self._error(response, "Failed to setup GitHub Pages")

        pages = await self._wait_for_pages(handle) or {}
        return DeploymentTarget(
            platform=Platform.PAGES,
            site_name=handle.name,
            live_url=pages.get("html_url") or pages_url(handle.owner, handle.name),
            admin_url=f"https://github.com/{handle.full_name}/settings/pages",
            state=(pages.get("status") or "enabled") if pages else "pending",
        )

    async def _wait_for_pages(self, handle: RepositoryHandle) -> Optional[dict[str, Any]]:
        """Poll the Pages record with exponential backoff; None if it never shows up."""
        delay = self.poll_interval
        for attempt in range(1, self.poll_attempts + 1):
            response = await self._send("GET", f"/repos/{handle.full_name}/pages")
            if response.is_success:
                return self._expect_object(
                    decode_body(response), f"GitHub Pages of {handle.full_name}"
                )
            if response.status_code != 404:
                raise self._error(response, "Failed to read GitHub Pages status")
            if attempt < self.poll_attempts:
                await asyncio.sleep(delay)
                delay = min(delay * 2, settings.PAGES_POLL_MAX_INTERVAL)

        logger.warning(
            f"GitHub Pages for {handle.full_name} not ready after {self.poll_attempts} checks"
        )
        return None

    async def get_pages_status(self, handle: RepositoryHandle) -> DeploymentStatus:
        pages, build = await asyncio.gather(
            self._call(
                "GET", f"/repos/{handle.full_name}/pages", "Failed to get GitHub Pages status"
            ),
            self._call(
                "GET",
                f"/repos/{handle.full_name}/pages/builds/latest",
                "Failed to get GitHub Pages build",
            ),
        )
        pages = self._expect_object(pages, f"GitHub Pages of {handle.full_name}")
        build = self._expect_object(build, f"latest Pages build of {handle.full_name}")
        return DeploymentStatus(
            state=build.get("status"),
            last_deploy_url=pages.get("html_url"),
            deploy_id=build.get("commit"),
            created_at=build.get("created_at"),
            site_state=pages.get("status"),
        )

    # Accounts

    async def get_login(self) -> str:
        """Login of the account the token belongs to."""
        data = await self._call("GET", "/user", "Invalid token")
        return self._expect_object(data, "the authenticated user", ("login",))["login"]

    async def user_exists(self, username: str) -> bool:
        response = await self._send("GET", f"/users/{username}")
        if response.status_code == 404:
            return False
        if not response.is_success:
            raise self._error(response, "Failed to check username availability")
        return True
