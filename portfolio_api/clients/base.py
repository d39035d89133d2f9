"""Contract shared by the Git-integrated hosting platforms."""

import logging
import re
import secrets
import string
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import httpx

from portfolio_api.clients.http import ProviderClient, decode_body
from portfolio_api.config import settings
from portfolio_api.core.errors import CollisionError, provider_message
from portfolio_api.schemas.deployment import (
    DeploymentStatus,
    DeploymentTarget,
    Platform,
    RepositoryHandle,
)

logger = logging.getLogger(__name__)

NAME_TAKEN = re.compile(r"already (been )?taken|already exists", re.IGNORECASE)


def random_suffix(length: int = 6) -> str:
    """Lowercase alphanumeric suffix used to dodge a taken site name."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def is_name_collision(response: httpx.Response) -> bool:
    """409, or 422 carrying a "name already taken" message."""
    if response.status_code == 409:
        return True
    if response.status_code == 422:
        return bool(NAME_TAKEN.search(provider_message(decode_body(response), "")))
    return False


class PlatformClient(ProviderClient, ABC):
    """Creates a site bound to a GitHub repository and triggers its builds.

    Subclasses supply the provider specific requests; name collision
    handling lives here so every platform retries the same way: one retry
    with a random suffix, then CollisionError.
    """

    platform: Platform
    link_error: str = "Failed to link GitHub repository"

    def __init__(
        self,
        base_url: str,
        token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        suffix_factory: Optional[Callable[[], str]] = None,
    ):
        super().__init__(
            base_url,
            {"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
            transport,
            timeout,
        )
        self.suffix_factory = suffix_factory or (
            lambda: random_suffix(settings.SITE_SUFFIX_LENGTH)
        )

    async def ensure_site(
        self,
        repo: RepositoryHandle,
        desired_name: str,
        site_id: Optional[str] = None,
    ) -> DeploymentTarget:
        """Create a site named ``desired_name``, or reuse ``site_id`` when given."""
        if site_id:
            logger.info(f"Reusing {self.provider} site {site_id}")
            return await self.get_site(site_id, repo)

        logger.info(f"Creating {self.provider} site: {desired_name}")
        response = await self._create_site(repo, desired_name)
        if is_name_collision(response):
            retry_name = f"{desired_name}-{self.suffix_factory()}"
            logger.info(f"{self.provider} name {desired_name} is taken, retrying as {retry_name}")
            response = await self._create_site(repo, retry_name)
            if is_name_collision(response):
                raise self._error(
                    response, f"Site name {retry_name} is already taken", CollisionError
                )
        if not response.is_success:
            raise self._error(response, f"Failed to create {self.provider} site")

        data = self._expect_object(
            decode_body(response), "site creation", ("id", "name")
        )
        target = self._target_from_api(data, repo)
        logger.info(f"{self.provider} site created: {target.site_name}")
        return target

    async def deploy(
        self,
        repo: RepositoryHandle,
        desired_name: str,
        branch: Optional[str] = None,
        site_id: Optional[str] = None,
    ) -> DeploymentTarget:
        """Ensure the site, link it to ``repo`` and trigger the first build."""
        branch = branch or repo.default_branch
        target = await self.ensure_site(repo, desired_name, site_id=site_id)
        await self.link_repository(target, repo, branch)
        return await self.trigger_build(target, repo, branch)

    async def link_repository(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> None:
        """Bind ``target`` to ``repo``; a 409 means it is already linked."""
        logger.info(f"Linking {self.provider} site {target.site_name} to {repo.full_name}")
        response = await self._link_request(target, repo, branch)
        if response.status_code == 409:
            logger.info(f"{self.provider} site {target.site_name} is already linked")
            return
        if not response.is_success:
            raise self._error(response, self.link_error)

    @abstractmethod
    async def _create_site(self, repo: RepositoryHandle, name: str) -> httpx.Response:
        ...

    @abstractmethod
    def _target_from_api(self, data: dict[str, Any], repo: RepositoryHandle) -> DeploymentTarget:
        ...

    @abstractmethod
    async def _link_request(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> httpx.Response:
        ...

    @abstractmethod
    async def get_site(self, site_id: str, repo: RepositoryHandle) -> DeploymentTarget:
        ...

    @abstractmethod
    async def trigger_build(
        self, target: DeploymentTarget, repo: RepositoryHandle, branch: str
    ) -> DeploymentTarget:
        """Start a build without waiting for it; returns the target with build info."""

    @abstractmethod
    async def get_status(self, site_id: str) -> DeploymentStatus:
        ...

    @abstractmethod
    async def get_login(self) -> str:
        ...
