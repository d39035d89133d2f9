"""Shared async HTTP plumbing for provider API clients."""

import logging
from typing import Any, Optional

import httpx

from portfolio_api.config import settings
from portfolio_api.core.errors import RemoteAPIError, provider_message

logger = logging.getLogger(__name__)


class ProviderClient:
    """Async client bound to one provider API.

    Use as an async context manager so the underlying connection pool is
    closed once the request handler is done with it.
    """

    provider: str = "provider"

    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"User-Agent": settings.USER_AGENT, **(headers or {})},
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport failures into RemoteAPIError."""
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(f"{self.provider} {method} {path} failed: {exc!r}")
            raise RemoteAPIError(f"Could not reach {self.provider}: {exc}") from exc

    def _error(
        self,
        response: httpx.Response,
        default: str,
        error_cls: type[RemoteAPIError] = RemoteAPIError,
    ) -> RemoteAPIError:
        payload = decode_body(response)
        logger.error(
            f"{self.provider} {response.request.method} {response.request.url.path} "
            f"returned {response.status_code}: {payload}"
        )
        return error_cls(
            provider_message(payload, default),
            remote_status=response.status_code,
            payload=payload,
        )

    async def _call(self, method: str, path: str, default_error: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded body of a 2xx response."""
        response = await self._send(method, path, **kwargs)
        if response.is_success:
            return decode_body(response)
        raise self._error(response, default_error)

    def _expect_object(
        self, data: Any, what: str, required: tuple[str, ...] = ()
    ) -> dict[str, Any]:
        """Return ``data`` when it is a JSON object holding ``required`` keys.

        A 2xx answer with an empty, non-JSON or differently shaped body is a
        provider failure like any other and raises RemoteAPIError.
        """
        if isinstance(data, dict) and all(key in data for key in required):
            return data
        logger.error(f"{self.provider} returned an unexpected body for {what}: {data!r}")
        raise RemoteAPIError(f"Unexpected response from {self.provider} for {what}", payload=data)


def decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
