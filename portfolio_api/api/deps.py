"""API dependencies for dependency injection."""

from typing import Optional

import httpx
from fastapi import Depends, Header, Query

from portfolio_api.core.errors import ValidationError
from portfolio_api.services.orchestrator import DeploymentOrchestrator


async def get_http_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for provider API clients; None means real network calls."""
    return None


async def get_orchestrator(
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(transport=transport)


async def get_provider_token(
    x_provider_token: Optional[str] = Header(None),
    token: Optional[str] = Query(None),
) -> str:
    """Provider token for read-only endpoints, from header or query string."""
    value = x_provider_token or token
    if not value:
        raise ValidationError("Missing provider token: send X-Provider-Token or ?token=")
    return value
