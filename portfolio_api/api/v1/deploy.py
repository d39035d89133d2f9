"""Portfolio rendering, full deployment and token validation endpoints."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from portfolio_api.api.deps import get_http_transport, get_orchestrator
from portfolio_api.clients.github import GitHubClient
from portfolio_api.clients.netlify import NetlifyClient
from portfolio_api.clients.vercel import VercelClient
from portfolio_api.core.errors import RemoteAPIError
from portfolio_api.schemas.deployment import (
    DeploymentResult,
    DeployRequest,
    TokenValidationRequest,
    TokenValidationResponse,
)
from portfolio_api.schemas.portfolio import PortfolioData, PortfolioGenerateResponse
from portfolio_api.services.orchestrator import DeploymentOrchestrator
from portfolio_api.services.renderer import render_portfolio

router = APIRouter()

TOKEN_CLIENTS = {
    "github": GitHubClient,
    "netlify": NetlifyClient,
    "vercel": VercelClient,
}


@router.post(
    "/portfolio/generate",
    response_model=PortfolioGenerateResponse,
    summary="Render portfolio site files",
)
async def generate_portfolio(data: PortfolioData) -> PortfolioGenerateResponse:
    return PortfolioGenerateResponse(files=render_portfolio(data))


@router.post(
    "/deploy",
    response_model=DeploymentResult,
    summary="Render, push to GitHub and deploy in one call",
    responses={500: {"model": DeploymentResult}},
)
async def deploy(
    body: DeployRequest,
    orchestrator: DeploymentOrchestrator = Depends(get_orchestrator),
):
    """Run the whole pipeline; failures come back as a 500 with the step reached."""
    result = await orchestrator.deploy(body)
    if result.success:
        return result
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(mode="json", by_alias=True),
    )


@router.post(
    "/tokens/validate",
    response_model=TokenValidationResponse,
    summary="Check a provider token",
)
async def validate_token(
    body: TokenValidationRequest,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> TokenValidationResponse:
    client_cls = TOKEN_CLIENTS[body.platform]
    async with client_cls(body.token, transport=transport) as client:
        try:
            login = await client.get_login()
        except RemoteAPIError as exc:
            return TokenValidationResponse(valid=False, message=exc.message)
    return TokenValidationResponse(valid=True, login=login)
