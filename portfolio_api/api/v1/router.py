"""API v1 router aggregation."""

from fastapi import APIRouter

from portfolio_api.api.v1.deploy import router as deploy_router
from portfolio_api.api.v1.github import router as github_router
from portfolio_api.api.v1.hosting import netlify_router, vercel_router

api_router = APIRouter()

# Include all routers
api_router.include_router(deploy_router, tags=["Deployments"])
api_router.include_router(github_router, prefix="/github", tags=["GitHub"])
api_router.include_router(netlify_router, prefix="/netlify", tags=["Netlify"])
api_router.include_router(vercel_router, prefix="/vercel", tags=["Vercel"])
