"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_api.api.v1.router import api_router
from portfolio_api.config import settings
from portfolio_api.core.errors import DeployError
from portfolio_api.core.metrics import MetricsMiddleware, read_metrics
from portfolio_api.core.rate_limiter import RateLimitMiddleware
from portfolio_api.db.redis import close_redis, init_redis

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting up Portfolio Deploy API...")
    await init_redis()

    yield

    logger.info("Shutting down Portfolio Deploy API...")
    await close_redis()


async def deploy_error_handler(request: Request, exc: DeployError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies as 400, naming missing fields first."""
    errors = exc.errors()
    missing = [str(err["loc"][-1]) for err in errors if err["type"] == "missing"]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"][1:])
        message = f"{field}: {first['msg']}" if field else first["msg"]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": message,
            "error": jsonable_encoder(errors, custom_encoder={Exception: str}),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc) if settings.DEBUG else "Something went wrong",
        },
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Portfolio Deploy API",
        description="Generates portfolio sites and deploys them to GitHub Pages, Netlify or Vercel",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate Limiting Middleware
    app.add_middleware(RateLimitMiddleware)

    # Metrics Middleware
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(DeployError, deploy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routers
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.APP_VERSION}

    @app.get("/metrics", tags=["Observability"])
    async def get_metrics() -> dict:
        """Get request and deployment counters from Redis."""
        return await read_metrics()

    return app


app = create_app()
