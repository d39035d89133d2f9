"""Request and deployment counters kept in Redis."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio_api.db.redis import get_redis

logger = logging.getLogger(__name__)

REQUEST_COUNTS_KEY = "metrics:request_counts"
LATENCIES_KEY = "metrics:latencies"
DEPLOYMENTS_KEY = "metrics:deployments"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect basic API metrics in Redis."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        path = request.url.path

        try:
            redis = get_redis()
            await redis.hincrby(REQUEST_COUNTS_KEY, f"{path}:{response.status_code}", 1)
            # Latest latency per path only
            await redis.hset(LATENCIES_KEY, path, f"{process_time:.4f}")
        except Exception as e:
            logger.debug(f"Skipping request metrics: {e}")

        return response


async def record_deployment(platform: str, succeeded: bool) -> None:
    """Count a finished deployment per platform and outcome."""
    outcome = "succeeded" if succeeded else "failed"
    try:
        await get_redis().hincrby(DEPLOYMENTS_KEY, f"{platform}:{outcome}", 1)
    except Exception as e:
        logger.debug(f"Skipping deployment metrics: {e}")


async def read_metrics() -> dict:
    """Snapshot of all counters; empty when Redis is not connected."""
    try:
        redis = get_redis()
    except RuntimeError:
        return {"request_counts": {}, "latencies_ms": {}, "deployments": {}}

    counts = await redis.hgetall(REQUEST_COUNTS_KEY)
    latencies = await redis.hgetall(LATENCIES_KEY)
    deployments = await redis.hgetall(DEPLOYMENTS_KEY)
    return {
        "request_counts": {k: int(v) for k, v in counts.items()},
        "latencies_ms": {k: float(v) * 1000 for k, v in latencies.items()},
        "deployments": {k: int(v) for k, v in deployments.items()},
    }
