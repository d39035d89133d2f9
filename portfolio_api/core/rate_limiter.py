"""Rate limiting middleware using Redis sliding window."""

import hashlib
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from portfolio_api.config import settings
from portfolio_api.db.redis import get_redis

TOKEN_HEADERS = ("Authorization", "X-Provider-Token")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based sliding window rate limiting for the API routes."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith(settings.API_V1_PREFIX):
            return await call_next(request)

        client_id = self._get_client_id(request)
        is_allowed, remaining, reset_time = await self._check_rate_limit(client_id)

        if not is_allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "message": "Rate limit exceeded",
                    "retry_after": reset_time,
                },
                headers={
                    "X-RateLimit-Limit": str(settings.RATE_LIMIT_REQUESTS),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                    "Retry-After": str(reset_time),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(settings.RATE_LIMIT_REQUESTS)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    def _get_client_id(self, request: Request) -> str:
        """Provider token digest when one is sent in a header, else client IP."""
        for header in TOKEN_HEADERS:
            value = request.headers.get(header)
            if value:
                digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]
                return f"token:{digest}"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = request.client.host if request.client else "unknown"

        return f"ip:{client_ip}"

    async def _check_rate_limit(self, client_id: str) -> tuple[bool, int, int]:
        """Check rate limit using Redis sliding window.

        Returns:
            Tuple of (is_allowed, remaining_requests, reset_time_seconds)
        """
        try:
            redis = get_redis()
            key = f"ratelimit:{client_id}"
            now = time.time()
            window_start = now - settings.RATE_LIMIT_WINDOW
            member = f"{now:.6f}"

            pipe = redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.zadd(key, {member: now})
            pipe.expire(key, settings.RATE_LIMIT_WINDOW)
            results = await pipe.execute()
            request_count = results[1]

            remaining = max(0, settings.RATE_LIMIT_REQUESTS - request_count - 1)
            reset_time = settings.RATE_LIMIT_WINDOW

            if request_count >= settings.RATE_LIMIT_REQUESTS:
                # Over the limit: do not count the rejected request
                await redis.zrem(key, member)
                return False, 0, reset_time

            return True, remaining, reset_time

        except Exception:
            # Fail open when Redis is unavailable
            return True, settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW
