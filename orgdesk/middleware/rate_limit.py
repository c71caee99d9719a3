# orgdesk/middleware/rate_limit.py
"""
Fixed-window rate limiting via Upstash Redis.
Authenticated callers are keyed by user id, anonymous callers by client IP.
Fails open when Redis is unreachable or not configured.
"""

import base64
import json
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
import structlog

from orgdesk.config import settings
from orgdesk.services.cache import cache

logger = structlog.get_logger()

_WINDOW_SECONDS = 60

# Limits per path category, per window
_CATEGORY_LIMITS = {
    "auth": 20,
    "upload": 30,
    "export": 20,
}

SKIP_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


def _extract_user_id(request: Request) -> Optional[str]:
    """
    Read the `sub` claim without verifying the signature; the key only
    partitions counters, authentication happens later in the route.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    try:
        token = auth_header.split(" ", 1)[1]
        payload_b64 = token.split(".")[1]
        payload_b64 += "=" * (-len(payload_b64) % 4)
        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
        return payload.get("sub")
    except (IndexError, ValueError):
        return None


def _get_path_category(path: str) -> str:
    if path.startswith("/auth"):
        return "auth"
    if path.endswith("/upload-url"):
        return "upload"
    if "/attendance/export" in path:
        return "export"
    return "default"


def _limit_for(category: str) -> int:
    return _CATEGORY_LIMITS.get(category, settings.RATE_LIMIT_PER_MINUTE)


async def rate_limit_middleware(request: Request, call_next):
    path = request.url.path
    if not settings.rate_limit_enabled or path in SKIP_PATHS:
        return await call_next(request)

    # Use X-Forwarded-For when running behind a reverse proxy
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    category = _get_path_category(path)
    limit = _limit_for(category)
    identity = _extract_user_id(request) or client_ip
    key = f"rl:{category}:{identity}"

    try:
        results = await cache.pipeline([
            ["INCR", key],
            ["EXPIRE", key, _WINDOW_SECONDS],
        ])
        current = results[0].get("result", 0) if isinstance(results[0], dict) else 0
    except Exception as e:
        logger.warning("rate_limit_cache_error", error=str(e))
        return await call_next(request)

    if current > limit:
        logger.warning(
            "rate_limited",
            ip=client_ip,
            path=path,
            category=category,
            current=current,
            limit=limit,
        )
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests"},
            headers={"Retry-After": str(_WINDOW_SECONDS)},
        )

    return await call_next(request)
