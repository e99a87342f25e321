"""Redis-backed fixed-window rate limiting for the generation endpoints."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings

logger = logging.getLogger(__name__)

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def _client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def reset_local_counters() -> None:
    _local_counters.clear()


async def _consume_local_quota(
    key: str,
    limit: int,
    window_seconds: int,
    *,
    now: Optional[float] = None,
) -> bool:
    current = time.time() if now is None else now
    async with _local_lock:
        for stale in [name for name, (_, reset_at) in _local_counters.items() if reset_at <= current]:
            del _local_counters[stale]

        count, reset_at = _local_counters.get(key, (0, current + window_seconds))
        count += 1
        _local_counters[key] = (count, reset_at)
        return count <= limit


def rate_limit(
    prefix: str,
    limit: Optional[int] = None,
    window_seconds: Optional[int] = None,
) -> Callable[[Request], None]:
    """
    Return a FastAPI dependency that enforces per-client request quotas.

    Limits default to RATE_LIMIT_GENERATION_PER_WINDOW requests per
    RATE_LIMIT_WINDOW_SECONDS. Counters live in Redis; when Redis is
    unreachable an in-process counter takes over.
    """

    async def _dependency(request: Request):
        if getattr(request.app.state, "disable_rate_limits", False):
            return

        max_requests = int(limit or settings.RATE_LIMIT_GENERATION_PER_WINDOW)
        window = int(window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS)
        key = f"studio:rate:{prefix}:{_client_identifier(request)}"

        try:
            redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
            try:
                current = await redis_client.incr(key)
                if current == 1:
                    await redis_client.expire(key, window)
            finally:
                await redis_client.aclose()
            allowed = current <= max_requests
        except Exception as exc:
            logger.debug("rate limit falling back to local counter: %s", exc)
            allowed = await _consume_local_quota(key, max_requests, window)

        if not allowed:
            raise HTTPException(
                status_code=429,
                detail="Too many requests. Please try again later.",
            )

    return _dependency
