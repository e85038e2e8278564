"""
Per-client rate limiter for the public write endpoints.

Configure via RATE_LIMIT_ENABLED (default: 1) and RATE_LIMIT_PER_MINUTE
(default: 30). Counts live in Redis when REDIS_URL is set so every worker
shares them; otherwise in process memory.
"""

from __future__ import annotations

import inspect
import time
from collections import defaultdict
from functools import wraps
from threading import Lock

from flask import current_app, jsonify, request

from charity_api.utils.cache import r

_lock = Lock()
_counts: dict[str, list[float]] = defaultdict(list)
_window = 60  # seconds


def _clean_old(ts_list: list[float], window: int) -> None:
    now = time.time()
    cutoff = now - window
    while ts_list and ts_list[0] < cutoff:
        ts_list.pop(0)


def is_rate_limited(key: str, limit: int, redis_url: str | None = None) -> bool:
    """Return True if the key has exceeded the limit within the window."""
    if limit <= 0:
        return False
    if redis_url:
        client = r(redis_url)
        bucket = f"ratelimit:{key}:{int(time.time() // _window)}"
        count = client.incr(bucket)
        if count == 1:
            client.expire(bucket, _window)
        return count > limit
    with _lock:
        _clean_old(_counts[key], _window)
        if len(_counts[key]) >= limit:
            return True
        _counts[key].append(time.time())
        return False


def reset() -> None:
    with _lock:
        _counts.clear()


def rate_limit_key() -> str:
    """Get rate limit key from request (IP)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def rate_limit_exceeded_response():
    return jsonify({"error": "rate limit exceeded", "retry_after": _window}), 429


def _limited(key_prefix: str) -> bool:
    cfg = current_app.config
    if not cfg.get("RATE_LIMIT_ENABLED", True):
        return False
    key = f"{key_prefix}:{rate_limit_key()}"
    return is_rate_limited(key, cfg.get("RATE_LIMIT_PER_MINUTE", 30), cfg.get("REDIS_URL"))


def rate_limited(key_prefix: str):
    """Decorator to rate limit a route by client IP."""

    def decorator(fn):
        if inspect.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args, **kwargs):
                if _limited(key_prefix):
                    return rate_limit_exceeded_response()
                return await fn(*args, **kwargs)

            return async_wrapper

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if _limited(key_prefix):
                return rate_limit_exceeded_response()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
