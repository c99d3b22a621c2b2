# rsvp_service/rate_limit.py

# =================================================================================
# 🚦 Lightweight in-memory rate limit
# ---------------------------------------------------------------------------------
# - Sliding window per key (client IP + route).
# - Single-process only (uvicorn without workers).
# - Multi-instance deployments should use a reverse proxy or a shared store.
# =================================================================================

import os
import time
from collections import deque
from typing import Dict, Tuple

from fastapi import HTTPException, Request, status
from loguru import logger

# key → deque of timestamps (seconds), and the window each key was last checked with
_BUCKETS: Dict[str, deque] = {}
_WINDOWS: Dict[str, int] = {}

SWEEP_INTERVAL_S = 60
_last_sweep = 0.0


def _now() -> float:
    return time.time()


def _sweep(now: float) -> None:
    """Forgets keys whose newest attempt is already outside their window."""
    for key, bucket in list(_BUCKETS.items()):
        if not bucket or bucket[-1] <= now - _WINDOWS.get(key, 0):
            _BUCKETS.pop(key, None)
            _WINDOWS.pop(key, None)


def check(key: str, max_req: int, window_s: int) -> Tuple[bool, int]:
    """
    Registers one attempt for `key`.
    Returns (allowed, retry_after_seconds); retry_after is 0 when allowed.
    """
    global _last_sweep

    if max_req <= 0:
        return True, 0

    now = _now()
    if now - _last_sweep >= SWEEP_INTERVAL_S:
        _sweep(now)
        _last_sweep = now

    bucket = _BUCKETS.setdefault(key, deque())
    _WINDOWS[key] = window_s

    # Drop timestamps outside [now - window_s, now].
    cutoff = now - window_s
    while bucket and bucket[0] <= cutoff:
        bucket.popleft()

    if len(bucket) >= max_req:
        retry_after = max(1, int(bucket[0] + window_s - now) + 1)
        logger.warning("Rate limit hit for key='{}' ({}/{} in {}s)", key, len(bucket), max_req, window_s)
        return False, retry_after

    bucket.append(now)
    return True, 0


def is_allowed(key: str, max_req: int, window_s: int) -> bool:
    """True when the action is allowed for `key` under (max_req / window_s)."""
    allowed, _ = check(key, max_req, window_s)
    return allowed


def get_limits_from_env(prefix: str, default_max: int, default_window: int) -> Tuple[int, int]:
    """Reads {prefix}_MAX and {prefix}_WINDOW (seconds); defaults when missing or invalid."""
    try:
        max_req = int(os.getenv(f"{prefix}_MAX", str(default_max)))
        window = int(os.getenv(f"{prefix}_WINDOW", str(default_window)))
    except ValueError:
        max_req, window = default_max, default_window
    return max_req, window


def reset() -> None:
    """Forgets every bucket (used between tests)."""
    global _last_sweep
    _BUCKETS.clear()
    _WINDOWS.clear()
    _last_sweep = 0.0


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce(request: Request, scope: str, prefix: str, default_max: int, default_window: int) -> None:
    """Raises 429 with Retry-After when the caller exceeded the limit for `scope`."""
    max_req, window = get_limits_from_env(prefix, default_max, default_window)
    allowed, retry_after = check(f"{scope}:{client_ip(request)}", max_req, window)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )
