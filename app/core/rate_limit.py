"""
Simple in-memory rate limiting for public API endpoints
"""
from functools import wraps
from fastapi import HTTPException, status, Request
from typing import Callable, Optional
from datetime import datetime, timedelta
from collections import defaultdict
import logging
import threading

from app.services.geolocation import get_client_ip

logger = logging.getLogger(__name__)

# In-memory store for rate limiting
# Format: {identifier: [timestamp, ...]}
_rate_limit_store = defaultdict(list)
_rate_limit_lock = threading.Lock()

# Cleanup old entries every 5 minutes
_last_cleanup = datetime.utcnow()
_cleanup_interval = timedelta(minutes=5)


def _cleanup_old_entries():
    """Remove entries older than the time window"""
    global _last_cleanup

    now = datetime.utcnow()
    if now - _last_cleanup < _cleanup_interval:
        return

    with _rate_limit_lock:
        _last_cleanup = now
        cutoff_time = now - timedelta(hours=1)  # Keep last hour of data

        for key in list(_rate_limit_store.keys()):
            _rate_limit_store[key] = [ts for ts in _rate_limit_store[key] if ts > cutoff_time]
            if not _rate_limit_store[key]:
                del _rate_limit_store[key]


def reset_rate_limits():
    """Forget all recorded requests."""
    with _rate_limit_lock:
        _rate_limit_store.clear()


def client_identifier(request: Optional[Request]) -> str:
    """Proxy-reported client IP, falling back to the socket peer."""
    if request is None:
        return "unknown"
    ip = get_client_ip(request.headers)
    if ip:
        return ip
    return request.client.host if request.client else "unknown"


def rate_limit(max_requests: Callable[[], int], window_seconds: Callable[[], int]):
    """
    Rate limiting decorator for FastAPI endpoints, keyed per client IP and endpoint.

    Limits are callables so they are read from settings at request time.
    The endpoint must declare a `request: Request` parameter.

    Usage:
        @router.post("/endpoint")
        @rate_limit(lambda: settings.LOGIN_RATE_LIMIT, lambda: settings.RATE_LIMIT_WINDOW_SECONDS)
        def my_endpoint(request: Request, ...):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if request is None:
                request = next((a for a in args if isinstance(a, Request)), None)

            identifier = f"{func.__name__}:{client_identifier(request)}"
            limit = max_requests()
            window = window_seconds()

            _cleanup_old_entries()

            now = datetime.utcnow()
            window_start = now - timedelta(seconds=window)

            with _rate_limit_lock:
                recent_requests = [ts for ts in _rate_limit_store[identifier] if ts > window_start]

                if len(recent_requests) >= limit:
                    logger.warning(
                        "Rate limit exceeded for %s (%d requests in %ds)",
                        identifier, len(recent_requests), window,
                    )
                    raise HTTPException(
                        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                        detail="Too many requests. Please try again later.",
                    )

                recent_requests.append(now)
                _rate_limit_store[identifier] = recent_requests

            return func(*args, **kwargs)

        return wrapper
    return decorator
