"""Per-IP login throttling on Redis counters."""
from __future__ import annotations

import ipaddress
import logging

from fastapi import Request
from redis.exceptions import RedisError

from ..config import settings
from ..revocation import get_redis

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60


def client_ip(request: Request) -> str:
    """Caller address; proxy headers count only when TRUST_PROXY_HEADERS is on."""
    if settings.TRUST_PROXY_HEADERS:
        candidates = (
            request.headers.get("x-real-ip"),
            # First hop of "client, proxy1, proxy2".
            (request.headers.get("x-forwarded-for") or "").split(",")[0].strip(),
        )
        for candidate in candidates:
            if not candidate:
                continue
            try:
                return str(ipaddress.ip_address(candidate))
            except ValueError:
                continue
    return request.client.host if request.client else "unknown"


class LoginThrottle:
    """Fixed-window attempt counter keyed by client IP."""

    KEY_PREFIX = "auth:rl:login:ip:"

    def __init__(self, client, *, limit: int, window_seconds: int = WINDOW_SECONDS) -> None:
        self._client = client
        self._limit = limit
        self._window = window_seconds

    def hit(self, ip: str) -> int | None:
        """Count one attempt. Returns the seconds to wait once over the limit, else None.

        Redis failures let the attempt through.
        """
        key = f"{self.KEY_PREFIX}{ip}"
        try:
            attempts = int(self._client.incr(key))
            if attempts == 1:
                self._client.expire(key, self._window)
            ttl = self._client.ttl(key)
        except RedisError:
            logger.exception("Redis error during login rate limiting (fail-open)")
            return None
        if attempts <= self._limit:
            return None
        return int(ttl) if ttl is not None and ttl >= 0 else self._window


def get_login_throttle() -> LoginThrottle:
    """FastAPI dependency."""
    return LoginThrottle(get_redis(), limit=settings.AUTH_LOGIN_IP_LIMIT_PER_MINUTE)
