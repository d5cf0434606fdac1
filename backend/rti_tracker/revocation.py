"""Access-token revocation backed by Redis.

Revoked token ids are stored with a TTL equal to the token's remaining
validity, so entries expire on their own and survive process restarts.
"""
from __future__ import annotations

import logging
import time

import redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)

_redis_client = None


def get_redis():
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


class TokenRevocationStore:
    KEY_PREFIX = "auth:revoked:jti:"

    def __init__(self, client) -> None:
        self._client = client

    def revoke(self, jti: str, *, expires_at: int, now: int | None = None) -> None:
        """Mark ``jti`` revoked until ``expires_at`` (unix seconds). Raises RedisError."""
        current = int(time.time()) if now is None else now
        ttl = int(expires_at) - current + int(settings.JWT_LEEWAY_SECONDS)
        if ttl <= 0:
            # Already expired; nothing left to revoke.
            return
        self._client.set(f"{self.KEY_PREFIX}{jti}", "1", ex=ttl)

    def is_revoked(self, jti: str) -> bool:
        try:
            return bool(self._client.exists(f"{self.KEY_PREFIX}{jti}"))
        except RedisError:
            # Fail open if Redis is down to avoid total auth outage.
            logger.exception("Redis error during token revocation check (fail-open)")
            return False


def get_revocation_store() -> TokenRevocationStore:
    """FastAPI dependency."""
    return TokenRevocationStore(get_redis())
