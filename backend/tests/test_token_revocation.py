from __future__ import annotations

from redis.exceptions import ConnectionError as RedisConnectionError

from rti_tracker.config import settings
from rti_tracker.revocation import TokenRevocationStore


class _BrokenRedis:
    def exists(self, _key):
        raise RedisConnectionError("redis down")


def test_revoke_sets_ttl_to_remaining_lifetime_plus_leeway(fake_redis) -> None:
    store = TokenRevocationStore(fake_redis)

    store.revoke("abc", expires_at=1_000_600, now=1_000_000)

    key = "auth:revoked:jti:abc"
    assert fake_redis.values[key] == "1"
    assert fake_redis.ttls[key] == 600 + settings.JWT_LEEWAY_SECONDS
    assert store.is_revoked("abc")
    assert not store.is_revoked("other")


def test_revoke_skips_already_expired_tokens(fake_redis) -> None:
    store = TokenRevocationStore(fake_redis)

    store.revoke("old", expires_at=1_000_000, now=1_000_000 + settings.JWT_LEEWAY_SECONDS + 5)

    assert fake_redis.values == {}


def test_is_revoked_fails_open_when_redis_is_down() -> None:
    assert TokenRevocationStore(_BrokenRedis()).is_revoked("abc") is False
