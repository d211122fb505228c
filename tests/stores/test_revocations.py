from unittest.mock import MagicMock

import pytest
import redis

from exceptions import StoreError, StoreTimeoutError
from stores.revocations import RedisTokenRevocationStore


class TestRedisTokenRevocationStore:
    def test_revoke_sets_key_with_ttl(self, fake_redis):
        store = RedisTokenRevocationStore(fake_redis)

        store.revoke("abc", 60)

        assert store.is_revoked("abc")
        assert not store.is_revoked("other")
        assert 0 < fake_redis.ttl("revoked:abc") <= 60

    def test_non_positive_ttl_still_stored(self, fake_redis):
        store = RedisTokenRevocationStore(fake_redis)

        store.revoke("abc", 0)

        assert store.is_revoked("abc")

    def test_timeout_is_reported(self):
        client = MagicMock()
        client.exists.side_effect = redis.TimeoutError("timed out")

        with pytest.raises(StoreTimeoutError):
            RedisTokenRevocationStore(client).is_revoked("abc")

    def test_connection_error_is_store_error(self):
        client = MagicMock()
        client.set.side_effect = redis.ConnectionError("refused")

        with pytest.raises(StoreError):
            RedisTokenRevocationStore(client).revoke("abc", 60)
