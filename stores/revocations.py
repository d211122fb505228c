import redis

from exceptions import StoreError, StoreTimeoutError
from logging_config import get_logger
from stores.base import TokenRevocationStore

logger = get_logger(__name__)


class RedisTokenRevocationStore(TokenRevocationStore):
    """Revoked token ids live under ``revoked:<jti>`` and expire with the token."""

    key_prefix = "revoked:"

    def __init__(self, client: redis.Redis):
        self.client = client

    def revoke(self, token_id: str, ttl_seconds: int) -> None:
        try:
            self.client.set(f"{self.key_prefix}{token_id}", 1, ex=max(ttl_seconds, 1))
        except redis.TimeoutError as e:
            raise StoreTimeoutError("revoke timed out") from e
        except redis.RedisError as e:
            logger.error("revocation_store_error", operation="revoke", error=e.__class__.__name__)
            raise StoreError("revoke failed") from e

    def is_revoked(self, token_id: str) -> bool:
        try:
            return bool(self.client.exists(f"{self.key_prefix}{token_id}"))
        except redis.TimeoutError as e:
            raise StoreTimeoutError("is_revoked timed out") from e
        except redis.RedisError as e:
            logger.error("revocation_store_error", operation="is_revoked", error=e.__class__.__name__)
            raise StoreError("is_revoked failed") from e
