"""
Redis Snapshot Adapter - Redis-backed persisted identity snapshot.
"""

from typing import Optional, Dict, Any
import json

import redis

from mindspace_auth.ports.snapshot_port import SnapshotStorePort
from mindspace_auth.domain.errors import SnapshotStoreError


class RedisSnapshotAdapter(SnapshotStorePort):
    """
    Stores the snapshot as JSON under a single namespaced key.

    No TTL: the snapshot lives until sign-out clears it.
    """

    def __init__(
        self,
        redis_client=None,
        key: str = "mindspace-user-storage",
        prefix: str = "mindspace:",
        redis_url: str = "redis://localhost:6379/0",
    ):
        """
        Initialize Redis snapshot adapter.

        Args:
            redis_client: Redis client instance (redis.Redis)
            key: Storage key name
            prefix: Namespace prepended to the key
            redis_url: Used to build a client when none is given
        """
        self._redis = redis_client
        self._key = f"{prefix}{key}"
        self._redis_url = redis_url

    @property
    def key(self) -> str:
        return self._key

    def _get_redis(self):
        """Lazy connect to Redis."""
        if self._redis is None:
            self._redis = redis.Redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Read the snapshot.

        Raises:
            SnapshotStoreError: If Redis is unreachable or the value is not a JSON object
        """
        try:
            raw = self._get_redis().get(self._key)
        except redis.RedisError as exc:
            raise SnapshotStoreError(f"Failed to read {self._key}: {exc}") from exc

        if not raw:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SnapshotStoreError(f"Corrupt snapshot under {self._key}") from exc

        if not isinstance(data, dict):
            raise SnapshotStoreError(f"Corrupt snapshot under {self._key}")
        return data

    def save(self, data: Dict[str, Any]) -> None:
        """Write the snapshot."""
        try:
            self._get_redis().set(self._key, json.dumps(data))
        except redis.RedisError as exc:
            raise SnapshotStoreError(f"Failed to write {self._key}: {exc}") from exc

    def clear(self) -> None:
        """Delete the snapshot."""
        try:
            self._get_redis().delete(self._key)
        except redis.RedisError as exc:
            raise SnapshotStoreError(f"Failed to clear {self._key}: {exc}") from exc
