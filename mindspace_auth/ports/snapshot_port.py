"""
Snapshot Store Port - Persisted {user, is_authenticated} across restarts.

Implementations:
- RedisSnapshotAdapter: JSON under a single Redis key
- MemorySnapshotAdapter: In-process dict (testing only)
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any


class SnapshotStorePort(ABC):
    """Port: Load, save and clear the persisted identity snapshot."""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """
        Read the persisted snapshot.

        Returns:
            Snapshot dict, or None if nothing is stored

        Raises:
            SnapshotStoreError: If stored data cannot be read or decoded
        """
        pass

    @abstractmethod
    def save(self, data: Dict[str, Any]) -> None:
        """Overwrite the persisted snapshot."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete the persisted snapshot."""
        pass
