"""
Memory Snapshot Adapter - In-process snapshot storage (testing only).
"""

import copy
from typing import Optional, Dict, Any
from mindspace_auth.ports.snapshot_port import SnapshotStorePort


class MemorySnapshotAdapter(SnapshotStorePort):
    """
    Keeps the persisted snapshot in a dict.

    WARNING: Only for testing. Nothing survives a restart.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = copy.deepcopy(initial) if initial is not None else None

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)

    def save(self, data: Dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)

    def clear(self) -> None:
        self._data = None
