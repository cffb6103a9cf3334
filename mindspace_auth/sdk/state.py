"""
Identity State - Application-wide view of who is signed in.

An explicit container rather than a module-level singleton: each
SessionManager owns one, and tests build isolated instances.
"""

import logging
from dataclasses import replace, fields as dataclass_fields
from typing import Callable, List, Optional
from mindspace_auth.ports.snapshot_port import SnapshotStorePort
from mindspace_auth.domain.snapshot import IdentitySnapshot
from mindspace_auth.domain.events import Subscription
from mindspace_auth.domain.errors import SnapshotStoreError

logger = logging.getLogger(__name__)

StateObserver = Callable[[IdentitySnapshot], None]

_FIELDS = {f.name for f in dataclass_fields(IdentitySnapshot)}
_PERSISTED_FIELDS = {"user", "is_authenticated"}


class IdentityState:
    """
    Observable identity state with a persisted {user, is_authenticated} part.

    Lifecycle:
    - init(): read the persisted snapshot (once)
    - update(**fields): change fields, persist, notify observers
    - clear(): back to signed-out and delete the persisted snapshot
    - teardown(): drop all observers
    """

    def __init__(self, store: SnapshotStorePort):
        self._store = store
        self._snapshot = IdentitySnapshot()
        self._observers: List[StateObserver] = []
        self._loaded = False

    @property
    def snapshot(self) -> IdentitySnapshot:
        return self._snapshot

    @property
    def user(self):
        return self._snapshot.user

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._snapshot.error

    @property
    def is_initialized(self) -> bool:
        return self._snapshot.is_initialized

    def init(self) -> IdentitySnapshot:
        """
        Load the persisted snapshot. Subsequent calls are no-ops.

        A missing, unreadable or malformed snapshot leaves the state signed out.
        """
        if self._loaded:
            return self._snapshot
        self._loaded = True

        try:
            data = self._store.load()
        except SnapshotStoreError as exc:
            logger.warning("Discarding unreadable identity snapshot: %s", exc)
            return self._snapshot

        if not data:
            return self._snapshot

        try:
            restored = IdentitySnapshot.from_persisted(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed identity snapshot: %s", exc)
            return self._snapshot

        self._set(restored)
        return self._snapshot

    def update(self, **changes) -> IdentitySnapshot:
        """
        Apply field changes.

        Raises:
            ValueError: On an unknown field
        """
        unknown = set(changes) - _FIELDS
        if unknown:
            raise ValueError(f"Unknown identity state fields: {sorted(unknown)}")

        new = replace(self._snapshot, **changes)
        if new == self._snapshot:
            return self._snapshot

        old = self._snapshot
        self._set(new)

        if any(getattr(old, name) != getattr(new, name) for name in _PERSISTED_FIELDS):
            self._persist()
        return self._snapshot

    def set_user(self, user) -> IdentitySnapshot:
        """Set the user; is_authenticated follows whether one is given."""
        return self.update(user=user, is_authenticated=user is not None)

    def clear(self) -> IdentitySnapshot:
        """Sign out locally and delete the persisted snapshot."""
        self._set(replace(
            self._snapshot,
            user=None,
            is_authenticated=False,
            is_loading=False,
            error=None,
        ))
        try:
            self._store.clear()
        except SnapshotStoreError as exc:
            # Keep going: in-memory state is already signed out
            logger.error("Failed to clear identity snapshot: %s", exc)
        return self._snapshot

    def subscribe(self, observer: StateObserver) -> Subscription:
        """
        Register an observer called with the new snapshot after each change.

        Returns:
            Subscription handle
        """
        self._observers.append(observer)

        def cancel():
            if observer in self._observers:
                self._observers.remove(observer)

        return Subscription(cancel)

    def teardown(self):
        """Remove all observers."""
        self._observers.clear()

    def _set(self, snapshot: IdentitySnapshot):
        self._snapshot = snapshot
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Identity state observer failed")

    def _persist(self):
        try:
            self._store.save(self._snapshot.persisted())
        except SnapshotStoreError as exc:
            logger.error("Failed to persist identity snapshot: %s", exc)
