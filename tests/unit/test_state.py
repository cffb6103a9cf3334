"""
Unit tests for IdentityState.
"""

import pytest
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.adapters.memory_snapshot import MemorySnapshotAdapter
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.errors import SnapshotStoreError


class UnreadableStore(MemorySnapshotAdapter):
    def load(self):
        raise SnapshotStoreError("disk on fire")


@pytest.fixture
def profile():
    return Profile.create(identity_id="usr_1", email="ann@example.com", name="Ann")


def test_init_with_empty_store():
    state = IdentityState(MemorySnapshotAdapter())

    snapshot = state.init()

    assert snapshot.user is None
    assert snapshot.is_authenticated is False
    assert snapshot.is_initialized is False


def test_init_restores_identity_only(profile):
    """Test loading/error flags never survive a restart."""
    store = MemorySnapshotAdapter({
        "user": profile.to_dict(),
        "is_authenticated": True,
        "is_loading": True,
        "error": "stale error",
    })
    state = IdentityState(store)

    state.init()

    assert state.user == profile
    assert state.is_authenticated is True
    assert state.is_loading is False
    assert state.error is None


def test_init_runs_once(profile):
    store = MemorySnapshotAdapter({"user": profile.to_dict(), "is_authenticated": True})
    state = IdentityState(store)
    state.init()
    state.set_user(None)

    state.init()

    assert state.user is None


@pytest.mark.parametrize("data", [
    {"user": {"id": "usr_1"}, "is_authenticated": True},
    {"user": {"id": "usr_1", "email": "a@b.com", "name": "A", "created_at": "not a date"}},
])
def test_init_discards_malformed_snapshot(data):
    state = IdentityState(MemorySnapshotAdapter(data))

    state.init()

    assert state.user is None
    assert state.is_authenticated is False


def test_init_discards_unreadable_snapshot():
    state = IdentityState(UnreadableStore())

    state.init()

    assert state.is_authenticated is False


def test_update_persists_identity_fields(profile):
    store = MemorySnapshotAdapter()
    state = IdentityState(store)

    state.update(is_loading=True, error="x")
    assert store.load() is None

    state.set_user(profile)
    assert store.load() == {"user": profile.to_dict(), "is_authenticated": True}


def test_update_rejects_unknown_fields():
    state = IdentityState(MemorySnapshotAdapter())

    with pytest.raises(ValueError):
        state.update(token="abc")


def test_observers_receive_snapshots(profile):
    state = IdentityState(MemorySnapshotAdapter())
    seen = []
    subscription = state.subscribe(seen.append)

    state.set_user(profile)
    state.set_user(profile)  # unchanged, no notification
    subscription.unsubscribe()
    state.set_user(None)

    assert len(seen) == 1
    assert seen[0].user == profile
    assert seen[0].is_authenticated is True


def test_failing_observer_does_not_block_others(profile):
    state = IdentityState(MemorySnapshotAdapter())
    seen = []

    def broken(snapshot):
        raise RuntimeError("render bug")

    state.subscribe(broken)
    state.subscribe(seen.append)

    state.set_user(profile)

    assert len(seen) == 1


def test_clear_removes_persisted_snapshot(profile):
    store = MemorySnapshotAdapter()
    state = IdentityState(store)
    state.set_user(profile)
    state.update(is_loading=True, error="boom")

    state.clear()

    assert store.load() is None
    assert state.user is None
    assert state.is_authenticated is False
    assert state.is_loading is False
    assert state.error is None


def test_teardown_drops_observers(profile):
    state = IdentityState(MemorySnapshotAdapter())
    seen = []
    state.subscribe(seen.append)

    state.teardown()
    state.set_user(profile)

    assert seen == []
