"""
Unit tests for SessionManager with in-memory adapters.
"""

import pytest
from mindspace_auth.sdk.session_manager import (
    SessionManager,
    ACCOUNT_CREATION_FAILED,
    ACCOUNT_SETUP_FAILED,
    PROFILE_UNAVAILABLE,
)
from mindspace_auth.sdk.reconciler import ProfileReconciler, RetryPolicy
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.adapters import (
    MemoryIdentityAdapter,
    MemoryProfileAdapter,
    MemorySnapshotAdapter,
)
from mindspace_auth.domain.errors import ProviderError, ProfileStoreError


def no_sleep(seconds):
    pass


class UnreachableLogout(MemoryIdentityAdapter):
    """Provider whose logout call fails."""

    def end_session(self):
        raise ProviderError.from_message("network down")


class ReadOnlyProfiles(MemoryProfileAdapter):
    """Reads another store; every write fails."""

    def __init__(self, source):
        super().__init__()
        self._source = source

    def get(self, identity_id):
        return self._source.get(identity_id)

    def upsert(self, identity_id, fields):
        self.upsert_calls += 1
        raise ProfileStoreError("profiles table is read-only")


class BrokenLogout(MemoryIdentityAdapter):
    def end_session(self):
        raise RuntimeError("socket closed")


class TimingOutProvider(MemoryIdentityAdapter):
    def current_session(self):
        raise TimeoutError("identity service timed out")


class SilentProvider(MemoryIdentityAdapter):
    """Reports success without returning an identity."""

    def create_account(self, email, password, metadata=None):
        return None


class ExplodingProvider(MemoryIdentityAdapter):
    def create_account(self, email, password, metadata=None):
        raise RuntimeError("boom")


class SessionManagerTestCase:
    """Shared fixtures."""

    identity_class = MemoryIdentityAdapter

    def setup_method(self):
        """Set up test fixtures."""
        self.identity = self.identity_class()
        self.profiles = MemoryProfileAdapter()
        self.store = MemorySnapshotAdapter()
        self.manager = self.build_manager()

    def build_manager(self, store=None):
        return SessionManager(
            identity=self.identity,
            reconciler=ProfileReconciler(self.profiles, RetryPolicy(sleep=no_sleep)),
            state=IdentityState(store or self.store),
        )


class TestSignUp(SessionManagerTestCase):
    """Test account creation."""

    def test_sign_up_creates_profile(self):
        result = self.manager.sign_up("ann@example.com", "password123", "Ann")

        assert result.success is True
        assert result.error is None
        assert result.user.name == "Ann"
        assert result.user.email == "ann@example.com"
        assert self.profiles.get(result.user.id) == result.user

        state = self.manager.state
        assert state.is_authenticated is True
        assert state.user == result.user
        assert state.is_loading is False
        assert self.store.load()["user"]["id"] == result.user.id

    def test_sign_up_survives_two_failed_profile_writes(self):
        self.profiles.fail_next_upserts(2)

        result = self.manager.sign_up("a@b.com", "password123", "Ann")

        assert result.success is True
        assert result.error is None
        assert result.user.email == "a@b.com"
        assert result.user.name == "Ann"
        assert result.user.created_at is not None
        assert self.profiles.upsert_calls == 3

    @pytest.mark.parametrize("email,password,name,confirm,message", [
        ("ann@example.com", "password123", "", None, "Please enter your name"),
        ("ann@example.com", "password123", " A ", None, "Name must be at least 2 characters long"),
        ("", "password123", "Ann", None, "Please enter your email"),
        ("not-an-email", "password123", "Ann", None, "Please enter a valid email address"),
        ("ann@example", "password123", "Ann", None, "Please enter a valid email address"),
        ("ann@example.com", "", "Ann", None, "Please enter a password"),
        ("ann@example.com", "short", "Ann", None, "Password must be at least 8 characters long"),
        ("ann@example.com", "password123", "Ann", "password124", "Passwords do not match"),
    ])
    def test_validation_never_reaches_provider(self, email, password, name, confirm, message):
        result = self.manager.sign_up(email, password, name, confirm_password=confirm)

        assert result.success is False
        assert result.error == message
        assert result.user is None
        assert email not in self.identity
        assert self.profiles.upsert_calls == 0
        assert self.manager.state.error == message

    def test_duplicate_account(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.manager.sign_out()

        result = self.manager.sign_up("ann@example.com", "password123", "Ann")

        assert result.success is False
        assert result.error == "This email is already registered. Please sign in instead."
        assert self.manager.state.is_authenticated is False

    def test_failed_profile_rolls_back_session(self):
        self.profiles.fail_next_upserts(3)

        result = self.manager.sign_up("a@b.com", "password123", "Ann")

        assert result.success is False
        assert result.error == ACCOUNT_SETUP_FAILED
        assert self.identity.current_session() is None
        assert self.manager.state.is_authenticated is False
        assert self.manager.state.user is None

    def test_orphaned_identity_recovers_through_sign_in(self):
        self.profiles.fail_next_upserts(3)
        self.manager.sign_up("a@b.com", "password123", "Ann")

        result = self.manager.sign_in("a@b.com", "password123")

        assert result.success is True
        assert result.user.name == "Ann"
        assert self.profiles.get(result.user.id) is not None

    def test_failed_rollback_still_signs_out_state(self):
        """Trigger row loaded via SIGNED_IN, reconcile fails, logout fails."""
        self.identity = UnreachableLogout(profile_trigger=self.profiles)
        manager = SessionManager(
            identity=self.identity,
            reconciler=ProfileReconciler(ReadOnlyProfiles(self.profiles), RetryPolicy(sleep=no_sleep)),
            state=IdentityState(self.store),
        )
        manager.restore_session()

        result = manager.sign_up("a@b.com", "password123", "Ann")

        assert result.success is False
        assert result.error == ACCOUNT_SETUP_FAILED
        assert self.identity.current_session() is None
        assert manager.state.user is None
        assert manager.state.is_authenticated is False
        assert self.store.load() == {"user": None, "is_authenticated": False}

    def test_sign_up_with_profile_trigger(self):
        """The provider's trigger already wrote the row; upsert updates it."""
        self.identity = MemoryIdentityAdapter(profile_trigger=self.profiles)
        manager = self.build_manager()

        result = manager.sign_up("ann@example.com", "password123", "Ann Lee")

        assert result.success is True
        assert len(self.profiles) == 1
        assert self.profiles.get(result.user.id).name == "Ann Lee"

    def test_sign_up_name_is_trimmed(self):
        result = self.manager.sign_up("ann@example.com", "password123", "  Ann  ")

        assert result.user.name == "Ann"


class TestSignUpProviderInconsistency(SessionManagerTestCase):
    identity_class = SilentProvider

    def test_missing_identity_is_a_failure(self):
        result = self.manager.sign_up("ann@example.com", "password123", "Ann")

        assert result.success is False
        assert result.error == ACCOUNT_CREATION_FAILED
        assert self.profiles.upsert_calls == 0


class TestSignUpUnexpectedError(SessionManagerTestCase):
    identity_class = ExplodingProvider

    def test_unexpected_error_is_normalized(self):
        result = self.manager.sign_up("ann@example.com", "password123", "Ann")

        assert result.success is False
        assert result.error == "boom"
        assert self.manager.state.is_loading is False
        assert self.manager.state.error == "boom"


class TestSignIn(SessionManagerTestCase):
    """Test authentication and profile self-healing."""

    def test_sign_in(self):
        created = self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.manager.sign_out()

        result = self.manager.sign_in("ann@example.com", "password123")

        assert result.success is True
        assert result.user == created.user
        assert self.manager.state.is_authenticated is True

    def test_wrong_password(self):
        self.manager.sign_up("a@b.com", "password123", "Ann")
        self.manager.sign_out()

        result = self.manager.sign_in("a@b.com", "wrong")

        assert result.success is False
        assert result.user is None
        assert result.error == "Invalid email or password. Please try again."
        assert self.manager.state.is_authenticated is False

    @pytest.mark.parametrize("email,password", [("", "password123"), ("a@b.com", "")])
    def test_missing_fields(self, email, password):
        result = self.manager.sign_in(email, password)

        assert result.error == "Please enter both email and password"

    def test_self_heals_missing_profile(self):
        identity = self.identity.create_account("a@b.com", "password123")
        self.identity.discard_local_session()
        assert self.profiles.get(identity.identity_id) is None

        result = self.manager.sign_in("a@b.com", "password123")

        assert result.success is True
        assert result.user.id == identity.identity_id
        assert result.user.name == "a"
        assert self.profiles.get(identity.identity_id).name == "a"

    def test_self_heal_uses_sign_up_name(self):
        identity = self.identity.create_account("ann.smith@b.com", "password123", {"name": "Ann"})
        self.identity.discard_local_session()

        result = self.manager.sign_in("ann.smith@b.com", "password123")

        assert result.success is True
        assert result.user.name == "Ann"
        assert self.profiles.get(identity.identity_id).name == "Ann"

    def test_unhealable_profile_replaces_previous_user(self):
        """A failed sign-in never leaves an earlier user on screen."""
        self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.identity.create_account("bob@example.com", "password123")
        self.profiles.fail_next_upserts(3)

        result = self.manager.sign_in("bob@example.com", "password123")

        assert result.success is False
        assert result.error == PROFILE_UNAVAILABLE
        assert self.manager.state.user is None
        assert self.manager.state.is_authenticated is False
        assert self.store.load()["is_authenticated"] is False

    def test_unhealable_profile_rejects_sign_in(self):
        self.identity.create_account("a@b.com", "password123")
        self.identity.discard_local_session()
        self.profiles.fail_next_upserts(3)

        result = self.manager.sign_in("a@b.com", "password123")

        assert result.success is False
        assert result.error == PROFILE_UNAVAILABLE
        assert self.identity.current_session() is None
        assert self.manager.state.is_authenticated is False

    def test_unconfirmed_account(self):
        self.identity = MemoryIdentityAdapter(require_confirmation=True)
        manager = self.build_manager()
        manager.sign_up("ann@example.com", "password123", "Ann")
        manager.sign_out()

        result = manager.sign_in("ann@example.com", "password123")

        assert result.error == "Please confirm your email address before signing in."

        self.identity.confirm("ann@example.com")
        assert manager.sign_in("ann@example.com", "password123").success is True

    def test_loading_flag_wraps_the_call(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.manager.sign_out()
        loading = []
        self.manager.state.subscribe(lambda snap: loading.append(snap.is_loading))

        self.manager.sign_in("ann@example.com", "password123")

        assert loading[0] is True
        assert loading[-1] is False


class TestSuccessImpliesProfile(SessionManagerTestCase):
    """Every successful sign-up/sign-in has a matching profile row."""

    def test_every_success_has_profile_row(self):
        outcomes = [
            self.manager.sign_up("one@example.com", "password123", "One"),
            self.manager.sign_in("one@example.com", "password123"),
        ]
        self.profiles.fail_next_upserts(1)
        outcomes.append(self.manager.sign_up("two@example.com", "password123", "Two"))
        self.profiles.fail_next_upserts(3)
        outcomes.append(self.manager.sign_up("three@example.com", "password123", "Three"))
        outcomes.append(self.manager.sign_in("three@example.com", "password123"))

        for result in outcomes:
            if result.success:
                assert self.profiles.get(result.user.id) is not None
        assert [r.success for r in outcomes] == [True, True, True, False, True]


class TestSignOut(SessionManagerTestCase):
    """Test sign-out completeness."""

    def test_sign_out(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")

        result = self.manager.sign_out()

        assert result.error is None
        assert self.identity.current_session() is None
        assert self.manager.state.user is None
        assert self.manager.state.is_authenticated is False
        assert self.store.load() is None


class TestSignOutProviderFailure(SessionManagerTestCase):
    identity_class = UnreachableLogout

    def test_local_state_cleared_when_provider_fails(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")
        assert self.store.load() is not None

        result = self.manager.sign_out()

        assert result.error == "network down"
        assert self.manager.state.user is None
        assert self.manager.state.is_authenticated is False
        assert self.manager.state.is_loading is False
        assert self.store.load() is None
        assert self.identity.current_session() is None


class TestSignOutUnexpectedFailure(SessionManagerTestCase):
    identity_class = BrokenLogout

    def test_local_state_cleared_on_unexpected_error(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")

        result = self.manager.sign_out()

        assert result.error == "socket closed"
        assert self.manager.state.user is None
        assert self.store.load() is None


class TestRestoreSession(SessionManagerTestCase):
    """Test session restore and change notifications."""

    def test_restores_existing_session(self):
        created = self.manager.sign_up("ann@example.com", "password123", "Ann")

        fresh = self.build_manager(store=MemorySnapshotAdapter())
        fresh.restore_session()

        assert fresh.state.is_initialized is True
        assert fresh.state.is_authenticated is True
        assert fresh.state.user == created.user
        assert fresh.state.is_loading is False

    def test_no_session_overrides_persisted_snapshot(self):
        created = self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.identity.discard_local_session()

        restarted = self.build_manager()
        assert restarted.state.user == created.user  # from the persisted snapshot

        restarted.restore_session()

        assert restarted.state.is_authenticated is False
        assert restarted.state.user is None

    def test_session_without_profile_is_signed_out(self):
        self.identity.create_account("a@b.com", "password123")

        self.manager.restore_session()

        assert self.manager.state.is_authenticated is False
        assert len(self.profiles) == 0  # restore never heals

    def test_deleted_profile_is_signed_out(self):
        created = self.manager.sign_up("ann@example.com", "password123", "Ann")
        assert self.profiles.delete(created.user.id) is True
        assert self.profiles.delete(created.user.id) is False

        fresh = self.build_manager(store=MemorySnapshotAdapter())
        fresh.restore_session()

        assert fresh.state.is_authenticated is False
        assert fresh.state.user is None

    def test_restore_is_idempotent(self):
        self.manager.restore_session()
        self.manager.restore_session()

        assert self.identity.listener_count == 1

    def test_sign_up_after_restore(self):
        self.manager.restore_session()

        result = self.manager.sign_up("ann@example.com", "password123", "Ann")

        assert result.success is True
        assert self.manager.state.is_authenticated is True
        assert self.manager.state.user == result.user

    def test_token_refresh_reloads_profile(self):
        self.manager.restore_session()
        result = self.manager.sign_up("ann@example.com", "password123", "Ann")
        self.profiles.upsert(result.user.id, {"name": "Annie"})

        self.identity.refresh_session()

        assert self.manager.state.user.name == "Annie"
        assert self.manager.state.is_authenticated is True

    def test_external_sign_out_clears_state(self):
        self.manager.restore_session()
        self.manager.sign_up("ann@example.com", "password123", "Ann")

        self.identity.end_session()

        assert self.manager.state.is_authenticated is False
        assert self.manager.state.user is None

    def test_close_unsubscribes(self):
        self.manager.restore_session()

        self.manager.close()

        assert self.identity.listener_count == 0


class TestRestoreFailSecure(SessionManagerTestCase):
    identity_class = TimingOutProvider

    def test_timeout_leaves_state_signed_out(self):
        profile = self.profiles.upsert("usr_1", {"email": "a@b.com", "name": "Ann"})
        store = MemorySnapshotAdapter({"user": profile.to_dict(), "is_authenticated": True})
        manager = self.build_manager(store=store)
        assert manager.state.is_authenticated is True

        manager.restore_session()

        assert manager.state.is_authenticated is False
        assert manager.state.user is None
        assert manager.state.is_initialized is True
        assert manager.state.error == "identity service timed out"
        assert self.identity.listener_count == 1


class TestPasswords(SessionManagerTestCase):
    """Test password reset and update."""

    def test_reset_password(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")

        result = self.manager.reset_password("ann@example.com")

        assert result.error is None
        assert self.identity.reset_requests == ["ann@example.com"]

    @pytest.mark.parametrize("email,message", [
        ("", "Please enter your email address"),
        ("ann", "Please enter a valid email address"),
    ])
    def test_reset_password_validation(self, email, message):
        assert self.manager.reset_password(email).error == message

    def test_update_password(self):
        self.manager.sign_up("ann@example.com", "password123", "Ann")

        result = self.manager.update_password("new-password", "new-password")
        self.manager.sign_out()

        assert result.error is None
        assert self.manager.sign_in("ann@example.com", "new-password").success is True

    def test_update_password_requires_session(self):
        result = self.manager.update_password("new-password")

        assert result.error == "Auth session missing!"
        assert self.manager.state.error == "Auth session missing!"

    @pytest.mark.parametrize("password,confirm,message", [
        ("", None, "Please enter a new password"),
        ("short", None, "Password must be at least 8 characters long"),
        ("new-password", "other-password", "Passwords do not match"),
    ])
    def test_update_password_validation(self, password, confirm, message):
        assert self.manager.update_password(password, confirm).error == message

    def test_clear_error(self):
        self.manager.sign_in("", "")
        assert self.manager.state.error is not None

        self.manager.clear_error()

        assert self.manager.state.error is None
