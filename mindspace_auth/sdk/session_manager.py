"""
Session Manager - Sign-up, sign-in, sign-out and session restore.

Composes the identity provider, the profile reconciler and the identity
state. Every public operation returns a result object; nothing raises
into the caller.
"""

import logging
from dataclasses import replace
from typing import Optional, Callable
from mindspace_auth.ports.identity_port import IdentityServicePort
from mindspace_auth.domain.identity import Identity
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.result import AuthResult, OperationResult
from mindspace_auth.domain.events import AuthEvent, Subscription
from mindspace_auth.domain.errors import ProviderError, ProfileStoreError, SnapshotStoreError
from mindspace_auth.adapters.memory_snapshot import MemorySnapshotAdapter
from mindspace_auth.sdk.reconciler import ProfileReconciler
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.sdk import validation

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred"
ACCOUNT_CREATION_FAILED = "Failed to create account. Please try again."
ACCOUNT_SETUP_FAILED = "Account setup failed. Please try signing up again."
SIGN_IN_FAILED = "Failed to sign in"
PROFILE_UNAVAILABLE = "Unable to load user profile. Please try again."

# Events after which the profile of the session's identity is (re)loaded
_PROFILE_EVENTS = {AuthEvent.SIGNED_IN, AuthEvent.TOKEN_REFRESHED, AuthEvent.USER_UPDATED}


class SessionManager:
    """
    Keeps identity, profile and application state consistent.

    Example:
        from mindspace_auth import SessionManager, ProfileReconciler, IdentityState
        from mindspace_auth.adapters import (
            MemoryIdentityAdapter, MemoryProfileAdapter, MemorySnapshotAdapter,
        )

        manager = SessionManager(
            identity=MemoryIdentityAdapter(),
            reconciler=ProfileReconciler(MemoryProfileAdapter()),
            state=IdentityState(MemorySnapshotAdapter()),
        )
        manager.restore_session()

        result = manager.sign_up("ann@example.com", "password123", "Ann")
        if result.success:
            print(manager.state.user.name)

        manager.sign_out()
    """

    def __init__(
        self,
        identity: IdentityServicePort,
        reconciler: ProfileReconciler,
        state: Optional[IdentityState] = None,
    ):
        """
        Initialize the manager and load the persisted identity snapshot.

        Args:
            identity: Identity provider adapter
            reconciler: Profile reconciler over the profile store
            state: Identity state (in-memory snapshot if omitted)
        """
        self._identity = identity
        self._reconciler = reconciler
        self._state = state or IdentityState(MemorySnapshotAdapter())
        self._subscription: Optional[Subscription] = None
        self._state.init()

    @property
    def state(self) -> IdentityState:
        return self._state

    def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        confirm_password: Optional[str] = None,
    ) -> AuthResult:
        """
        Create an account and its profile.

        If the profile can't be written the new session is ended, so no
        caller ever holds an identity without a profile. Retrying sign-up
        (or signing in) is safe afterwards.

        Args:
            email: Account email
            password: At least 8 characters
            name: Display name, at least 2 characters
            confirm_password: Checked against password when given

        Returns:
            AuthResult
        """
        error = validation.validate_sign_up(email, password, name, confirm_password)
        if error:
            self._state.update(error=error)
            return AuthResult.fail(error)

        return self._run("Sign-up", lambda: self._sign_up(email, password, name.strip()))

    def sign_in(self, email: str, password: str) -> AuthResult:
        """
        Authenticate and load the profile, creating it if it is missing.

        Returns:
            AuthResult
        """
        error = validation.validate_sign_in(email, password)
        if error:
            self._state.update(error=error)
            return AuthResult.fail(error)

        return self._run("Sign-in", lambda: self._sign_in(email, password))

    def sign_out(self) -> OperationResult:
        """
        End the session.

        Local state is cleared whether or not the provider call succeeds;
        a provider failure is still reported in the result.

        Returns:
            OperationResult with the provider error, if any
        """
        self._state.update(is_loading=True)
        error = None

        try:
            self._identity.end_session()
        except ProviderError as exc:
            logger.warning("Provider sign-out failed: %s", exc.message)
            error = exc.message
        except Exception as exc:
            logger.exception("Sign-out failed unexpectedly")
            error = str(exc) or UNEXPECTED_ERROR
        finally:
            self._discard_local_session()
            self._state.clear()

        return OperationResult(error=error)

    def restore_session(self) -> None:
        """
        Derive the identity state from the provider's current session and
        start listening for provider changes.

        Runs once per manager; later calls return immediately. Any failure
        leaves the state signed out.
        """
        if self._state.is_initialized:
            return

        self._state.update(is_loading=True, error=None)
        try:
            user = self._current_user()
        except Exception as exc:
            logger.warning("Session restore failed, continuing signed out: %s", exc)
            self._state.update(
                user=None,
                is_authenticated=False,
                is_loading=False,
                error=str(exc) or UNEXPECTED_ERROR,
                is_initialized=True,
            )
        else:
            self._state.update(
                user=user,
                is_authenticated=user is not None,
                is_loading=False,
                is_initialized=True,
            )

        self._subscribe_once()

    def reset_password(self, email: str) -> OperationResult:
        """Send a password recovery email."""
        error = validation.validate_reset_request(email)
        if error:
            return OperationResult(error=error)

        return self._run_operation(
            "Password reset",
            lambda: self._identity.request_password_reset(email),
        )

    def update_password(self, password: str, confirm_password: Optional[str] = None) -> OperationResult:
        """Change the signed-in user's password."""
        error = validation.validate_new_password(password, confirm_password)
        if error:
            return OperationResult(error=error)

        return self._run_operation(
            "Password update",
            lambda: self._identity.update_password(password),
        )

    def clear_error(self):
        self._state.update(error=None)

    def close(self):
        """Stop listening for provider changes and drop state observers."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._state.teardown()

    def _run(self, label: str, operation: Callable[[], AuthResult]) -> AuthResult:
        """Loading flags, outer error boundary and state update for an AuthResult operation."""
        self._state.update(is_loading=True, error=None)

        try:
            result = operation()
        except Exception as exc:
            logger.exception("%s failed unexpectedly", label)
            result = AuthResult.fail(str(exc) or UNEXPECTED_ERROR)

        if result.success:
            self._state.update(
                user=result.user,
                is_authenticated=True,
                is_loading=False,
                error=None,
            )
        else:
            logger.info("%s failed: %s", label, result.error)
            self._state.update(is_loading=False, error=result.error)
        return result

    def _run_operation(self, label: str, operation: Callable[[], None]) -> OperationResult:
        self._state.update(is_loading=True, error=None)
        error = None

        try:
            operation()
        except ProviderError as exc:
            logger.info("%s rejected by provider: %s", label, exc.kind.value)
            error = exc.user_message
        except Exception as exc:
            logger.exception("%s failed unexpectedly", label)
            error = str(exc) or UNEXPECTED_ERROR

        self._state.update(is_loading=False, error=error)
        return OperationResult(error=error)

    def _sign_up(self, email: str, password: str, name: str) -> AuthResult:
        try:
            identity = self._identity.create_account(email, password, {"name": name})
        except ProviderError as exc:
            logger.info("Account creation rejected: %s", exc.kind.value)
            return AuthResult.fail(exc.user_message)

        if identity is None:
            logger.error("Provider created no identity for a successful sign-up")
            return AuthResult.fail(ACCOUNT_CREATION_FAILED)

        profile = self._reconciler.reconcile(identity.identity_id, email, name)
        if profile is None:
            # Identity without profile: end the session so nobody uses it.
            self._end_session_quietly()
            return AuthResult.fail(ACCOUNT_SETUP_FAILED)

        return AuthResult.ok(profile)

    def _sign_in(self, email: str, password: str) -> AuthResult:
        try:
            identity = self._identity.authenticate(email, password)
        except ProviderError as exc:
            logger.info("Authentication rejected: %s", exc.kind.value)
            return AuthResult.fail(exc.user_message)

        if identity is None:
            return AuthResult.fail(SIGN_IN_FAILED)

        try:
            profile = self._heal_profile(identity if identity.email else replace(identity, email=email))
        except ProfileStoreError as exc:
            logger.error("Profile lookup for %s failed: %s", identity.identity_id, exc)
            profile = None

        if profile is None:
            self._end_session_quietly()
            return AuthResult.fail(PROFILE_UNAVAILABLE)

        return AuthResult.ok(profile)

    def _heal_profile(self, identity: Identity) -> Optional[Profile]:
        """
        Fetch the profile; create it when the row is missing.

        The name comes from the sign-up metadata, else the email local part.
        """
        profile = self._reconciler.fetch(identity.identity_id)
        if profile is not None:
            return profile

        logger.warning("Identity %s has no profile, creating one", identity.identity_id)
        name = identity.metadata.get("name") or identity.local_part
        return self._reconciler.reconcile(identity.identity_id, identity.email, name)

    def _current_user(self) -> Optional[Profile]:
        session = self._identity.current_session()
        if session is None:
            return None

        profile = self._reconciler.fetch(session.identity_id)
        if profile is None:
            logger.warning("Session for %s has no profile, treating as signed out", session.identity_id)
        return profile

    def _subscribe_once(self):
        if self._subscription is None:
            self._subscription = self._identity.subscribe(self._on_identity_change)

    def _on_identity_change(self, event: AuthEvent, identity_id: Optional[str]):
        if event == AuthEvent.SIGNED_OUT:
            self._state.set_user(None)
            return

        if event not in _PROFILE_EVENTS:
            return

        profile = None
        if identity_id is not None:
            try:
                profile = self._reconciler.fetch(identity_id)
            except ProfileStoreError as exc:
                logger.warning("Profile reload after %s failed: %s", event.value, exc)
        self._state.set_user(profile)

    def _end_session_quietly(self):
        """Best-effort compensating sign-out. Local state always ends signed out."""
        try:
            self._identity.end_session()
        except Exception as exc:
            logger.warning("Compensating sign-out failed: %s", exc)
        self._discard_local_session()
        self._state.set_user(None)

    def _discard_local_session(self):
        try:
            self._identity.discard_local_session()
        except SnapshotStoreError as exc:
            logger.error("Failed to discard cached session: %s", exc)
