"""
Memory Identity Adapter - In-memory identity provider (testing only).
"""

import hashlib
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any

import jwt

from mindspace_auth.ports.identity_port import IdentityServicePort
from mindspace_auth.ports.profile_port import ProfileStorePort
from mindspace_auth.domain.identity import Identity
from mindspace_auth.domain.session import Session
from mindspace_auth.domain.events import AuthEvent, ChangeFeed, ChangeListener, Subscription
from mindspace_auth.domain.errors import ProviderError


@dataclass
class _Account:
    identity: Identity
    password_hash: str
    confirmed: bool


class MemoryIdentityAdapter(IdentityServicePort):
    """
    In-memory identity provider.

    Mirrors the hosted provider's observable behavior: the same error
    messages, a session started on sign-up when no email confirmation is
    required, and an optional server-side trigger that writes the profile
    row as soon as the account exists.

    WARNING: Only for testing. Accounts are lost on restart.
    """

    def __init__(
        self,
        secret: str = "memory-identity-secret",
        require_confirmation: bool = False,
        profile_trigger: Optional[ProfileStorePort] = None,
        token_ttl: int = 3600,
    ):
        """
        Initialize in-memory provider.

        Args:
            secret: HS256 secret used to sign access tokens
            require_confirmation: If True, new accounts can't sign in until confirm() is called
            profile_trigger: Profile store written on account creation (simulates a DB trigger)
            token_ttl: Access token lifetime in seconds
        """
        self._secret = secret
        self._require_confirmation = require_confirmation
        self._profile_trigger = profile_trigger
        self._token_ttl = token_ttl
        self._accounts: Dict[str, _Account] = {}
        self._session: Optional[Session] = None
        self._feed = ChangeFeed()
        self.reset_requests: List[str] = []

    def __contains__(self, email: str) -> bool:
        return email in self._accounts

    @property
    def listener_count(self) -> int:
        return len(self._feed)

    def create_account(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Identity]:
        """Create an account; starts a session unless confirmation is required."""
        if email in self._accounts:
            raise ProviderError.from_message("User already registered", status_code=422)

        identity = Identity(
            identity_id=str(uuid.uuid4()),
            email=email,
            metadata=dict(metadata or {}),
        )
        self._accounts[email] = _Account(
            identity=identity,
            password_hash=self._hash(password),
            confirmed=not self._require_confirmation,
        )

        if self._profile_trigger is not None:
            self._profile_trigger.upsert(
                identity.identity_id,
                {"email": email, "name": identity.metadata.get("name", identity.local_part)},
            )

        if not self._require_confirmation:
            self._start_session(identity, AuthEvent.SIGNED_IN)

        return identity

    def authenticate(self, email: str, password: str) -> Optional[Identity]:
        """Authenticate and start a session."""
        account = self._accounts.get(email)
        if not account or account.password_hash != self._hash(password):
            raise ProviderError.from_message("Invalid login credentials", status_code=400)

        if not account.confirmed:
            raise ProviderError.from_message("Email not confirmed", status_code=400)

        self._start_session(account.identity, AuthEvent.SIGNED_IN)
        return account.identity

    def end_session(self) -> None:
        """End the current session."""
        if self._session is None:
            return

        self._session = None
        self._feed.emit(AuthEvent.SIGNED_OUT, None)

    def current_session(self) -> Optional[Session]:
        """Get the current session, dropping it if expired."""
        if self._session and self._session.is_expired():
            self._session = None
            self._feed.emit(AuthEvent.SIGNED_OUT, None)
        return self._session

    def subscribe(self, listener: ChangeListener) -> Subscription:
        return self._feed.subscribe(listener)

    def discard_local_session(self) -> None:
        self._session = None

    def request_password_reset(self, email: str) -> None:
        """Record a recovery request. Unknown emails are accepted silently."""
        if email in self._accounts:
            self.reset_requests.append(email)

    def update_password(self, password: str) -> None:
        """Change the signed-in account's password."""
        account = self._session_account()
        account.password_hash = self._hash(password)
        self._feed.emit(AuthEvent.USER_UPDATED, account.identity.identity_id)

    def refresh_session(self) -> Session:
        """Issue a new access token for the current session."""
        account = self._session_account()
        return self._start_session(account.identity, AuthEvent.TOKEN_REFRESHED)

    def confirm(self, email: str) -> bool:
        """
        Confirm an account's email.

        Returns:
            True if confirmed, False if no such account
        """
        account = self._accounts.get(email)
        if not account:
            return False

        account.confirmed = True
        return True

    def _session_account(self) -> _Account:
        if self._session is None:
            raise ProviderError.from_message("Auth session missing!", status_code=401)

        for account in self._accounts.values():
            if account.identity.identity_id == self._session.identity_id:
                return account
        raise ProviderError.from_message("User not found", status_code=404)

    def _start_session(self, identity: Identity, event: AuthEvent) -> Session:
        now = datetime.utcnow()
        payload = {
            "sub": identity.identity_id,
            "email": identity.email,
            "iat": now,
            "exp": now + timedelta(seconds=self._token_ttl),
            "iss": "mindspace-memory",
        }
        token = jwt.encode(payload, self._secret, algorithm="HS256")

        self._session = Session.from_tokens(
            identity_id=identity.identity_id,
            access_token=token,
            refresh_token=uuid.uuid4().hex,
        )
        self._feed.emit(event, identity.identity_id)
        return self._session

    @staticmethod
    def _hash(password: str) -> str:
        return hashlib.sha256(password.encode()).hexdigest()
