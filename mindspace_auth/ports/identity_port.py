"""
Identity Service Port - Interface for the remote identity provider.

Implementations:
- SupabaseIdentityAdapter: Supabase GoTrue REST API
- MemoryIdentityAdapter: In-memory provider (testing only)
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from mindspace_auth.domain.identity import Identity
from mindspace_auth.domain.session import Session
from mindspace_auth.domain.events import ChangeListener, Subscription


class IdentityServicePort(ABC):
    """Port: Create accounts, authenticate, and track the current session."""

    @abstractmethod
    def create_account(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Identity]:
        """
        Create a credential.

        Args:
            email: Account email
            password: Plain-text password (never stored by the caller)
            metadata: User metadata attached to the account (e.g. name)

        Returns:
            Created identity, or None if the provider returned none

        Raises:
            ProviderError: If the provider rejects the request
        """
        pass

    @abstractmethod
    def authenticate(self, email: str, password: str) -> Optional[Identity]:
        """
        Authenticate with email and password, starting a session.

        Returns:
            Authenticated identity, or None if the provider returned none

        Raises:
            ProviderError: If credentials are rejected
        """
        pass

    @abstractmethod
    def end_session(self) -> None:
        """
        End the current session on the provider.

        Raises:
            ProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    def current_session(self) -> Optional[Session]:
        """
        Get the current session.

        Returns:
            Session if one is active, None otherwise
        """
        pass

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> Subscription:
        """
        Register for change notifications.

        Args:
            listener: Called with (event, identity_id or None)

        Returns:
            Subscription handle
        """
        pass

    @abstractmethod
    def discard_local_session(self) -> None:
        """Forget any locally cached session tokens. No network call."""
        pass

    @abstractmethod
    def request_password_reset(self, email: str) -> None:
        """
        Send a password recovery email.

        Raises:
            ProviderError: If the provider rejects the request
        """
        pass

    @abstractmethod
    def update_password(self, password: str) -> None:
        """
        Change the password of the signed-in identity.

        Raises:
            ProviderError: If there is no session or the provider rejects it
        """
        pass
