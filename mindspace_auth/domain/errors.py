"""
Error Domain - Exception hierarchy and provider error classification.

Provider messages are classified once, at the adapter boundary, into a
ProviderErrorKind. Everything downstream switches on the kind.
"""

from enum import Enum
from typing import Optional


class ProviderErrorKind(Enum):
    """Categories of identity provider failures."""
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNCONFIRMED_ACCOUNT = "unconfirmed_account"
    ACCOUNT_NOT_FOUND = "account_not_found"
    UNKNOWN = "unknown"


# Substring of the raw provider message -> kind
_MESSAGE_PATTERNS = [
    ("already registered", ProviderErrorKind.DUPLICATE_ACCOUNT),
    ("Invalid login credentials", ProviderErrorKind.INVALID_CREDENTIALS),
    ("Email not confirmed", ProviderErrorKind.UNCONFIRMED_ACCOUNT),
    ("User not found", ProviderErrorKind.ACCOUNT_NOT_FOUND),
]

_USER_MESSAGES = {
    ProviderErrorKind.DUPLICATE_ACCOUNT: "This email is already registered. Please sign in instead.",
    ProviderErrorKind.INVALID_CREDENTIALS: "Invalid email or password. Please try again.",
    ProviderErrorKind.UNCONFIRMED_ACCOUNT: "Please confirm your email address before signing in.",
    ProviderErrorKind.ACCOUNT_NOT_FOUND: "No account found with this email. Please sign up first.",
}


class MindSpaceAuthError(Exception):
    """Base class for all package errors."""


class ConfigurationError(MindSpaceAuthError):
    """Settings are missing or malformed."""


class ProviderError(MindSpaceAuthError):
    """
    Identity provider rejected a request.

    Attributes:
        kind: Classified failure category
        message: Raw provider message
        status_code: HTTP status, when the provider is remote
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    @classmethod
    def from_message(cls, message: str, status_code: Optional[int] = None) -> "ProviderError":
        """
        Classify a raw provider message.

        Args:
            message: Message text as returned by the provider
            status_code: Optional HTTP status

        Returns:
            ProviderError with the matching kind (UNKNOWN if none match)
        """
        kind = ProviderErrorKind.UNKNOWN
        for pattern, candidate in _MESSAGE_PATTERNS:
            if pattern in message:
                kind = candidate
                break
        return cls(kind, message, status_code=status_code)

    @property
    def user_message(self) -> str:
        """Short, non-technical message for display. Unknown kinds pass through verbatim."""
        return _USER_MESSAGES.get(self.kind, self.message)


class ProfileStoreError(MindSpaceAuthError):
    """Profile store read or write failed."""


class SnapshotStoreError(MindSpaceAuthError):
    """Persisted identity snapshot could not be read or written."""
