"""
Domain Models - Pure business entities.

No infrastructure dependencies. Domain logic only.
"""

from mindspace_auth.domain.identity import Identity
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.session import Session
from mindspace_auth.domain.result import AuthResult, OperationResult
from mindspace_auth.domain.snapshot import IdentitySnapshot
from mindspace_auth.domain.events import AuthEvent, ChangeFeed, Subscription
from mindspace_auth.domain.errors import (
    MindSpaceAuthError,
    ConfigurationError,
    ProviderError,
    ProviderErrorKind,
    ProfileStoreError,
    SnapshotStoreError,
)

__all__ = [
    "Identity",
    "Profile",
    "Session",
    "AuthResult",
    "OperationResult",
    "IdentitySnapshot",
    "AuthEvent",
    "ChangeFeed",
    "Subscription",
    "MindSpaceAuthError",
    "ConfigurationError",
    "ProviderError",
    "ProviderErrorKind",
    "ProfileStoreError",
    "SnapshotStoreError",
]
