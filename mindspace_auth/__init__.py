"""
MindSpace Auth - Session & Profile Consistency

Hexagonal architecture for sign-up, sign-in, sign-out and session restore,
keeping exactly one profile per authenticated identity.

Usage:
    from mindspace_auth import SessionManager, ProfileReconciler, IdentityState
    from mindspace_auth.adapters import (
        SupabaseIdentityAdapter, SupabaseProfileAdapter, RedisSnapshotAdapter,
    )

    identity = SupabaseIdentityAdapter(url=url, anon_key=key)
    manager = SessionManager(
        identity=identity,
        reconciler=ProfileReconciler(SupabaseProfileAdapter(url=url, anon_key=key)),
        state=IdentityState(RedisSnapshotAdapter()),
    )

    manager.restore_session()
    result = manager.sign_in("ann@example.com", "password123")

Or, from MINDSPACE_* environment variables:
    from mindspace_auth.factory import create_session_manager
    manager = create_session_manager()
"""

__version__ = "0.1.0"

from mindspace_auth.sdk.session_manager import SessionManager
from mindspace_auth.sdk.reconciler import ProfileReconciler, RetryPolicy
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.result import AuthResult, OperationResult

__all__ = [
    "SessionManager",
    "ProfileReconciler",
    "RetryPolicy",
    "IdentityState",
    "Profile",
    "AuthResult",
    "OperationResult",
]
