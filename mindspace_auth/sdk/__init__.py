"""
SDK - Session orchestration on top of the ports.
"""

from mindspace_auth.sdk.reconciler import ProfileReconciler, RetryPolicy
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.sdk.session_manager import SessionManager

__all__ = [
    "ProfileReconciler",
    "RetryPolicy",
    "IdentityState",
    "SessionManager",
]
