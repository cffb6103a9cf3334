"""
Result Models - Uniform outcomes returned by session operations.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from mindspace_auth.domain.profile import Profile


@dataclass(frozen=True)
class AuthResult:
    """
    Outcome of sign-up and sign-in.

    Domain rules:
    - success is True only with a user and no error
    - a failed result never carries a user
    """
    user: Optional[Profile]
    error: Optional[str]
    success: bool

    @classmethod
    def ok(cls, user: Profile) -> "AuthResult":
        return cls(user=user, error=None, success=True)

    @classmethod
    def fail(cls, error: str) -> "AuthResult":
        return cls(user=None, error=error, success=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "user": self.user.to_dict() if self.user else None,
            "error": self.error,
            "success": self.success,
        }


@dataclass(frozen=True)
class OperationResult:
    """Outcome of sign-out and password operations. error is None on success."""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error}
