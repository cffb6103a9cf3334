"""
Identity Snapshot - Immutable view of application identity state.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from mindspace_auth.domain.profile import Profile


@dataclass(frozen=True)
class IdentitySnapshot:
    """
    Point-in-time copy of the application's identity state.

    Only user and is_authenticated are persisted across restarts; the
    loading/error/initialized flags are always reset.
    """
    user: Optional[Profile] = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: Optional[str] = None
    is_initialized: bool = False

    def persisted(self) -> Dict[str, Any]:
        """The part of the snapshot that survives a restart."""
        return {
            "user": self.user.to_dict() if self.user else None,
            "is_authenticated": self.is_authenticated,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        data = self.persisted()
        data.update({
            "is_loading": self.is_loading,
            "error": self.error,
            "is_initialized": self.is_initialized,
        })
        return data

    @classmethod
    def from_persisted(cls, data: Dict[str, Any]) -> "IdentitySnapshot":
        """
        Rebuild a snapshot from persisted data.

        is_authenticated is only trusted when a user is present.

        Raises:
            KeyError, ValueError, TypeError: If the data is malformed
        """
        user_data = data.get("user")
        user = Profile.from_dict(user_data) if user_data else None
        return cls(
            user=user,
            is_authenticated=bool(data.get("is_authenticated")) and user is not None,
        )
