"""
Session Domain Model - Ephemeral provider session.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime, timedelta

import jwt


@dataclass
class Session:
    """
    Session entity - an authenticated session issued by the provider.

    Domain rules:
    - identity_id matches the token subject
    - the session is never persisted by this package, only the derived
      {user, is_authenticated} snapshot is
    """
    identity_id: str
    access_token: str
    issued_at: datetime
    expires_at: Optional[datetime] = None
    refresh_token: Optional[str] = None

    @classmethod
    def from_tokens(
        cls,
        identity_id: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> "Session":
        """
        Build a session from a token grant.

        Timestamps come from the access token's "iat"/"exp" claims when the
        token is a JWT; otherwise issued_at is now and expires_at is derived
        from expires_in.

        Args:
            identity_id: Identity the session belongs to
            access_token: Bearer token
            refresh_token: Optional refresh token
            expires_in: Lifetime in seconds reported by the provider

        Returns:
            New session instance
        """
        now = datetime.utcnow()
        issued_at = now
        expires_at = now + timedelta(seconds=expires_in) if expires_in else None

        claims = _unverified_claims(access_token)
        if "iat" in claims:
            issued_at = datetime.utcfromtimestamp(claims["iat"])
        if "exp" in claims:
            expires_at = datetime.utcfromtimestamp(claims["exp"])

        return cls(
            identity_id=identity_id,
            access_token=access_token,
            issued_at=issued_at,
            expires_at=expires_at,
            refresh_token=refresh_token,
        )

    def is_expired(self) -> bool:
        """Check if the access token has expired."""
        if self.expires_at is None:
            return False
        return datetime.utcnow() >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to dict.

        WARNING: Tokens are left out. Never log them.
        """
        return {
            "identity_id": self.identity_id,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_expired": self.is_expired(),
        }


def _unverified_claims(token: str) -> Dict[str, Any]:
    # The provider signs the token; we only read timing claims from it.
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return {}
