"""
Profile Domain Model - Application-level record for an identity.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime


@dataclass
class Profile:
    """
    Profile entity - display data for an authenticated identity.

    Domain rules:
    - id is the identity id (shared key, one profile per identity)
    - created_at is set once and survives upserts
    """
    id: str
    email: str
    name: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, identity_id: str, email: str, name: str) -> "Profile":
        """Create a new profile stamped with the current time."""
        now = datetime.utcnow()
        return cls(
            id=identity_id,
            email=email,
            name=name,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """
        Deserialize from dict.

        Accepts rows as returned by the profiles table, where timestamps
        may carry a trailing "Z" or an explicit offset.
        """
        return cls(
            id=data["id"],
            email=data["email"],
            name=data["name"],
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]) if data.get("updated_at") else None,
        )


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
