"""
Identity Domain Model - Credential record owned by the identity provider.
"""

from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass(frozen=True)
class Identity:
    """
    Identity entity - the provider's view of an account.

    Domain rules:
    - identity_id is immutable once created
    - never mutated by this package (the provider owns it)
    """
    identity_id: str
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def local_part(self) -> str:
        """Email address before the "@"."""
        return self.email.split("@")[0]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "identity_id": self.identity_id,
            "email": self.email,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        """Deserialize from dict."""
        return cls(
            identity_id=data["identity_id"],
            email=data["email"],
            metadata=data.get("metadata", {}),
        )
