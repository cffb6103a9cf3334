"""
Memory Profile Adapter - In-memory profile store (testing only).
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional, Dict, Any
from mindspace_auth.ports.profile_port import ProfileStorePort
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.errors import ProfileStoreError


class MemoryProfileAdapter(ProfileStorePort):
    """
    In-memory profile storage with upsert-by-id semantics.

    Failures can be injected with fail_next_upserts() to exercise retry
    and rollback paths.

    WARNING: Only for testing. Profiles are lost on restart.
    """

    def __init__(self):
        """Initialize in-memory storage."""
        self._profiles: Dict[str, Profile] = {}
        self._pending_failures = 0
        self.upsert_calls = 0

    def __len__(self) -> int:
        return len(self._profiles)

    def get(self, identity_id: str) -> Optional[Profile]:
        """Get a copy of the stored profile."""
        profile = self._profiles.get(identity_id)
        return replace(profile) if profile else None

    def upsert(self, identity_id: str, fields: Dict[str, Any]) -> Profile:
        """Insert or update; created_at of an existing row is kept."""
        self.upsert_calls += 1

        if self._pending_failures > 0:
            self._pending_failures -= 1
            raise ProfileStoreError(f"profile write failed for {identity_id}")

        existing = self._profiles.get(identity_id)
        if existing:
            profile = replace(
                existing,
                email=fields.get("email", existing.email),
                name=fields.get("name", existing.name),
                updated_at=datetime.utcnow(),
            )
        else:
            profile = Profile.create(
                identity_id=identity_id,
                email=fields["email"],
                name=fields["name"],
            )

        self._profiles[identity_id] = profile
        return replace(profile)

    def delete(self, identity_id: str) -> bool:
        """
        Delete a profile.

        Returns:
            True if deleted, False if not found
        """
        if identity_id not in self._profiles:
            return False

        del self._profiles[identity_id]
        return True

    def fail_next_upserts(self, count: int):
        """Make the next `count` upsert calls raise ProfileStoreError."""
        self._pending_failures = count
