"""
Profile Store Port - Interface for profile records keyed by identity id.

Implementations:
- SupabaseProfileAdapter: PostgREST "profiles" table
- MemoryProfileAdapter: In-memory store (testing only)
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from mindspace_auth.domain.profile import Profile


class ProfileStorePort(ABC):
    """Port: Read and upsert profiles."""

    @abstractmethod
    def get(self, identity_id: str) -> Optional[Profile]:
        """
        Get a profile by identity id.

        Args:
            identity_id: Identity id (profile key)

        Returns:
            Profile if a row exists, None otherwise

        Raises:
            ProfileStoreError: If the store cannot be read
        """
        pass

    @abstractmethod
    def upsert(self, identity_id: str, fields: Dict[str, Any]) -> Profile:
        """
        Insert the profile, or update it if a row with this id exists.

        Args:
            identity_id: Identity id (profile key)
            fields: Columns to write (email, name)

        Returns:
            The stored profile

        Raises:
            ProfileStoreError: If the write fails
        """
        pass
