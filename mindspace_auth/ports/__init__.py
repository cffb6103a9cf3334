"""
Ports - Interfaces for the identity provider, profile store and local snapshot.

Hexagonal architecture: These define WHAT we need, not HOW.
Adapters provide the HOW.
"""

from mindspace_auth.ports.identity_port import IdentityServicePort
from mindspace_auth.ports.profile_port import ProfileStorePort
from mindspace_auth.ports.snapshot_port import SnapshotStorePort

__all__ = [
    "IdentityServicePort",
    "ProfileStorePort",
    "SnapshotStorePort",
]
