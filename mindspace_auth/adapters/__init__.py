"""
Adapters - Implementations of ports.

Identity provider:
- SupabaseIdentityAdapter: Supabase auth (GoTrue) REST API
- MemoryIdentityAdapter: In-memory provider (testing)

Profile store:
- SupabaseProfileAdapter: PostgREST "profiles" table
- MemoryProfileAdapter: In-memory profiles (testing)

Persisted snapshot:
- RedisSnapshotAdapter: JSON under one Redis key
- MemorySnapshotAdapter: In-process dict (testing)
"""

# Identity provider
from mindspace_auth.adapters.supabase_identity import SupabaseIdentityAdapter
from mindspace_auth.adapters.memory_identity import MemoryIdentityAdapter

# Profile store
from mindspace_auth.adapters.supabase_profile import SupabaseProfileAdapter
from mindspace_auth.adapters.memory_profile import MemoryProfileAdapter

# Persisted snapshot
from mindspace_auth.adapters.redis_snapshot import RedisSnapshotAdapter
from mindspace_auth.adapters.memory_snapshot import MemorySnapshotAdapter

__all__ = [
    # Identity provider
    "SupabaseIdentityAdapter",
    "MemoryIdentityAdapter",
    # Profile store
    "SupabaseProfileAdapter",
    "MemoryProfileAdapter",
    # Persisted snapshot
    "RedisSnapshotAdapter",
    "MemorySnapshotAdapter",
]
