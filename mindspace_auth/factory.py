"""Wiring of the session manager from settings."""

import logging
from typing import Optional

import httpx

from mindspace_auth.config import AuthSettings
from mindspace_auth.app_logging import setup_logger
from mindspace_auth.ports.snapshot_port import SnapshotStorePort
from mindspace_auth.adapters.supabase_identity import SupabaseIdentityAdapter
from mindspace_auth.adapters.supabase_profile import SupabaseProfileAdapter
from mindspace_auth.adapters.redis_snapshot import RedisSnapshotAdapter
from mindspace_auth.adapters.memory_snapshot import MemorySnapshotAdapter
from mindspace_auth.sdk.reconciler import ProfileReconciler, RetryPolicy
from mindspace_auth.sdk.state import IdentityState
from mindspace_auth.sdk.session_manager import SessionManager

logger = logging.getLogger(__name__)


def _snapshot_store(settings: AuthSettings, key: str) -> SnapshotStorePort:
    if settings.redis_url:
        return RedisSnapshotAdapter(key=key, redis_url=settings.redis_url)
    logger.info("No Redis configured; %s is kept in memory only", key)
    return MemorySnapshotAdapter()


def create_session_manager(
    settings: Optional[AuthSettings] = None,
    http_client: Optional[httpx.Client] = None,
    configure_logging: bool = False,
) -> SessionManager:
    """
    Build a SessionManager backed by Supabase.

    Args:
        settings: Settings (read from the environment if omitted)
        http_client: Shared httpx client for both Supabase adapters
        configure_logging: Install the package log handler first

    Returns:
        SessionManager; call restore_session() before use

    Raises:
        ConfigurationError: If Supabase settings are missing or malformed
    """
    settings = settings or AuthSettings.from_env()
    if configure_logging:
        setup_logger(settings.log_level, json=settings.log_json)
    settings.require_supabase()

    client = http_client or httpx.Client(timeout=settings.http_timeout)

    identity = SupabaseIdentityAdapter(
        url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        http_client=client,
        session_store=_snapshot_store(settings, settings.session_storage_key),
    )
    profiles = SupabaseProfileAdapter(
        url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        token_provider=lambda: identity.access_token,
        http_client=client,
    )
    reconciler = ProfileReconciler(
        profiles,
        RetryPolicy(
            max_attempts=settings.profile_retry_attempts,
            base_delay=settings.profile_retry_delay,
        ),
    )
    state = IdentityState(_snapshot_store(settings, settings.storage_key))

    return SessionManager(identity=identity, reconciler=reconciler, state=state)
