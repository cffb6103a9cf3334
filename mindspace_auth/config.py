"""
Configuration - Settings read from MINDSPACE_-prefixed environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional, Mapping

from mindspace_auth.domain.errors import ConfigurationError


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


@dataclass
class AuthSettings:
    """
    Runtime settings.

    supabase_url and supabase_anon_key are only required when wiring the
    Supabase adapters (see require_supabase()).
    """
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    storage_key: str = "mindspace-user-storage"
    session_storage_key: str = "mindspace-auth"
    redis_url: Optional[str] = None
    profile_retry_attempts: int = 3
    profile_retry_delay: float = 0.5
    http_timeout: float = 10.0
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(
        cls,
        prefix: str = "MINDSPACE_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "AuthSettings":
        """
        Load settings from the environment.

        Args:
            prefix: Variable prefix (default MINDSPACE_)
            environ: Mapping to read instead of os.environ

        Returns:
            AuthSettings

        Raises:
            ConfigurationError: If a numeric variable is malformed
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            return env.get(f"{prefix}{name}", default)

        def number(name: str, default, cast):
            return _number(env, f"{prefix}{name}", default, cast)

        return cls(
            supabase_url=get("SUPABASE_URL"),
            supabase_anon_key=get("SUPABASE_ANON_KEY"),
            storage_key=get("STORAGE_KEY", cls.storage_key),
            session_storage_key=get("SESSION_STORAGE_KEY", cls.session_storage_key),
            redis_url=get("REDIS_URL") or None,
            profile_retry_attempts=number("PROFILE_RETRY_ATTEMPTS", cls.profile_retry_attempts, int),
            profile_retry_delay=number("PROFILE_RETRY_DELAY", cls.profile_retry_delay, float),
            http_timeout=number("HTTP_TIMEOUT", cls.http_timeout, float),
            log_level=get("LOG_LEVEL", cls.log_level).upper(),
            log_json=get("LOG_JSON", "1").lower() not in ("0", "false", "no"),
        )

    def require_supabase(self):
        """
        Raises:
            ConfigurationError: If the Supabase URL or anon key is missing
        """
        if not self.supabase_url or not self.supabase_anon_key:
            raise ConfigurationError(
                "Missing Supabase settings. Set MINDSPACE_SUPABASE_URL and MINDSPACE_SUPABASE_ANON_KEY."
            )
