"""
Profile Reconciler - Guarantees a profile row exists for an identity.
"""

import logging
import time
from typing import Optional, Callable, Iterator
from mindspace_auth.ports.profile_port import ProfileStorePort
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.errors import ProfileStoreError

logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Bounded retry with linear backoff.

    The delay after failed attempt n is n * base_delay. No delay follows
    the last attempt.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            max_attempts: Total attempts, including the first
            base_delay: Seconds multiplied by the attempt number
            sleep: Sleep function (inject a no-op in tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the given (1-based) failed attempt."""
        return attempt * self.base_delay

    def attempts(self) -> Iterator[int]:
        """Yield attempt numbers, sleeping between them."""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self._sleep(self.delay_for(attempt - 1))
            yield attempt


class ProfileReconciler:
    """
    Creates or refreshes profiles with upsert semantics.

    Upsert rather than insert: the provider may already have written the
    row from a server-side trigger, and an insert would fail on the
    duplicate key.

    Example:
        reconciler = ProfileReconciler(MemoryProfileAdapter())
        profile = reconciler.reconcile(identity_id, "a@b.com", "Ann")
        if profile is None:
            # hard failure, retries exhausted
            ...
    """

    def __init__(self, store: ProfileStorePort, retry_policy: Optional[RetryPolicy] = None):
        self._store = store
        self._retry = retry_policy or RetryPolicy()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def reconcile(self, identity_id: str, email: str, name: str) -> Optional[Profile]:
        """
        Ensure a profile exists for the identity.

        Args:
            identity_id: Identity id (profile key)
            email: Profile email
            name: Display name

        Returns:
            The stored profile, or None once every attempt has failed.
            None is a failure, never proof that no row exists.
        """
        fields = {"email": email, "name": name}

        for attempt in self._retry.attempts():
            try:
                return self._store.upsert(identity_id, fields)
            except ProfileStoreError as exc:
                logger.warning(
                    "Profile upsert for %s failed (attempt %d/%d): %s",
                    identity_id, attempt, self._retry.max_attempts, exc,
                )

        logger.error(
            "Profile reconciliation for %s gave up after %d attempts",
            identity_id, self._retry.max_attempts,
        )
        return None

    def fetch(self, identity_id: str) -> Optional[Profile]:
        """
        Single lookup, no retry. None means there is no profile row.

        Raises:
            ProfileStoreError: If the store cannot be read
        """
        return self._store.get(identity_id)
