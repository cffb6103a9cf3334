"""
Change Events - Notifications pushed by the identity provider.

ChangeFeed is the observable used by adapters: listeners register and get
back a Subscription handle that removes them again.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class AuthEvent(Enum):
    """Identity provider change notifications."""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


ChangeListener = Callable[[AuthEvent, Optional[str]], None]


class Subscription:
    """Handle returned by subscribe(). unsubscribe() may be called more than once."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self):
        if not self._active:
            return
        self._active = False
        self._cancel()


class ChangeFeed:
    """
    Fan-out of provider events to registered listeners.

    A failing listener is logged and skipped; the remaining listeners still
    receive the event.
    """

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: ChangeListener) -> Subscription:
        """
        Register a listener.

        Args:
            listener: Called with (event, identity_id or None)

        Returns:
            Subscription handle
        """
        self._listeners.append(listener)

        def cancel():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(cancel)

    def emit(self, event: AuthEvent, identity_id: Optional[str] = None):
        """Deliver an event to every listener."""
        logger.debug("Auth event %s for identity %s", event.value, identity_id)
        for listener in list(self._listeners):
            try:
                listener(event, identity_id)
            except Exception:
                logger.exception("Auth change listener failed on %s", event.value)
