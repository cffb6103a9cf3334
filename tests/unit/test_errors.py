"""
Unit tests for provider error classification and the change feed.
"""

import pytest
from mindspace_auth.domain.errors import ProviderError, ProviderErrorKind
from mindspace_auth.domain.events import AuthEvent, ChangeFeed


@pytest.mark.parametrize("message,kind,user_message", [
    (
        "User already registered",
        ProviderErrorKind.DUPLICATE_ACCOUNT,
        "This email is already registered. Please sign in instead.",
    ),
    (
        "Invalid login credentials",
        ProviderErrorKind.INVALID_CREDENTIALS,
        "Invalid email or password. Please try again.",
    ),
    (
        "Email not confirmed",
        ProviderErrorKind.UNCONFIRMED_ACCOUNT,
        "Please confirm your email address before signing in.",
    ),
    (
        "User not found",
        ProviderErrorKind.ACCOUNT_NOT_FOUND,
        "No account found with this email. Please sign up first.",
    ),
])
def test_known_messages_are_classified(message, kind, user_message):
    error = ProviderError.from_message(message, status_code=400)

    assert error.kind == kind
    assert error.user_message == user_message
    assert error.message == message
    assert error.status_code == 400


def test_unknown_message_passes_through():
    error = ProviderError.from_message("Signups not allowed for this instance")

    assert error.kind == ProviderErrorKind.UNKNOWN
    assert error.user_message == "Signups not allowed for this instance"
    assert str(error) == "Signups not allowed for this instance"


class TestChangeFeed:
    """Test event fan-out and subscription handles."""

    def test_emit_reaches_listeners(self):
        feed = ChangeFeed()
        received = []
        feed.subscribe(lambda event, identity_id: received.append((event, identity_id)))

        feed.emit(AuthEvent.SIGNED_IN, "usr_1")

        assert received == [(AuthEvent.SIGNED_IN, "usr_1")]

    def test_unsubscribe_is_idempotent(self):
        feed = ChangeFeed()
        received = []
        subscription = feed.subscribe(lambda event, identity_id: received.append(event))

        subscription.unsubscribe()
        subscription.unsubscribe()
        feed.emit(AuthEvent.SIGNED_OUT)

        assert received == []
        assert len(feed) == 0
        assert subscription.active is False

    def test_failing_listener_does_not_block_others(self):
        feed = ChangeFeed()
        received = []

        def broken(event, identity_id):
            raise RuntimeError("listener bug")

        feed.subscribe(broken)
        feed.subscribe(lambda event, identity_id: received.append(event))

        feed.emit(AuthEvent.TOKEN_REFRESHED, "usr_1")

        assert received == [AuthEvent.TOKEN_REFRESHED]
