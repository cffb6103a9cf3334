"""
Supabase Session Example - Restore a session and sign in against a real project.

Requires MINDSPACE_SUPABASE_URL and MINDSPACE_SUPABASE_ANON_KEY.
Set MINDSPACE_REDIS_URL to keep the session across runs.
"""

import os
import sys

from mindspace_auth.factory import create_session_manager
from mindspace_auth.domain.errors import ConfigurationError


def main():
    try:
        manager = create_session_manager(configure_logging=True)
    except ConfigurationError as exc:
        print(exc)
        sys.exit(1)

    manager.restore_session()
    state = manager.state
    if state.is_authenticated:
        print(f"Restored session for {state.user.email}")
        return

    email = os.environ.get("DEMO_EMAIL", "ann@example.com")
    password = os.environ.get("DEMO_PASSWORD", "password123")

    result = manager.sign_in(email, password)
    if result.success:
        print(f"Signed in as {result.user.name}")
    else:
        print(f"Sign-in failed: {result.error}")


if __name__ == "__main__":
    main()
