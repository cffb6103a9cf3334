"""
Basic Session Example - Sign-up, sign-out, sign-in with in-memory adapters.
"""

from mindspace_auth import SessionManager, ProfileReconciler, RetryPolicy, IdentityState
from mindspace_auth.adapters import (
    MemoryIdentityAdapter,
    MemoryProfileAdapter,
    MemorySnapshotAdapter,
)


def main():
    profiles = MemoryProfileAdapter()
    manager = SessionManager(
        identity=MemoryIdentityAdapter(),
        reconciler=ProfileReconciler(profiles, RetryPolicy(base_delay=0.1)),
        state=IdentityState(MemorySnapshotAdapter()),
    )
    manager.state.subscribe(
        lambda snap: print(f"  state: authenticated={snap.is_authenticated} loading={snap.is_loading}")
    )

    manager.restore_session()

    # Two failed profile writes are retried transparently
    profiles.fail_next_upserts(2)
    result = manager.sign_up("ann@example.com", "password123", "Ann")
    print(f"\nSign-up success: {result.success}")
    print(f"Profile: {result.user.to_dict() if result.user else None}")

    out = manager.sign_out()
    print(f"\nSigned out (error={out.error})")

    result = manager.sign_in("ann@example.com", "wrong-password")
    print(f"\nSign-in with wrong password: {result.error}")

    result = manager.sign_in("ann@example.com", "password123")
    print(f"Sign-in success: {result.success} as {result.user.name}")

    manager.close()


if __name__ == "__main__":
    main()
