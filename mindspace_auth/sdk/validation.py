"""
Local input validation. Runs before any provider call.

Each validator returns the first failing message, or None.
"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MIN_NAME_LENGTH = 2


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def validate_sign_up(
    email: str,
    password: str,
    name: str,
    confirm_password: Optional[str] = None,
) -> Optional[str]:
    name = (name or "").strip()
    if not name:
        return "Please enter your name"
    if len(name) < MIN_NAME_LENGTH:
        return f"Name must be at least {MIN_NAME_LENGTH} characters long"

    if not (email or "").strip():
        return "Please enter your email"
    if not is_valid_email(email):
        return "Please enter a valid email address"

    return validate_new_password(password, confirm_password, missing="Please enter a password")


def validate_sign_in(email: str, password: str) -> Optional[str]:
    # Format was enforced at sign-up; presence only.
    if not email or not password:
        return "Please enter both email and password"
    return None


def validate_reset_request(email: str) -> Optional[str]:
    if not (email or "").strip():
        return "Please enter your email address"
    if not is_valid_email(email):
        return "Please enter a valid email address"
    return None


def validate_new_password(
    password: str,
    confirm_password: Optional[str] = None,
    missing: str = "Please enter a new password",
) -> Optional[str]:
    if not password:
        return missing
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if confirm_password is not None and password != confirm_password:
        return "Passwords do not match"
    return None
