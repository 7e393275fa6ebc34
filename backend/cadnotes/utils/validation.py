from __future__ import annotations

from uuid import UUID

WEAK_PASSWORDS = {"password", "123456", "qwerty", "admin", "test", "password123"}


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """Reject short and well-known passwords before they reach Supabase."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if password.lower() in WEAK_PASSWORDS:
        return False, "Password is too weak. Please choose a stronger password."
    return True, None


def parse_note_id(value: str | UUID | None) -> UUID | None:
    """Return the note id as a UUID, or None when it is missing or malformed."""
    if value is None:
        return None
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None
