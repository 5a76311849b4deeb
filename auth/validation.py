"""
auth/validation.py -- Shape checks for submitted credentials.

Checks run in a fixed order and the first failure wins, so a caller always
gets exactly one field-specific message. Nothing is written before every
check has passed.

Layer rule: no imports from api/, core/, or client/.
"""

from __future__ import annotations

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


class CredentialError(ValueError):
    """A submitted field failed a shape rule."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message

    @property
    def code(self) -> str:
        return f"invalid_{self.field}"


def validate_name(name: str | None) -> None:
    if not name or len(name) < MIN_NAME_LENGTH:
        raise CredentialError("name", f"Name must be at least {MIN_NAME_LENGTH} characters")


def validate_email(email: str | None) -> None:
    if not email or "@" not in email or "." not in email:
        raise CredentialError("email", "Invalid email format")


def validate_password(password: str | None) -> None:
    """Require a minimum length and stay inside bcrypt's 72-byte window.

    bcrypt ignores (or, in newer releases, rejects) bytes past 72, so a longer
    password would either hash to the same value as its prefix or fail at
    hashing time. Rejecting it here keeps that a 400 instead.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise CredentialError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise CredentialError("password", f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def validate_registration(name: str | None, email: str | None, password: str | None) -> None:
    """Validate a registration submission: name, then email, then password."""
    validate_name(name)
    validate_email(email)
    validate_password(password)


def validate_login(email: str | None, password: str | None) -> None:
    """Validate a login submission before the store is consulted."""
    validate_email(email)
    validate_password(password)
