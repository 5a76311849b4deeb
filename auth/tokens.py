"""
auth/tokens.py -- Password hashing, JWT session tokens, and the auth cookie.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry the
       user id plus iat/exp claims. Verification returns None on any failure
       -- the token gate turns that into a single 401.

  Passwords: bcrypt with a configurable cost (BCRYPT_ROUNDS). The _DUMMY_HASH
       constant enables timing equalization in authenticate_user() so response
       time does not reveal whether an email is registered.

  JWT_SECRET: sourced from core.config.get_settings(), which refuses to build
       settings when the secret is missing or short.

Layer rule: no imports from api/ or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("userauth.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

COOKIE_NAME = "token"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt, used directly)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the plaintext password.

    Callers validate the 72-byte bcrypt limit first (auth.validation).
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input.
        return False


# Computed once at import so the first login is not measurably slower than the
# rest. Unknown emails are checked against this hash to equalize timing.
_DUMMY_HASH: str = hash_password("userauth_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT binding the user id, with a fixed expiry.

    Args:
        user_id:        The user's opaque id, stored in the "id" claim.
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (one hour).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.jwt_secret, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Bad signature, malformed input, expiry, and a missing "id" claim all come
    back as None so the caller cannot tell them apart.
    """
    try:
        payload = jwt.decode(token, _settings.jwt_secret, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not isinstance(payload.get("id"), str):
        return None
    return payload


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT as the session cookie.

    httponly=True: scripts cannot read the cookie.
    samesite="strict": never sent on cross-site requests.
    secure: HTTPS only unless SECURE_COOKIES=false (local development).
    max_age: matches the JWT expiry so both lapse together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=_settings.secure_cookies,
        max_age=duration,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(
        COOKIE_NAME,
        httponly=True,
        samesite="strict",
        secure=_settings.secure_cookies,
    )
