"""
auth/dependencies.py -- FastAPI Depends() helpers implementing the token gate.

Token sources, checked in priority order:
  1. Cookie "token" -- set by POST /login.
  2. Authorization: Bearer <token> header -- API and CLI clients.

The cookie wins when both are present. Only the first candidate found is
verified; a bad cookie is not rescued by a good header.

require_session() admits a request on a valid signature and unexpired token
and records the subject on request.state.user_id. get_current_user() adds a
store lookup for routes that need the full record.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.models import User
from auth.tokens import COOKIE_NAME, decode_access_token
from core.config import get_settings

_BEARER_PREFIX = "Bearer "


def _unauthorized() -> HTTPException:
    # One response for every failure cause: missing, malformed, tampered, expired.
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": "Authentication required."},
    )


def extract_token(request: Request) -> str | None:
    """Return the candidate session token, cookie first, else Bearer header."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(_BEARER_PREFIX):
        return auth_header[len(_BEARER_PREFIX) :].strip() or None
    return None


def require_session(request: Request) -> str:
    """Require a valid session token. Returns the subject user id.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user_id: str = Depends(require_session)): ...
    """
    token = extract_token(request)
    if token is None:
        raise _unauthorized()
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized()
    request.state.user_id = payload["id"]
    return payload["id"]


def get_current_user(request: Request, user_id: str = Depends(require_session)) -> User:
    """Resolve the session subject to a stored user.

    A token outliving its user (deleted after login) gets the same 401 as any
    other invalid session.
    """
    user = request.app.state.user_store.get_by_id(user_id)
    if user is None:
        raise _unauthorized()
    return user


def guard_user_routes(request: Request) -> str | None:
    """Apply the token gate to user listing/deletion unless it is switched off.

    USER_ROUTES_REQUIRE_AUTH=false restores fully open listing and deletion.
    """
    if not get_settings().user_routes_require_auth:
        return None
    return require_session(request)
