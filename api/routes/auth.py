"""
api/routes/auth.py -- Registration, login, session, and user management endpoints.

Routes (mounted under /api/auth):
  POST   /register   -- validate, hash, persist; 201 {message, userId}
  POST   /login      -- verify credentials; JWT cookie + body token
  POST   /logout     -- clear the session cookie
  GET    /me         -- current user (token gate)
  GET    /users      -- list safe user projections (token gate unless disabled)
  DELETE /{user_id}  -- delete by id; 400 when missing (token gate unless disabled)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline.
  Unknown email and wrong password produce the same 401 body.
  Cache-Control: no-store on login responses.

Handlers are plain `def` so bcrypt and database calls run in the threadpool
and never stall the event loop for other requests.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from api.limiter import limiter
from api.models import (
    DeleteResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from auth.dependencies import get_current_user, guard_user_routes
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, hash_password, set_auth_cookie
from auth.validation import CredentialError, validate_login, validate_registration
from core.config import get_settings

logger = logging.getLogger("userauth.api")

_settings = get_settings()

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bad_request(exc: CredentialError) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": exc.code, "message": exc.message})


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"code": "internal_error", "message": "Internal Server Error"},
    )


def _store(request: Request) -> UserStore:
    return request.app.state.user_store


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create an account after every validation rule has passed.

    The plaintext password goes straight into hash_password() and is not kept
    on any object that outlives this call.
    """
    try:
        validate_registration(body.name, body.email, body.password)
    except CredentialError as exc:
        raise _bad_request(exc) from exc

    user = User(name=body.name, email=body.email, password_hash=hash_password(body.password))
    try:
        user_id = _store(request).create_user(user)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "email_taken", "message": "A user with that email already exists."},
        ) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error registering user")
        raise _internal_error() from exc

    logger.info("Registered user %s", user_id)
    return RegisterResponse(message="User registered successfully", user_id=user_id)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie.

    Returns the same generic error for an unknown email and a wrong password
    ("bad_credentials") so the response cannot be used to probe which emails
    are registered.
    """
    try:
        validate_login(body.email, body.password)
    except CredentialError as exc:
        raise _bad_request(exc) from exc

    try:
        user = authenticate_user(_store(request), body.email, body.password)
    except SQLAlchemyError as exc:
        logger.exception("Error during login")
        raise _internal_error() from exc

    if user is None:
        logger.info("Failed login from %s", request.client.host if request.client else "unknown")
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid credentials"}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(user.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            message="Login successful",
            user=UserResponse.from_user(user),
            token=token,
        ).model_dump(by_alias=True),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("User %s logged in", user.id)
    return resp


@router.post("/logout", response_model=MessageResponse)
def logout() -> JSONResponse:
    """Clear the session cookie. The token itself stays valid until it expires."""
    resp = JSONResponse(content={"message": "Logged out"})
    clear_auth_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the projection of the user the session token belongs to."""
    return UserResponse.from_user(current_user)


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, _subject: str | None = Depends(guard_user_routes)) -> list[UserResponse]:
    """List every user without password hashes."""
    try:
        users = _store(request).list_users()
    except SQLAlchemyError as exc:
        logger.exception("Error fetching users")
        raise _internal_error() from exc
    return [UserResponse.from_user(u) for u in users]


@router.delete("/{user_id}", response_model=DeleteResponse)
def delete_user(
    request: Request,
    user_id: str,
    _subject: str | None = Depends(guard_user_routes),
) -> DeleteResponse:
    """Delete a user by id.

    The existence check comes first so a missing id is a 400 "not found", never
    a 500. A delete that loses a race with another delete reports the same.
    """
    store = _store(request)
    try:
        if store.get_by_id(user_id) is None or not store.delete_user(user_id):
            raise HTTPException(
                status_code=400,
                detail={"code": "not_found", "message": "User not found"},
            )
    except SQLAlchemyError as exc:
        logger.exception("Error deleting user %s", user_id)
        raise _internal_error() from exc

    logger.info("Deleted user %s", user_id)
    return DeleteResponse(message="User deleted successfully", user_id=user_id)
