"""
API request and response models for the auth service.

These Pydantic v2 models define the HTTP transport contract. They are separate
from the dataclass in auth/models.py, which owns the internal representation.
Route handlers map between the two, and no response model has a field for the
password hash.

Request fields are Optional on purpose: a missing field must reach the ordered
validator in auth/validation.py and come back as a field-specific 400, not as
a schema error.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Safe projection of a user: id, name, email, createdAt."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    email: str
    created_at: str = Field(alias="createdAt")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, created_at=user.created_at or "")


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    user_id: str = Field(alias="userId")


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user: UserResponse
    token: str


class DeleteResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    user_id: str = Field(alias="userID")


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Structured error payload nested under the "error" key."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope returned by every exception handler."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
