"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the auth service happen here. Server-side
modules call get_settings() instead of os.getenv().

  Singleton via lru_cache: get_settings() builds Settings once and returns the
      cached instance afterwards.

  BaseSettings (pydantic-settings): values come from environment variables and
      an optional .env file. Field names map to env var names
      (jwt_secret -> JWT_SECRET).

  @model_validator(mode="after"): enforces the JWT_SECRET policy. A missing
      secret is a hard startup failure -- the service must never come up
      signing tokens with an empty or guessable key.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or client/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("userauth.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Everything except JWT_SECRET has a default, so a test environment only has
    to export the secret.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Empty string is the "not configured" sentinel; the validator rejects it.
    jwt_secret: str = ""
    database_url: str = "sqlite:///./userauth.db"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600
    secure_cookies: bool = True
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    # GET /users and DELETE /{id} sit behind the token gate unless disabled.
    user_routes_require_auth: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    default_rate_limit: str = "100/15minutes"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret(self) -> "Settings":
        """Refuse to build settings without a usable JWT_SECRET.

        Both HS256 signing and cookie integrity depend on the key's entropy,
        so short keys are rejected as well as missing ones.
        """
        if not self.jwt_secret:
            raise ValueError(
                "JWT_SECRET is required. Set JWT_SECRET in your environment or .env file "
                "before starting the service."
            )
        if len(self.jwt_secret) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() if a case needs to inject
    different environment variables.
    """
    return Settings()
