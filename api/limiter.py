"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (mounted as middleware) and api/routes/auth.py
(per-route limit on login). A single instance means every route shares one
in-memory counter store.

default_limits applies to every route; POST /login adds its own stricter
limit against password guessing.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    default_limits=[_settings.default_rate_limit],
    enabled=_settings.rate_limit_enabled,
)
