"""Authentication module."""

from ptstudio.auth.dependencies import (
    get_caller,
    get_current_user,
    get_store,
    require_admin,
)
from ptstudio.auth.jwt import create_access_token, verify_token

__all__ = [
    "create_access_token",
    "verify_token",
    "get_current_user",
    "get_caller",
    "get_store",
    "require_admin",
]
