"""Studio services: the scheduling, ledger, fee and settlement core."""

from ptstudio.services.errors import (
    AccessDenied,
    NotFound,
    PersistenceFailure,
    PreconditionFailed,
    StudioError,
    ValidationFailed,
)
from ptstudio.services.scope import CallerContext

__all__ = [
    "CallerContext",
    "StudioError",
    "ValidationFailed",
    "AccessDenied",
    "NotFound",
    "PreconditionFailed",
    "PersistenceFailure",
]
