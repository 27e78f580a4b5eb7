"""
Errors raised by the studio services.

Each carries a message that can be shown to the user as-is. The API maps
them to HTTP status codes in ptstudio.main.
"""


class StudioError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(StudioError):
    """Input is missing or malformed. Nothing was written."""

    status_code = 422


class AccessDenied(StudioError):
    """The caller's role or scope does not allow this change."""

    status_code = 403


class NotFound(StudioError):
    """The entity does not exist or is outside the caller's scope."""

    status_code = 404


class PreconditionFailed(StudioError):
    """The entity is not in a state that allows the operation."""

    status_code = 409


class PersistenceFailure(StudioError):
    """The store did not confirm the write."""

    status_code = 503
