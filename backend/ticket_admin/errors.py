"""Error taxonomy for authorization, lifecycle and CRUD failures.

Every error is local and deterministic: the HTTP layer renders it as a
failure envelope with ``status_code`` and ``code``. None of them is retryable.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 400
    code: str = "BAD_REQUEST"
    default_message: str = "Bad request"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        field: Optional[str] = None,
        details: Any = None,
    ) -> None:
        self.message = message or self.default_message
        self.field = field
        self.details = details
        super().__init__(self.message)


class BadRequest(AppError):
    pass


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "You must be logged in"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class InvalidTransition(AppError):
    code = "INVALID_TRANSITION"
    default_message = "Status transition is not allowed"


class StaleState(AppError):
    """The row changed between read and write; the caller should re-fetch."""

    status_code = 409
    code = "STALE_STATE"
    default_message = "Resource was modified concurrently. Re-fetch and retry."


class DuplicateGrant(AppError):
    status_code = 409
    code = "DUPLICATE_GRANT"
    default_message = "Permission already assigned"


class GrantNotFound(AppError):
    status_code = 404
    code = "GRANT_NOT_FOUND"
    default_message = "Permission is not assigned to this user"


class NotAdminTier(AppError):
    code = "NOT_ADMIN_TIER"
    default_message = "User must be an admin to assign permissions"


class SelfTargetNotAllowed(AppError):
    code = "SELF_TARGET_NOT_ALLOWED"
    default_message = "You cannot perform this action on your own account"


class CannotModifySuperAdmin(AppError):
    status_code = 403
    code = "CANNOT_MODIFY_SUPER_ADMIN"
    default_message = "Super admin accounts cannot be modified"


class AlreadyPromoted(AppError):
    code = "ALREADY_PROMOTED"
    default_message = "User is already an admin"
