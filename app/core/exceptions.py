import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base for domain errors; rendered by the global exception handler."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_SERVER_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=self.status_code, detail=message or self.default_message, headers=headers)
        self.details = details


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class InternalError(AppError):
    pass


class DuplicateEnrollment(Conflict):
    default_message = "You are already enrolled in this course"


class DuplicateReview(Conflict):
    default_message = "You have already reviewed this course"


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _integrity_sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code

    # sqlite reports constraint failures only through the message
    text = str(orig or exc).lower()
    if "unique constraint" in text or "duplicate key" in text:
        return UNIQUE_VIOLATION
    if "foreign key constraint" in text:
        return FOREIGN_KEY_VIOLATION
    return None


def translate_integrity_error(exc: IntegrityError) -> AppError:
    """Map a driver constraint violation onto the domain error taxonomy."""
    sqlstate = _integrity_sqlstate(exc)
    if sqlstate == UNIQUE_VIOLATION:
        return Conflict("A record with these values already exists")
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return NotFound("Referenced resource not found")
    logger.warning(f"Unmapped integrity error: {exc.orig if exc.orig is not None else exc}")
    return ValidationError("Data violates a database constraint")
