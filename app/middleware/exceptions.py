from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import AppError, translate_integrity_error
from app.schemas.response import ErrorResponse, ErrorDetail
from datetime import datetime, timezone
import logging
import traceback
import uuid

logger = logging.getLogger(__name__)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
        501: "NOT_IMPLEMENTED",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())

def _error_response(request: Request, request_id: str, status_code: int, detail: ErrorDetail, headers=None) -> JSONResponse:
    error_response = ErrorResponse(
        message=detail.message,
        error=detail,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        request_id=request_id
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_response.model_dump()),
        headers=headers
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"[{request_id}] Validation error: {errors}", extra={"request_id": request_id})
    detail = ErrorDetail(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details={"validation_errors": errors}
    )
    return _error_response(request, request_id, 400, detail)

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    request_id = _request_id(request)
    if isinstance(exc, AppError):
        code = exc.code
        details = exc.details
    else:
        code = _get_error_code(exc.status_code)
        details = None

    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(log_level, f"[{request_id}] HTTP {exc.status_code}: {message}", extra={"request_id": request_id})
    detail = ErrorDetail(code=code, message=message, details=details)
    return _error_response(request, request_id, exc.status_code, detail, headers=getattr(exc, "headers", None))

async def integrity_exception_handler(request: Request, exc: IntegrityError):
    return await http_exception_handler(request, translate_integrity_error(exc))

async def global_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True, extra={"request_id": request_id})

    details = {"error_type": type(exc).__name__}
    if not settings.is_production:
        details["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    detail = ErrorDetail(
        code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        details=details
    )
    return _error_response(request, request_id, 500, detail)
