from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Envelope for every successful response."""
    success: bool = True
    message: str
    data: Optional[T] = None


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable code, e.g. CONFLICT or VALIDATION_ERROR")
    message: str
    details: Optional[Dict[str, Any]] = Field(
        None, description="Extra context such as validation_errors or offending lesson_ids"
    )


class ErrorResponse(BaseModel):
    """Envelope for every failed response; built by the global exception handlers."""
    success: bool = False
    message: str
    error: ErrorDetail
    timestamp: str
    path: str
    request_id: Optional[str] = None
