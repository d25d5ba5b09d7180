"""Pydantic schemas for the backend's response envelope"""

from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict

NETWORK_ERROR = "NETWORK_ERROR"
INVALID_RESPONSE = "INVALID_RESPONSE"
NOT_ELIGIBLE = "NOT_ELIGIBLE"


class ErrorKind(str, Enum):
    NETWORK = "network"  # no response received
    AUTH = "auth"  # 401/403
    VALIDATION = "validation"  # 4xx with field errors
    SERVER = "server"  # 5xx or generic failure


class FieldError(BaseModel):
    """Single field-level validation message"""

    field: str = ""
    message: str = ""


class ApiResponse(BaseModel):
    """
    Uniform result of every backend call.

    {success, message, data?, code?, errors?} as sent by the backend, plus the
    HTTP status (None when no response was received).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    message: str = ""
    data: Any = None
    code: Optional[str] = None
    errors: Optional[List[FieldError]] = None
    status_code: Optional[int] = None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        if self.success:
            return None
        if self.status_code is None:
            return ErrorKind.NETWORK
        if self.status_code in (401, 403):
            return ErrorKind.AUTH
        if 400 <= self.status_code < 500 and self.errors:
            return ErrorKind.VALIDATION
        return ErrorKind.SERVER

    def with_data(self, data: Any) -> "ApiResponse":
        """Copy with normalized data, leaving the envelope untouched"""
        return self.model_copy(update={"data": data})


def network_error(message: str = "Network error. Please try again.") -> ApiResponse:
    return ApiResponse(success=False, message=message, code=NETWORK_ERROR)


def not_eligible(message: str) -> ApiResponse:
    return ApiResponse(success=False, message=message, code=NOT_ELIGIBLE)
