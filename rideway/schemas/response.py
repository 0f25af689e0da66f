from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ErrorCode(str, Enum):
    RESTRICTED_LOCATION = "RESTRICTED_LOCATION"
    LOCATION_UNAVAILABLE = "LOCATION_UNAVAILABLE"
    USER_EXISTS = "USER_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNVERIFIED_USER = "UNVERIFIED_USER"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    INVALID_OTP = "INVALID_OTP"
    EMAIL_SEND_FAILED = "EMAIL_SEND_FAILED"
    OTP_RATE_LIMIT = "OTP_RATE_LIMIT"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


class ErrorInfo(BaseModel):
    message: str
    code: ErrorCode
    details: Optional[Any] = None


class ServiceResult(BaseModel):
    """Uniform ``{success, data | error}`` envelope returned by every service call."""

    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorInfo] = None

    @property
    def code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def to_response(self) -> dict:
        payload = self.model_dump(mode="json")
        if payload.get("error") and payload["error"].get("details") is None:
            payload["error"].pop("details")
        return {key: value for key, value in payload.items() if value is not None}


def ok(data: Any = None) -> ServiceResult:
    return ServiceResult(success=True, data=data)


def fail(message: str, code: ErrorCode, details: Any = None) -> ServiceResult:
    return ServiceResult(
        success=False, error=ErrorInfo(message=message, code=code, details=details)
    )
