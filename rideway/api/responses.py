from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from rideway.schemas.response import ErrorCode, ServiceResult

ERROR_STATUS = {
    ErrorCode.RESTRICTED_LOCATION: status.HTTP_403_FORBIDDEN,
    ErrorCode.LOCATION_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.USER_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.UNVERIFIED_USER: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCOUNT_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_OTP: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OTP_RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.EMAIL_SEND_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SERVER_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_json(
    result: ServiceResult,
    success_status: int = status.HTTP_200_OK,
    error_status: Optional[int] = None,
) -> JSONResponse:
    """Maps a service result onto an HTTP response carrying the same envelope."""
    if result.success:
        code = success_status
    else:
        code = error_status or ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=result.to_response())
