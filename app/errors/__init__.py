"""Error handling module"""
from app.errors.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    DebugUnavailableException,
    OtpValidationError,
    StorageError
)
from app.errors.response_codes import (
    SuccessCode,
    ErrorCode,
    success_response,
    error_response,
    otp_failure_response
)

__all__ = [
    "BadRequestException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "DebugUnavailableException",
    "OtpValidationError",
    "StorageError",
    "SuccessCode",
    "ErrorCode",
    "success_response",
    "error_response",
    "otp_failure_response"
]
