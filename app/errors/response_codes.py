"""
HTTP Response Codes and Messages
Centralized response handling for consistent API responses
"""
from typing import Any, Dict, Optional
from fastapi import status
from fastapi.responses import JSONResponse


class ResponseCode:
    """HTTP Response Code Container"""
    def __init__(self, code: int, message: str, status_code: int):
        self.code = code
        self.message = message
        self.status_code = status_code


class SuccessCode:
    """Success Response Codes (2xx)"""

    OK = ResponseCode(
        code=200,
        message="Request processed successfully",
        status_code=status.HTTP_200_OK
    )

    CODE_VERIFIED = ResponseCode(
        code=2005,
        message="Code verified successfully",
        status_code=status.HTTP_200_OK
    )

    PASSWORD_RESET = ResponseCode(
        code=2006,
        message="Password reset successfully",
        status_code=status.HTTP_200_OK
    )

    EMAIL_CONFIRMED = ResponseCode(
        code=2007,
        message="Email confirmed successfully",
        status_code=status.HTTP_200_OK
    )

    LOGGED_IN = ResponseCode(
        code=2008,
        message="Login successful",
        status_code=status.HTTP_200_OK
    )


class ErrorCode:
    """Error Response Codes (4xx, 5xx)"""

    # 400 - Verification failures
    OTP_NOT_FOUND = ResponseCode(
        code=4006,
        message="No code was requested for this email",
        status_code=status.HTTP_400_BAD_REQUEST
    )

    OTP_EXPIRED = ResponseCode(
        code=4007,
        message="Code expired. Please request a new code.",
        status_code=status.HTTP_400_BAD_REQUEST
    )

    OTP_ALREADY_USED = ResponseCode(
        code=4008,
        message="This code has already been used",
        status_code=status.HTTP_400_BAD_REQUEST
    )

    OTP_TOO_MANY_ATTEMPTS = ResponseCode(
        code=4009,
        message="Too many incorrect attempts. Please request a new code.",
        status_code=status.HTTP_400_BAD_REQUEST
    )

    OTP_MISMATCH = ResponseCode(
        code=4010,
        message="Incorrect code",
        status_code=status.HTTP_400_BAD_REQUEST
    )

    # 422 - Unprocessable Entity
    VALIDATION_ERROR = ResponseCode(
        code=422,
        message="Validation error",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )

    # 500 - Internal Server Error
    INTERNAL_ERROR = ResponseCode(
        code=500,
        message="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    DATABASE_ERROR = ResponseCode(
        code=5001,
        message="Database operation failed",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    # 503 - Service Unavailable
    STORAGE_UNAVAILABLE = ResponseCode(
        code=5033,
        message="Verification code storage unavailable",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE
    )


# Keyed by OtpFailure values
OTP_FAILURE_CODES = {
    "not_found": ErrorCode.OTP_NOT_FOUND,
    "expired": ErrorCode.OTP_EXPIRED,
    "already_used": ErrorCode.OTP_ALREADY_USED,
    "too_many_attempts": ErrorCode.OTP_TOO_MANY_ATTEMPTS,
    "mismatch": ErrorCode.OTP_MISMATCH,
}


def success_response(
    code: ResponseCode = SuccessCode.OK,
    data: Any = None,
    message: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a standardized success response

    Args:
        code: ResponseCode object
        data: Response data
        message: Optional custom message

    Returns:
        Standardized response dictionary
    """
    return {
        "success": True,
        "code": code.code,
        "message": message or code.message,
        "data": data
    }


def error_response(
    code: ResponseCode = ErrorCode.INTERNAL_ERROR,
    message: Optional[str] = None,
    errors: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Create a standardized error response

    Args:
        code: ResponseCode object
        message: Optional custom message
        errors: Optional detailed error information

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": False,
        "code": code.code,
        "message": message or code.message
    }

    if errors:
        response["errors"] = errors

    return response


def otp_failure_response(result) -> JSONResponse:
    """
    Turn a rejected VerificationResult into a 400 error envelope

    The envelope's ``errors`` carries the machine-readable reason and the
    current attempt count so clients can tell "retry" from "request a new code".
    """
    code = OTP_FAILURE_CODES.get(result.reason.value, ErrorCode.OTP_MISMATCH)
    return JSONResponse(
        status_code=code.status_code,
        content=error_response(
            code,
            message=result.message,
            errors={"reason": result.reason.value, "attempts": result.attempts}
        )
    )
