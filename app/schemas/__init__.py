"""Pydantic schemas for request/response validation"""
from app.schemas.auth_schemas import (
    AccountCreate,
    AccountResponse,
    RegistrationResponse
)
from app.schemas.otp_schemas import (
    EmailRequest,
    CodeRequest,
    ResetPasswordRequest,
    VerificationCodeRequest,
    CodeSentResponse,
    DeliveryDebug,
    OtpRecordResponse,
    OtpListResponse
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "RegistrationResponse",
    "EmailRequest",
    "CodeRequest",
    "ResetPasswordRequest",
    "VerificationCodeRequest",
    "CodeSentResponse",
    "DeliveryDebug",
    "OtpRecordResponse",
    "OtpListResponse"
]
