"""Request/response schemas for the verification code endpoints"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import settings


class EmailRequest(BaseModel):
    """Body carrying an email; normalized to lower case without surrounding spaces"""
    email: str = Field(..., max_length=255, description="Account email")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Email is required")
        local, _, domain = v.partition("@")
        if not local or not domain:
            raise ValueError("Invalid email address")
        return v


class CodeRequest(EmailRequest):
    """Email plus the code typed by the user"""
    code: str = Field(..., max_length=12, description="Code received by email")

    @field_validator("code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Code is required")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "investor@example.com",
                "code": "482915"
            }
        }


class ResetPasswordRequest(CodeRequest):
    """Verified code plus the new password"""
    new_password: str = Field(..., max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
        return v


class VerificationCodeRequest(EmailRequest):
    """Ask for an email confirmation code for a registered account"""
    user_id: str = Field(..., min_length=1, max_length=64, description="Account ID returned at registration")


class DeliveryDebug(BaseModel):
    """Included outside production only"""
    email_sent: bool
    code_issued: bool


class CodeSentResponse(BaseModel):
    success: bool = True
    message: str
    debug: Optional[DeliveryDebug] = None


class OtpRecordResponse(BaseModel):
    """Raw stored code, for diagnostics"""
    email: str
    code: str
    expires_at: datetime
    created_at: datetime
    verified: bool
    attempts: int
    account_id: Optional[str] = None
    expired: bool


class OtpListResponse(BaseModel):
    success: bool = True
    purpose: str
    total: int
    codes: List[OtpRecordResponse]
