"""Account registration schemas"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.config import settings


class AccountCreate(BaseModel):
    """Schema for registering a new investor account"""
    email: EmailStr
    password: str = Field(..., max_length=100)
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password length"""
        if len(v) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
        return v


class AccountResponse(BaseModel):
    """Schema for account response"""
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    is_confirmed: bool
    email_confirmed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegistrationResponse(BaseModel):
    """Account created; a confirmation code is on its way"""
    message: str
    account: AccountResponse
    email_sent: Optional[bool] = None
