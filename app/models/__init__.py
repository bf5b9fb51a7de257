"""Database models"""
from app.models.account import Account
from app.models.otp import OTPCode

__all__ = ["Account", "OTPCode"]
