"""FastAPI dependencies"""
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.errors.exceptions import DebugUnavailableException
from app.services.otp_registry import OtpStores
from app.services.otp_store import CodeSender, OtpStore
from app.utils.email import send_login_code, send_password_reset_code, send_verification_code


def get_db() -> Generator:
    """
    Database session dependency
    Yields a database session and ensures it's closed after use
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_otp_stores(request: Request) -> OtpStores:
    """Stores built once at startup and shared by every request"""
    return request.app.state.otp_stores


def get_password_reset_store(stores: OtpStores = Depends(get_otp_stores)) -> OtpStore:
    return stores.password_reset


def get_email_verification_store(stores: OtpStores = Depends(get_otp_stores)) -> OtpStore:
    return stores.email_verification


def get_login_store(stores: OtpStores = Depends(get_otp_stores)) -> OtpStore:
    return stores.login


def get_reset_code_sender() -> CodeSender:
    return send_password_reset_code


def get_verification_code_sender() -> CodeSender:
    return send_verification_code


def get_login_code_sender() -> CodeSender:
    return send_login_code


def require_non_production() -> None:
    """Diagnostics stay inert in production"""
    if settings.is_production:
        raise DebugUnavailableException()
