"""Passwordless sign-in by emailed code"""
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.errors.exceptions import BadRequestException, NotFoundException
from app.models.account import Account
from app.services.account_service import get_account_by_email
from app.services.otp_store import (
    CodeSender,
    OtpStore,
    VerificationResult,
    codes_match,
    normalize_code,
    normalize_email,
)
from app.services.password_reset_service import DeliveryReport
from app.utils.logger import log_otp_event


def request_login_code(db: Session, store: OtpStore, email: str, send_code: CodeSender) -> DeliveryReport:
    """
    Issue and mail a sign-in code if *email* belongs to an active account.

    Unknown or deactivated emails get no code, and callers answer exactly as
    they do for a known one.
    """
    email = normalize_email(email)
    account = get_account_by_email(db, email)
    if account is None or not account.is_active:
        log_otp_event(store.purpose.value, email, "Login code requested for unknown email")
        return DeliveryReport(code_issued=False, email_sent=False)

    record = store.issue(email, account_id=account.id)
    sent = send_code(email, record.code)
    if not sent:
        log_otp_event(
            store.purpose.value, email, "Login code email delivery failed",
            level=logging.WARNING,
        )
    return DeliveryReport(code_issued=True, email_sent=sent)


def login_with_code(
    db: Session,
    store: OtpStore,
    email: str,
    code: str,
) -> Tuple[VerificationResult, Optional[Account]]:
    """
    Verify *code* and return the account it signs in.

    The stored record is read back after verification and must be verified
    and hold the submitted code; a re-issue in between fails the sign-in.
    The code is deleted once the account has been found.
    """
    email = normalize_email(email)
    code = normalize_code(code)

    result = store.verify(email, code)
    if not result.valid:
        return result, None

    record = store.get(email)
    if record is None or not record.verified or not codes_match(record.code, code):
        log_otp_event(
            store.purpose.value, email, "Login refused: code replaced during verification",
            level=logging.WARNING,
        )
        raise BadRequestException(detail="Code not verified or invalid")

    account = get_account_by_email(db, email)
    if account is None or not account.is_active:
        raise NotFoundException(detail="Account not found")

    store.delete(email)
    log_otp_event(store.purpose.value, email, "Signed in with code", level=logging.WARNING)
    return result, account
