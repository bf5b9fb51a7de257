"""Password reset by emailed code: request → verify → reset"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.errors.exceptions import BadRequestException, NotFoundException
from app.models.account import Account
from app.services.account_service import get_account_by_email, update_password
from app.services.otp_store import (
    CodeSender,
    OtpStore,
    VerificationResult,
    codes_match,
    normalize_code,
    normalize_email,
)
from app.utils.logger import log_otp_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReport:
    """What happened to a code request. Never returned verbatim in production."""
    code_issued: bool
    email_sent: bool


def request_password_reset(db: Session, store: OtpStore, email: str, send_code: CodeSender) -> DeliveryReport:
    """
    Issue and mail a reset code if *email* belongs to an account.

    Unknown emails are silently ignored; callers answer the same way in both
    cases so the endpoint cannot be used to discover registered addresses.
    """
    email = normalize_email(email)
    if get_account_by_email(db, email) is None:
        log_otp_event(store.purpose.value, email, "Reset requested for unknown email")
        return DeliveryReport(code_issued=False, email_sent=False)

    record = store.issue(email)
    sent = send_code(email, record.code)
    if not sent:
        log_otp_event(
            store.purpose.value, email, "Reset code email delivery failed",
            level=logging.WARNING,
        )
    return DeliveryReport(code_issued=True, email_sent=sent)


def verify_password_reset_code(store: OtpStore, email: str, code: str) -> VerificationResult:
    return store.verify(email, code)


def reset_password(db: Session, store: OtpStore, email: str, code: str, new_password: str) -> Account:
    """
    Change the password behind a code that has already passed verification.

    The code must still be stored, unexpired, verified and equal to *code*.
    It is deleted once the password has been changed so it cannot be replayed.
    """
    email = normalize_email(email)
    code = normalize_code(code)

    raw = store.get_raw(email)
    if raw is not None and raw.is_expired(store.now()):
        store.delete(email)
        raise BadRequestException(detail="Code expired. Please request a new code.")

    if raw is None or not raw.verified or not codes_match(raw.code, code):
        log_otp_event(
            store.purpose.value, email, "Reset refused: code not verified or invalid",
            level=logging.WARNING,
        )
        raise BadRequestException(detail="Code not verified or invalid")

    account = get_account_by_email(db, email)
    if account is None:
        raise NotFoundException(detail="Account not found")

    update_password(db, account, new_password)
    store.delete(email)
    log_otp_event(store.purpose.value, email, "Password reset completed", level=logging.WARNING)
    return account
