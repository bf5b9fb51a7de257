"""Email confirmation by emailed code"""
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.errors.exceptions import ConflictException, NotFoundException
from app.models.account import Account
from app.services.account_service import confirm_account, get_account_by_id
from app.services.otp_store import CodeSender, OtpStore, VerificationResult, normalize_email
from app.services.password_reset_service import DeliveryReport
from app.utils.logger import log_otp_event


def send_verification_code(
    db: Session,
    store: OtpStore,
    email: str,
    account_id: str,
    send_code: CodeSender,
) -> DeliveryReport:
    """
    Issue a confirmation code bound to *account_id* and mail it.

    The account must exist, own *email*, and not be confirmed yet.
    """
    email = normalize_email(email)
    account = get_account_by_id(db, account_id)
    if account is None or account.email != email:
        raise NotFoundException(detail="Account not found")
    if account.is_confirmed:
        raise ConflictException(detail="Email already confirmed")

    record = store.issue(email, account_id=account.id)
    sent = send_code(email, record.code)
    if not sent:
        log_otp_event(
            store.purpose.value, email, "Confirmation code email delivery failed",
            level=logging.WARNING,
        )
    return DeliveryReport(code_issued=True, email_sent=sent)


def confirm_email(
    db: Session,
    store: OtpStore,
    email: str,
    code: str,
) -> Tuple[VerificationResult, Optional[Account]]:
    """
    Verify *code* and, on success, confirm the account it was issued for.

    Returns the verification result and the confirmed account (None when the
    code was rejected). The code is deleted after the account is confirmed.
    """
    result = store.verify(email, code)
    if not result.valid:
        return result, None

    email = normalize_email(email)
    account = confirm_account(db, result.account_id) if result.account_id else None
    if account is None:
        log_otp_event(
            store.purpose.value, email, "Verified code points at a missing account",
            level=logging.ERROR,
        )
        raise NotFoundException(detail="Account not found")

    store.delete(email)
    log_otp_event(store.purpose.value, email, "Email confirmed", level=logging.WARNING)
    return result, account
