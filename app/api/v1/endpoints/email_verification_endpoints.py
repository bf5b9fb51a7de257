"""Email confirmation endpoints"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import (
    get_db,
    get_email_verification_store,
    get_verification_code_sender,
)
from app.errors.response_codes import SuccessCode, otp_failure_response, success_response
from app.schemas.auth_schemas import AccountResponse
from app.schemas.otp_schemas import (
    CodeRequest,
    CodeSentResponse,
    DeliveryDebug,
    VerificationCodeRequest,
)
from app.services.email_verification_service import confirm_email, send_verification_code
from app.services.otp_store import CodeSender, OtpStore

router = APIRouter()


@router.post("/send-code", response_model=CodeSentResponse, status_code=status.HTTP_200_OK)
def send_confirmation_code(
    body: VerificationCodeRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_email_verification_store),
    send_code: CodeSender = Depends(get_verification_code_sender),
):
    """
    ## Send (or resend) the email confirmation code

    **Role:** Public — no authentication required.

    ### Required fields (JSON body)
    | Field   | Type   | Description                          |
    |---------|--------|--------------------------------------|
    | email   | string | Email of the new account             |
    | user_id | string | Account ID returned by registration  |

    ### Frontend integration
    - "Resend code" button on the confirmation screen; the previous code
      stops working as soon as a new one is issued.
    - HTTP 404 → account unknown or email does not match it.
    - HTTP 409 → email already confirmed, go to login.
    """
    report = send_verification_code(db, store, body.email, body.user_id, send_code)

    response = CodeSentResponse(message="Verification code sent.")
    if not settings.is_production:
        response.debug = DeliveryDebug(email_sent=report.email_sent, code_issued=report.code_issued)
    return response


@router.post("/verify", status_code=status.HTTP_200_OK)
def verify_confirmation_code(
    body: CodeRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_email_verification_store),
):
    """
    ## Confirm the email with the received code

    **Role:** Public — no authentication required.

    On success the account is marked as confirmed and the code discarded.

    ### Response
    - HTTP 200 → `data` is the confirmed account.
    - HTTP 400 → `errors.reason` tells why the code was refused.
    """
    result, account = confirm_email(db, store, body.email, body.code)
    if not result.valid:
        return otp_failure_response(result)
    return success_response(
        SuccessCode.EMAIL_CONFIRMED,
        data=AccountResponse.model_validate(account).model_dump(mode="json"),
    )
