"""Forgot-password endpoints: code request, code check, password reset"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import get_db, get_password_reset_store, get_reset_code_sender
from app.errors.response_codes import SuccessCode, otp_failure_response, success_response
from app.schemas.otp_schemas import (
    CodeRequest,
    CodeSentResponse,
    DeliveryDebug,
    EmailRequest,
    ResetPasswordRequest,
)
from app.services.otp_store import CodeSender, OtpStore
from app.services.password_reset_service import (
    request_password_reset,
    reset_password,
    verify_password_reset_code,
)

router = APIRouter()


@router.post("/send-code", response_model=CodeSentResponse, status_code=status.HTTP_200_OK)
def send_reset_code(
    body: EmailRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_password_reset_store),
    send_code: CodeSender = Depends(get_reset_code_sender),
):
    """
    ## Request a password reset code (Step 1 of 3)

    **Role:** Public — no authentication required.

    Emails a 6-digit code to the address if it belongs to an account. Any
    earlier reset code for the same email stops working immediately.

    ### Required fields (JSON body)
    | Field | Type   | Description   |
    |-------|--------|---------------|
    | email | string | Account email |

    ### Response
    Always the same message, whether or not the email is registered.
    Outside production a `debug` block reports `email_sent` / `code_issued`.

    ### Frontend integration
    - Next: **POST /auth/forgot-password/verify-code** with the received code.
    """
    report = request_password_reset(db, store, body.email, send_code)

    response = CodeSentResponse(
        message="If the email is registered, you will receive a verification code.",
    )
    if not settings.is_production:
        response.debug = DeliveryDebug(email_sent=report.email_sent, code_issued=report.code_issued)
    return response


@router.post("/verify-code", status_code=status.HTTP_200_OK)
def verify_reset_code(
    body: CodeRequest,
    store: OtpStore = Depends(get_password_reset_store),
):
    """
    ## Check a password reset code (Step 2 of 3)

    **Role:** Public — no authentication required.

    ### Required fields (JSON body)
    | Field | Type   | Description                 |
    |-------|--------|-----------------------------|
    | email | string | Same email as step 1        |
    | code  | string | 6-digit code from the email |

    ### Response
    - HTTP 200 → code accepted; show the new-password form.
    - HTTP 400 → `errors.reason` is one of `not_found`, `expired`,
      `already_used`, `too_many_attempts`, `mismatch`.

    A code can pass this step only once; after 5 wrong codes it is locked.
    """
    result = verify_password_reset_code(store, body.email, body.code)
    if not result.valid:
        return otp_failure_response(result)
    return success_response(SuccessCode.CODE_VERIFIED, data={"email": body.email, "verified": True})


@router.post("/reset", status_code=status.HTTP_200_OK)
def reset_account_password(
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_password_reset_store),
):
    """
    ## Set a new password (Step 3 of 3)

    **Role:** Public — no authentication required.

    Requires the code that passed **/verify-code**, still within its validity
    window. The code is discarded after the password changes.

    ### Required fields (JSON body)
    | Field        | Type   | Description                |
    |--------------|--------|----------------------------|
    | email        | string | Same email as step 1       |
    | code         | string | The verified code          |
    | new_password | string | Minimum 6 characters       |

    ### Frontend integration
    - HTTP 200 → redirect to login.
    - HTTP 400 → code expired / not verified — restart from step 1.
    - HTTP 404 → the account no longer exists.
    """
    reset_password(db, store, body.email, body.code, body.new_password)
    return success_response(SuccessCode.PASSWORD_RESET)
