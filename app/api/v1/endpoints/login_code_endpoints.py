"""Login-with-code endpoints"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import get_db, get_login_code_sender, get_login_store
from app.errors.response_codes import SuccessCode, otp_failure_response, success_response
from app.schemas.auth_schemas import AccountResponse
from app.schemas.otp_schemas import CodeRequest, CodeSentResponse, DeliveryDebug, EmailRequest
from app.services.login_code_service import login_with_code, request_login_code
from app.services.otp_store import CodeSender, OtpStore

router = APIRouter()


@router.post("/send-code", response_model=CodeSentResponse, status_code=status.HTTP_200_OK)
def send_login_code(
    body: EmailRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_login_store),
    send_code: CodeSender = Depends(get_login_code_sender),
):
    """
    ## Request a login code (Step 1 of 2)

    **Role:** Public — no authentication required.

    Emails a 6-digit sign-in code if the address belongs to an active account.

    ### Required fields (JSON body)
    | Field | Type   | Description   |
    |-------|--------|---------------|
    | email | string | Account email |

    ### Response
    Always the same message, whether or not the email is registered.

    ### Frontend integration
    - Offer "Resend code" after 60 seconds; the previous code stops working.
    - Next: **POST /auth/login-with-code/verify**.
    """
    report = request_login_code(db, store, body.email, send_code)

    response = CodeSentResponse(
        message="If the email is registered, you will receive a verification code.",
    )
    if not settings.is_production:
        response.debug = DeliveryDebug(email_sent=report.email_sent, code_issued=report.code_issued)
    return response


@router.post("/verify", status_code=status.HTTP_200_OK)
def verify_login_code(
    body: CodeRequest,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_login_store),
):
    """
    ## Log in with the received code (Step 2 of 2)

    **Role:** Public — no authentication required.

    ### Response
    - HTTP 200 → `data` is the account profile; the code is discarded.
    - HTTP 400 → `errors.reason` tells why the code was refused.
    - HTTP 404 → the account no longer exists.
    """
    result, account = login_with_code(db, store, body.email, body.code)
    if not result.valid:
        return otp_failure_response(result)
    return success_response(
        SuccessCode.LOGGED_IN,
        data=AccountResponse.model_validate(account).model_dump(mode="json"),
    )
