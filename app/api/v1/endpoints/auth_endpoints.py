"""Authentication endpoints: registration, forgot-password, email confirmation, login by code"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from app.api.v1.endpoints import (
    email_verification_endpoints,
    login_code_endpoints,
    password_reset_endpoints,
)
from app.core.config import settings
from app.core.dependencies import (
    get_db,
    get_email_verification_store,
    get_verification_code_sender,
)
from app.errors.exceptions import ConflictException
from app.schemas.auth_schemas import AccountCreate, AccountResponse, RegistrationResponse
from app.services.account_service import create_account, get_account_by_email
from app.services.email_verification_service import send_verification_code
from app.services.otp_store import CodeSender, OtpStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register(
    account_data: AccountCreate,
    db: Session = Depends(get_db),
    store: OtpStore = Depends(get_email_verification_store),
    send_code: CodeSender = Depends(get_verification_code_sender),
):
    """
    ## Register a new investor account

    **Role:** Public — no authentication required.

    Creates the account right away (unconfirmed) and emails a 6-digit
    confirmation code to the submitted address.

    ### Required fields (JSON body)
    | Field     | Type   | Description                        |
    |-----------|--------|------------------------------------|
    | email     | string | Valid email — the code is sent here |
    | password  | string | Minimum 6 characters               |
    | full_name | string | Display name (optional)            |
    | phone     | string | Contact phone (optional)           |

    ### Response
    `{ "message": "...", "account": {...}, "email_sent": true }`
    (`email_sent` is `null` in production)

    ### Frontend integration
    1. HTTP 201 → keep `account.id` and go to the code entry screen.
    2. HTTP 409 → "Email already registered".
    3. Next: **POST /auth/verify-email/verify** with the received code.
    """
    if get_account_by_email(db, account_data.email):
        raise ConflictException(detail="Email already registered")

    account = create_account(
        db,
        email=account_data.email,
        password=account_data.password,
        full_name=account_data.full_name,
        phone=account_data.phone,
    )
    logger.info(f"[Register] Account created: {account.email}")

    report = send_verification_code(db, store, account.email, account.id, send_code)
    if not report.email_sent:
        logger.warning(f"[Register] Confirmation email delivery failed for {account.email}")

    return RegistrationResponse(
        message="Account created. Please check your inbox and enter the 6-digit code to confirm your email.",
        account=AccountResponse.model_validate(account),
        email_sent=None if settings.is_production else report.email_sent,
    )


router.include_router(password_reset_endpoints.router, prefix="/forgot-password")
router.include_router(email_verification_endpoints.router, prefix="/verify-email")
router.include_router(login_code_endpoints.router, prefix="/login-with-code")
