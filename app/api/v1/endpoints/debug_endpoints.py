"""
Development-only inspection of stored verification codes.

Every route here answers 403 when ENVIRONMENT is production.
"""
from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_otp_stores, require_non_production
from app.errors.exceptions import NotFoundException
from app.schemas.otp_schemas import OtpListResponse, OtpRecordResponse
from app.services.otp_registry import OtpStores
from app.services.otp_store import OtpListing, OtpPurpose

router = APIRouter(dependencies=[Depends(require_non_production)])


def _to_response(listing: OtpListing) -> OtpRecordResponse:
    record = listing.record
    return OtpRecordResponse(
        email=record.email,
        code=record.code,
        expires_at=record.expires_at,
        created_at=record.created_at,
        verified=record.verified,
        attempts=record.attempts,
        account_id=record.account_id,
        expired=listing.expired,
    )


@router.get("/otp/{purpose}/codes", response_model=OtpListResponse, status_code=status.HTTP_200_OK)
def list_codes(purpose: OtpPurpose, stores: OtpStores = Depends(get_otp_stores)):
    """
    ## List every stored code for a purpose

    **Role:** Development only — 403 in production.

    Newest first. Expired codes that have not been swept yet are included
    and flagged with `expired: true`.
    """
    listings = stores.for_purpose(purpose).list_all()
    return OtpListResponse(
        purpose=purpose.value,
        total=len(listings),
        codes=[_to_response(listing) for listing in listings],
    )


@router.get("/otp/{purpose}/codes/{email}", response_model=OtpRecordResponse, status_code=status.HTTP_200_OK)
def get_code(purpose: OtpPurpose, email: str, stores: OtpStores = Depends(get_otp_stores)):
    """
    ## Show the stored code for one email

    **Role:** Development only — 403 in production.

    Returns the raw record even when it has expired.
    """
    store = stores.for_purpose(purpose)
    record = store.get_raw(email)
    if record is None:
        raise NotFoundException(detail="No code stored for this email")
    return _to_response(OtpListing(record=record, expired=record.is_expired(store.now())))
