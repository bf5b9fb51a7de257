"""Builds the verification code stores and the expired-code sweeper."""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings
from app.services.db_otp_store import DatabaseOtpStore
from app.services.otp_store import Clock, InMemoryOtpStore, OtpPurpose, OtpStore

logger = logging.getLogger(__name__)


@dataclass
class OtpStores:
    """One store per purpose, shared by every request handler."""
    password_reset: OtpStore
    email_verification: OtpStore
    login: OtpStore

    def for_purpose(self, purpose: OtpPurpose) -> OtpStore:
        return getattr(self, OtpPurpose(purpose).value)

    def all(self) -> List[OtpStore]:
        return [self.password_reset, self.email_verification, self.login]


def build_otp_stores(
    settings: Settings,
    session_factory: Optional[sessionmaker] = None,
    clock: Optional[Clock] = None,
) -> OtpStores:
    """
    Create one store per purpose from configuration.

    ``OTP_BACKEND=database`` requires *session_factory*; anything else
    keeps codes in process memory.
    """
    options = dict(
        ttl=timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        code_length=settings.OTP_CODE_LENGTH,
        clock=clock,
    )

    if settings.OTP_BACKEND == "database":
        if session_factory is None:
            raise ValueError("OTP_BACKEND=database needs a session factory")
        stores = OtpStores(
            password_reset=DatabaseOtpStore(session_factory, OtpPurpose.PASSWORD_RESET, **options),
            email_verification=DatabaseOtpStore(session_factory, OtpPurpose.EMAIL_VERIFICATION, **options),
            login=DatabaseOtpStore(session_factory, OtpPurpose.LOGIN, **options),
        )
    else:
        stores = OtpStores(
            password_reset=InMemoryOtpStore(OtpPurpose.PASSWORD_RESET, **options),
            email_verification=InMemoryOtpStore(OtpPurpose.EMAIL_VERIFICATION, **options),
            login=InMemoryOtpStore(OtpPurpose.LOGIN, **options),
        )

    logger.info(
        f"[OTP] {settings.OTP_BACKEND} stores ready "
        f"(ttl={settings.OTP_EXPIRE_MINUTES}m, max_attempts={settings.OTP_MAX_ATTEMPTS})"
    )
    return stores


def purge_expired_codes(stores: OtpStores) -> int:
    """Delete expired codes from every store. Returns how many were removed."""
    total = 0
    for store in stores.all():
        purged = store.purge_expired()
        if purged:
            logger.info(f"[OTP] Purged {purged} expired {store.purpose.value} code(s)")
        total += purged
    return total


def _sweep(stores: OtpStores) -> None:
    try:
        purge_expired_codes(stores)
    except Exception as exc:
        # Next run retries
        logger.error(f"[OTP] Expired-code sweep failed: {exc}", exc_info=True)


def start_otp_sweeper(stores: OtpStores, interval_minutes: int, timezone: str = "UTC") -> BackgroundScheduler:
    sched = BackgroundScheduler(timezone=timezone)
    sched.add_job(
        _sweep,
        "interval",
        args=[stores],
        minutes=interval_minutes,
        id="purge_expired_otp_codes",
        replace_existing=True,
    )
    sched.start()
    logger.info(f"[OTP] Expired-code sweeper running every {interval_minutes} minute(s)")
    return sched
