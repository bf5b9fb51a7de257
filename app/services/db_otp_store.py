"""Verification code store backed by the ``otp_codes`` table."""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.errors.exceptions import StorageError
from app.models.otp import OTPCode
from app.services.otp_store import (
    OtpFailure,
    OtpListing,
    OtpRecord,
    OtpStore,
    VerificationResult,
    codes_match,
    normalize_code,
    normalize_email,
)
from app.utils.logger import log_otp_event

logger = logging.getLogger(__name__)

_ISSUE_RETRIES = 3


def _to_db(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_record(row: OTPCode) -> OtpRecord:
    return OtpRecord(
        email=row.email,
        code=row.code,
        expires_at=_from_db(row.expires_at),
        created_at=_from_db(row.created_at),
        verified=bool(row.verified),
        attempts=row.attempts or 0,
        account_id=row.account_id,
    )


class DatabaseOtpStore(OtpStore):
    """
    Codes persisted through SQLAlchemy, one row per (purpose, email).

    ``verify`` locks the row with SELECT ... FOR UPDATE where the database
    supports it, and both mutations are conditional UPDATEs pinned to the
    issuance they were checked against, so on databases without row locks
    (SQLite) a concurrent double-verify still flips ``verified`` only once
    and no attempt increment is lost.

    Any SQLAlchemy failure, timeouts included, is re-raised as StorageError
    after the transaction is rolled back.
    """

    def __init__(self, session_factory: sessionmaker, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db: Session = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"[OTP] {self.purpose.value} store failure: {exc}")
            raise StorageError(f"Verification code storage failed: {exc.__class__.__name__}") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _query(self, db: Session, email: str):
        return db.query(OTPCode).filter(
            OTPCode.purpose == self.purpose.value,
            OTPCode.email == email,
        )

    def issue(self, email: str, account_id: Optional[str] = None) -> OtpRecord:
        email = normalize_email(email)
        for attempt in range(1, _ISSUE_RETRIES + 1):
            record = self._new_record(email, account_id)
            try:
                with self._session() as db:
                    row = self._query(db, email).with_for_update().first()
                    replaced = row is not None
                    if row is None:
                        row = OTPCode(purpose=self.purpose.value, email=email)
                        db.add(row)
                    row.code = record.code
                    row.account_id = record.account_id
                    row.expires_at = _to_db(record.expires_at)
                    row.created_at = _to_db(record.created_at)
                    row.verified = False
                    row.attempts = 0
            except StorageError as exc:
                # Two first-time issues raced on the unique constraint
                if isinstance(exc.__cause__, IntegrityError) and attempt < _ISSUE_RETRIES:
                    continue
                raise
            log_otp_event(
                self.purpose.value, email,
                "Code issued (replaced previous: %s)", "yes" if replaced else "no",
            )
            return record
        raise StorageError("Verification code storage failed: issue retries exhausted")

    def verify(self, email: str, code: str) -> VerificationResult:
        email = normalize_email(email)
        code = normalize_code(code)
        with self._session() as db:
            row = self._query(db, email).with_for_update().first()
            record = _to_record(row) if row is not None else None
            failure = self._precheck(record, self.now())
            if failure is not None:
                return self._failure(email, failure, record.attempts if record else 0)

            still_open = db.query(OTPCode).filter(
                OTPCode.id == row.id,
                OTPCode.code == row.code,
                OTPCode.created_at == row.created_at,
                OTPCode.verified.is_(False),
                OTPCode.attempts < self.max_attempts,
            )

            if not codes_match(record.code, code):
                bumped = still_open.update(
                    {OTPCode.attempts: OTPCode.attempts + 1},
                    synchronize_session=False,
                )
                if not bumped:
                    return self._recheck(db, email, record)
                attempts = db.query(OTPCode.attempts).filter(OTPCode.id == row.id).scalar()
                return self._failure(email, OtpFailure.MISMATCH, attempts)

            flipped = still_open.update(
                {OTPCode.verified: True},
                synchronize_session=False,
            )
            if not flipped:
                return self._recheck(db, email, record)
            record.verified = True
            return self._success(email, record)

    def _recheck(self, db: Session, email: str, checked: OtpRecord) -> VerificationResult:
        """A concurrent request changed the row between the read and the update."""
        row = self._query(db, email).populate_existing().first()
        current = _to_record(row) if row is not None else None
        if current is not None and current.created_at != checked.created_at:
            # Re-issued meanwhile: the submitted code belongs to a dead issuance
            return self._failure(email, OtpFailure.MISMATCH, current.attempts)
        failure = self._precheck(current, self.now()) or OtpFailure.ALREADY_USED
        return self._failure(email, failure, current.attempts if current else 0)

    def get_raw(self, email: str) -> Optional[OtpRecord]:
        email = normalize_email(email)
        with self._session() as db:
            row = self._query(db, email).first()
            return _to_record(row) if row is not None else None

    def delete(self, email: str) -> None:
        email = normalize_email(email)
        with self._session() as db:
            removed = self._query(db, email).delete(synchronize_session=False)
        if removed:
            log_otp_event(self.purpose.value, email, "Code deleted")

    def list_all(self) -> List[OtpListing]:
        with self._session() as db:
            rows = db.query(OTPCode).filter(OTPCode.purpose == self.purpose.value).all()
            records = [_to_record(row) for row in rows]
        return self._listing(records)

    def purge_expired(self) -> int:
        cutoff = _to_db(self.now())
        with self._session() as db:
            purged = db.query(OTPCode).filter(
                OTPCode.purpose == self.purpose.value,
                OTPCode.expires_at <= cutoff,
            ).delete(synchronize_session=False)
        return int(purged or 0)
