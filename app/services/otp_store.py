"""Verification code store: issue, verify, inspect and delete one-time codes.

One store instance holds the codes of a single purpose (password reset,
email verification or login). Each normalized email has at most one outstanding
record; issuing again replaces it outright.

Verification is checked in this order:

1. no record                  → NOT_FOUND
2. ``now >= expires_at``      → EXPIRED
3. already verified           → ALREADY_USED
4. ``attempts >= max``        → TOO_MANY_ATTEMPTS (even for the right code)
5. wrong code                 → MISMATCH, attempts + 1
6. right code                 → valid, verified = True

Failures come back as a ``VerificationResult``; only malformed input
(``OtpValidationError``) and backend failures (``StorageError``) raise.
"""
import hmac
import secrets
import string
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from app.errors.exceptions import OtpValidationError
from app.utils.logger import log_otp_event

Clock = Callable[[], datetime]
CodeSender = Callable[[str, str], bool]

_LOCK_STRIPES = 64


class OtpPurpose(str, Enum):
    """Independent code namespaces"""
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    LOGIN = "login"


class OtpFailure(str, Enum):
    """Why a verification attempt was rejected"""
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    MISMATCH = "mismatch"


FAILURE_MESSAGES = {
    OtpFailure.NOT_FOUND: "No code was requested for this email",
    OtpFailure.EXPIRED: "Code expired. Please request a new code.",
    OtpFailure.ALREADY_USED: "This code has already been used",
    OtpFailure.TOO_MANY_ATTEMPTS: "Too many incorrect attempts. Please request a new code.",
    OtpFailure.MISMATCH: "Incorrect code. Attempt {attempts}/{max_attempts}",
}


@dataclass
class OtpRecord:
    """One outstanding code for one email"""
    email: str
    code: str
    expires_at: datetime
    created_at: datetime
    verified: bool = False
    attempts: int = 0
    account_id: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class OtpListing:
    """A stored record as seen by diagnostics, expired ones included"""
    record: OtpRecord
    expired: bool


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: Optional[OtpFailure] = None
    message: Optional[str] = None
    account_id: Optional[str] = None
    attempts: int = 0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: Optional[str]) -> str:
    """Lower-case and trim; reject empty or obviously malformed addresses."""
    if not isinstance(email, str):
        raise OtpValidationError("Email is required")
    normalized = email.strip().lower()
    if not normalized:
        raise OtpValidationError("Email is required")
    local, _, domain = normalized.partition("@")
    if not local or not domain:
        raise OtpValidationError("Invalid email address")
    return normalized


def normalize_code(code: Optional[str]) -> str:
    if not isinstance(code, str) or not code.strip():
        raise OtpValidationError("Code is required")
    return code.strip()


def generate_code(length: int = 6) -> str:
    """Return a cryptographically random numeric code of *length* digits."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def codes_match(expected: str, submitted: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))


class OtpStore:
    """
    Shared configuration and decision rules for every store backend.

    Subclasses provide the storage: they must run the read-check-mutate of
    ``verify`` as one atomic unit per email.
    """

    def __init__(
        self,
        purpose: OtpPurpose,
        ttl: timedelta,
        max_attempts: int = 5,
        code_length: int = 6,
        clock: Optional[Clock] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if code_length < 4:
            raise ValueError("code_length must be at least 4")
        self.purpose = OtpPurpose(purpose)
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.code_length = code_length
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    # ── decision rules ────────────────────────────────────────────────────────

    def _new_record(self, email: str, account_id: Optional[str]) -> OtpRecord:
        now = self.now()
        return OtpRecord(
            email=email,
            code=generate_code(self.code_length),
            expires_at=now + self.ttl,
            created_at=now,
            verified=False,
            attempts=0,
            account_id=account_id,
        )

    def _precheck(self, record: Optional[OtpRecord], now: datetime) -> Optional[OtpFailure]:
        """Rules 1-4, which do not depend on the submitted code."""
        if record is None:
            return OtpFailure.NOT_FOUND
        if record.is_expired(now):
            return OtpFailure.EXPIRED
        if record.verified:
            return OtpFailure.ALREADY_USED
        if record.attempts >= self.max_attempts:
            return OtpFailure.TOO_MANY_ATTEMPTS
        return None

    def _failure(self, email: str, reason: OtpFailure, attempts: int = 0) -> VerificationResult:
        message = FAILURE_MESSAGES[reason].format(attempts=attempts, max_attempts=self.max_attempts)
        log_otp_event(self.purpose.value, email, "Verification rejected: %s", reason.value)
        return VerificationResult(valid=False, reason=reason, message=message, attempts=attempts)

    def _success(self, email: str, record: OtpRecord) -> VerificationResult:
        log_otp_event(self.purpose.value, email, "Code verified")
        return VerificationResult(valid=True, account_id=record.account_id, attempts=record.attempts)

    def _listing(self, records: List[OtpRecord]) -> List[OtpListing]:
        now = self.now()
        ordered = sorted(records, key=lambda r: r.created_at, reverse=True)
        return [OtpListing(record=r, expired=r.is_expired(now)) for r in ordered]

    # ── operations ────────────────────────────────────────────────────────────

    def issue(self, email: str, account_id: Optional[str] = None) -> OtpRecord:
        raise NotImplementedError

    def verify(self, email: str, code: str) -> VerificationResult:
        raise NotImplementedError

    def get(self, email: str) -> Optional[OtpRecord]:
        """Record as verification sees it: expired records read as absent."""
        record = self.get_raw(email)
        if record is None or record.is_expired(self.now()):
            return None
        return record

    def get_raw(self, email: str) -> Optional[OtpRecord]:
        raise NotImplementedError

    def delete(self, email: str) -> None:
        raise NotImplementedError

    def list_all(self) -> List[OtpListing]:
        raise NotImplementedError

    def purge_expired(self) -> int:
        raise NotImplementedError


class InMemoryOtpStore(OtpStore):
    """
    Process-local store.

    Each email maps to one of a fixed set of striped locks, so the
    read-check-mutate in ``verify`` is atomic per email while unrelated
    emails rarely share a lock. ``_index_lock`` only guards inserting,
    removing and snapshotting dict entries, never a whole verification.
    Lock order is always stripe, then index.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._records: Dict[str, OtpRecord] = {}
        self._stripes = [threading.Lock() for _ in range(_LOCK_STRIPES)]
        self._index_lock = threading.Lock()

    def _lock_for(self, email: str) -> threading.Lock:
        return self._stripes[hash(email) % _LOCK_STRIPES]

    def issue(self, email: str, account_id: Optional[str] = None) -> OtpRecord:
        email = normalize_email(email)
        record = self._new_record(email, account_id)
        with self._lock_for(email):
            with self._index_lock:
                replaced = email in self._records
                self._records[email] = record
        log_otp_event(
            self.purpose.value, email,
            "Code issued (replaced previous: %s)", "yes" if replaced else "no",
        )
        return replace(record)

    def verify(self, email: str, code: str) -> VerificationResult:
        email = normalize_email(email)
        code = normalize_code(code)
        with self._lock_for(email):
            record = self._records.get(email)
            failure = self._precheck(record, self.now())
            if failure is not None:
                return self._failure(email, failure, record.attempts if record else 0)

            if not codes_match(record.code, code):
                record.attempts += 1
                return self._failure(email, OtpFailure.MISMATCH, record.attempts)

            record.verified = True
            return self._success(email, record)

    def get_raw(self, email: str) -> Optional[OtpRecord]:
        email = normalize_email(email)
        with self._lock_for(email):
            record = self._records.get(email)
            return replace(record) if record else None

    def delete(self, email: str) -> None:
        email = normalize_email(email)
        with self._lock_for(email):
            with self._index_lock:
                removed = self._records.pop(email, None)
        if removed is not None:
            log_otp_event(self.purpose.value, email, "Code deleted")

    def list_all(self) -> List[OtpListing]:
        with self._index_lock:
            snapshot = [replace(r) for r in self._records.values()]
        return self._listing(snapshot)

    def purge_expired(self) -> int:
        now = self.now()
        with self._index_lock:
            candidates = [e for e, r in self._records.items() if r.is_expired(now)]

        purged = 0
        for email in candidates:
            with self._lock_for(email):
                record = self._records.get(email)
                # May have been re-issued since the snapshot
                if record is None or not record.is_expired(now):
                    continue
                with self._index_lock:
                    del self._records[email]
                purged += 1
        return purged
