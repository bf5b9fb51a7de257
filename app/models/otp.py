"""OTPCode: persisted verification codes for the database-backed store."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from app.db.base import Base


class OTPCode(Base):
    """
    Holds the single outstanding code for one email within one purpose.

    Lifecycle
    ---------
    1. Code requested  → row replaced (verified=False, attempts=0).
    2. Wrong code      → attempts incremented.
    3. Correct code    → verified=True (only once).
    4. Flow completed  → row deleted. Expired rows are purged by the sweeper.
    """

    __tablename__ = "otp_codes"
    __table_args__ = (
        UniqueConstraint("purpose", "email", name="uq_otp_codes_purpose_email"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    purpose = Column(String(32), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    code = Column(String(12), nullable=False)

    # Set for email verification so the account can be confirmed afterwards
    account_id = Column(String(64), nullable=True)

    # Naive UTC timestamps; SQLite drops tzinfo anyway
    expires_at = Column(DateTime(timezone=False), nullable=False)
    created_at = Column(DateTime(timezone=False), nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<OTPCode(id={self.id}, purpose={self.purpose!r}, email={self.email!r}, "
            f"expires_at={self.expires_at}, verified={self.verified}, attempts={self.attempts})>"
        )
