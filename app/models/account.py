"""Investor account model"""
import uuid

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func

from app.db.base import Base


def _new_account_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """
    Club member profile with login credentials.

    Accounts are created unconfirmed; ``email_confirmed_at`` is set once the
    member proves control of the address with a verification code.
    """
    __tablename__ = "accounts"

    id = Column(String(64), primary_key=True, default=_new_account_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Account(id={self.id!r}, email={self.email!r}, confirmed={self.is_confirmed})>"

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None
