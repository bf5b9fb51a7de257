"""Account directory: lookups, registration, password and confirmation updates"""
from datetime import datetime, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.account import Account

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    """
    Get account by email (case-insensitive)
    """
    return db.query(Account).filter(Account.email == email.strip().lower()).first()


def get_account_by_id(db: Session, account_id: str) -> Optional[Account]:
    """
    Get account by ID
    """
    return db.query(Account).filter(Account.id == account_id).first()


def create_account(
    db: Session,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> Account:
    """
    Create an unconfirmed account with a hashed password
    """
    account = Account(
        email=email.strip().lower(),
        hashed_password=get_password_hash(password),
        full_name=full_name,
        phone=phone,
        is_active=True,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def update_password(db: Session, account: Account, new_password: str) -> Account:
    account.hashed_password = get_password_hash(new_password)
    account.password_changed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(account)
    return account


def confirm_account(db: Session, account_id: str) -> Optional[Account]:
    """
    Mark the account's email as confirmed. Returns None if the account is gone.
    Confirming twice keeps the original confirmation time.
    """
    account = get_account_by_id(db, account_id)
    if account is None:
        return None
    if account.email_confirmed_at is None:
        account.email_confirmed_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(account)
    return account
