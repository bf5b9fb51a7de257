"""Shared fixtures: isolated settings, a manual clock, SQLite engine, API client"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

_TMP = tempfile.mkdtemp(prefix="agrinvest-tests-")
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTP_BACKEND"] = "memory"
os.environ["OTP_SWEEP_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FILE"] = os.path.join(_TMP, "logs.txt")
os.environ["EMAIL_OUTBOX_DIR"] = os.path.join(_TMP, "emails")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.dependencies import (  # noqa: E402
    get_db,
    get_login_code_sender,
    get_reset_code_sender,
    get_verification_code_sender,
)
from app.db.init_db import init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services.db_otp_store import DatabaseOtpStore  # noqa: E402
from app.services.otp_registry import OtpStores  # noqa: E402
from app.services.otp_store import InMemoryOtpStore, OtpPurpose  # noqa: E402

TTL = timedelta(minutes=10)
MAX_ATTEMPTS = 5


class ManualClock:
    """Clock that only moves when told to"""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class Outbox:
    """Stands in for the mail sender and remembers every code it was given"""

    def __init__(self, delivers: bool = True):
        self.delivers = delivers
        self.sent = []

    def __call__(self, to: str, code: str) -> bool:
        self.sent.append((to, code))
        return self.delivers

    def last_code(self, to: str) -> str:
        for email, code in reversed(self.sent):
            if email == to:
                return code
        raise AssertionError(f"no code sent to {to}")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_store(backend, purpose, clock, session_factory=None):
    options = dict(ttl=TTL, max_attempts=MAX_ATTEMPTS, code_length=6, clock=clock)
    if backend == "database":
        return DatabaseOtpStore(session_factory, purpose, **options)
    return InMemoryOtpStore(purpose, **options)


@pytest.fixture(params=["memory", "database"])
def store(request, clock, session_factory):
    return make_store(request.param, OtpPurpose.PASSWORD_RESET, clock, session_factory)


@pytest.fixture
def stores(clock):
    return OtpStores(
        password_reset=make_store("memory", OtpPurpose.PASSWORD_RESET, clock),
        email_verification=make_store("memory", OtpPurpose.EMAIL_VERIFICATION, clock),
        login=make_store("memory", OtpPurpose.LOGIN, clock),
    )


@pytest.fixture
def reset_outbox():
    return Outbox()


@pytest.fixture
def verification_outbox():
    return Outbox()


@pytest.fixture
def login_outbox():
    return Outbox()


@pytest.fixture
def client(session_factory, stores, reset_outbox, verification_outbox, login_outbox):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous_stores = app.state.otp_stores
    app.state.otp_stores = stores
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reset_code_sender] = lambda: reset_outbox
    app.dependency_overrides[get_verification_code_sender] = lambda: verification_outbox
    app.dependency_overrides[get_login_code_sender] = lambda: login_outbox

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.otp_stores = previous_stores
