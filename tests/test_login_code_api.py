"""Login-with-code flow over HTTP"""
import pytest

from app.core.config import settings
from app.errors.exceptions import BadRequestException
from app.services.account_service import create_account
from app.services.login_code_service import login_with_code
from app.services.otp_store import InMemoryOtpStore, OtpPurpose
from tests.conftest import TTL

BASE = "/api/v1/auth/login-with-code"
EMAIL = "investor@gmail.com"


@pytest.fixture
def account(db):
    return create_account(db, email=EMAIL, password="secret123", full_name="Club Investor")


def request_code(client, email=EMAIL):
    return client.post(f"{BASE}/send-code", json={"email": email})


def test_code_logs_the_account_in(client, account, login_outbox, stores):
    sent = request_code(client, " Investor@Gmail.com")
    assert sent.status_code == 200
    assert sent.json()["debug"] == {"email_sent": True, "code_issued": True}
    code = login_outbox.last_code(EMAIL)

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 2008
    assert body["data"]["id"] == account.id
    assert body["data"]["email"] == EMAIL
    assert "hashed_password" not in body["data"]
    assert stores.login.get_raw(EMAIL) is None


def test_code_cannot_log_in_twice(client, account, login_outbox):
    request_code(client)
    code = login_outbox.last_code(EMAIL)
    client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    again = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    assert again.status_code == 400
    assert again.json()["errors"]["reason"] == "not_found"


def test_unknown_email_gets_the_same_answer(client, account, login_outbox):
    known = request_code(client)
    unknown = request_code(client, "stranger@gmail.com")

    assert unknown.status_code == 200
    assert unknown.json()["message"] == known.json()["message"]
    assert unknown.json()["debug"]["code_issued"] is False
    assert [to for to, _ in login_outbox.sent] == [EMAIL]


def test_deactivated_account_gets_no_code(client, account, db, login_outbox):
    account.is_active = False
    db.commit()

    response = request_code(client)

    assert response.status_code == 200
    assert response.json()["debug"]["code_issued"] is False
    assert login_outbox.sent == []


def test_debug_block_hidden_in_production(client, account, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    response = request_code(client)

    assert response.json()["debug"] is None


def test_wrong_code_reports_reason_and_attempts(client, account, login_outbox, stores):
    request_code(client)
    code = login_outbox.last_code(EMAIL)
    bad = "000000" if code != "000000" else "111111"

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": bad})

    assert response.status_code == 400
    assert response.json()["errors"] == {"reason": "mismatch", "attempts": 1}
    assert stores.login.get(EMAIL) is not None


def test_expired_code_is_refused(client, account, login_outbox, clock):
    request_code(client)
    code = login_outbox.last_code(EMAIL)
    clock.advance(minutes=10)

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    assert response.status_code == 400
    assert response.json()["errors"]["reason"] == "expired"


def test_login_codes_are_separate_from_reset_codes(client, account, login_outbox, stores):
    reset_code = stores.password_reset.issue(EMAIL).code
    request_code(client)
    login_code = login_outbox.last_code(EMAIL)

    if reset_code != login_code:
        refused = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": reset_code})
        assert refused.json()["errors"]["reason"] == "mismatch"
    assert stores.password_reset.get(EMAIL).verified is False


def test_account_removed_after_code_sent_is_not_found(client, account, db, login_outbox):
    request_code(client)
    code = login_outbox.last_code(EMAIL)
    db.delete(account)
    db.commit()

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    assert response.status_code == 404
    assert response.json()["detail"] == "Account not found"


def test_blank_code_is_rejected(client):
    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": ""})

    assert response.status_code == 422


class ReissuingStore(InMemoryOtpStore):
    """Replaces the code right after a successful verification"""

    def verify(self, email, code):
        result = super().verify(email, code)
        if result.valid:
            self.issue(email)
        return result


def test_code_replaced_during_verification_is_refused(db, account, clock):
    store = ReissuingStore(OtpPurpose.LOGIN, ttl=TTL, clock=clock)
    code = store.issue(EMAIL, account_id=account.id).code

    with pytest.raises(BadRequestException):
        login_with_code(db, store, EMAIL, code)
    assert store.get(EMAIL) is not None
