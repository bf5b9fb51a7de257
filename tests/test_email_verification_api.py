"""Registration and email confirmation over HTTP"""
from app.services.account_service import get_account_by_id

REGISTER = "/api/v1/auth/register"
BASE = "/api/v1/auth/verify-email"
EMAIL = "newcomer@gmail.com"


def register(client, email=EMAIL, password="secret123"):
    return client.post(REGISTER, json={"email": email, "password": password, "full_name": "New Comer"})


def test_register_creates_unconfirmed_account_and_sends_code(client, verification_outbox, stores):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["account"]["email"] == EMAIL
    assert body["account"]["is_confirmed"] is False
    assert body["email_sent"] is True
    assert verification_outbox.last_code(EMAIL)
    assert stores.email_verification.get(EMAIL).account_id == body["account"]["id"]


def test_register_twice_is_conflict(client):
    register(client)

    response = register(client, email="NewComer@gmail.com")

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already registered"


def test_register_rejects_short_password(client):
    response = register(client, password="123")

    assert response.status_code == 422


def test_code_confirms_the_account(client, verification_outbox, stores, session_factory):
    account_id = register(client).json()["account"]["id"]
    code = verification_outbox.last_code(EMAIL)

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": code})

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 2007
    assert body["data"]["id"] == account_id
    assert body["data"]["is_confirmed"] is True
    assert stores.email_verification.get_raw(EMAIL) is None

    fresh = session_factory()
    try:
        assert get_account_by_id(fresh, account_id).email_confirmed_at is not None
    finally:
        fresh.close()


def test_wrong_code_leaves_account_unconfirmed(client, verification_outbox):
    register(client)
    code = verification_outbox.last_code(EMAIL)
    bad = "000000" if code != "000000" else "111111"

    response = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": bad})

    assert response.status_code == 400
    assert response.json()["errors"] == {"reason": "mismatch", "attempts": 1}


def test_resend_replaces_previous_code(client, verification_outbox):
    account_id = register(client).json()["account"]["id"]
    first = verification_outbox.last_code(EMAIL)

    resent = client.post(f"{BASE}/send-code", json={"email": EMAIL, "user_id": account_id})
    second = verification_outbox.last_code(EMAIL)

    assert resent.status_code == 200
    assert resent.json()["debug"]["code_issued"] is True
    if first != second:
        stale = client.post(f"{BASE}/verify", json={"email": EMAIL, "code": first})
        assert stale.json()["errors"]["reason"] == "mismatch"
    assert client.post(f"{BASE}/verify", json={"email": EMAIL, "code": second}).status_code == 200


def test_send_code_for_confirmed_account_is_conflict(client, verification_outbox):
    account_id = register(client).json()["account"]["id"]
    client.post(f"{BASE}/verify", json={"email": EMAIL, "code": verification_outbox.last_code(EMAIL)})

    response = client.post(f"{BASE}/send-code", json={"email": EMAIL, "user_id": account_id})

    assert response.status_code == 409
    assert response.json()["detail"] == "Email already confirmed"


def test_send_code_with_foreign_email_is_not_found(client):
    account_id = register(client).json()["account"]["id"]

    response = client.post(f"{BASE}/send-code", json={"email": "someone-else@gmail.com", "user_id": account_id})

    assert response.status_code == 404


def test_send_code_for_unknown_account_is_not_found(client):
    response = client.post(f"{BASE}/send-code", json={"email": EMAIL, "user_id": "missing"})

    assert response.status_code == 404


def test_failed_delivery_is_reported_outside_production(client, verification_outbox):
    verification_outbox.delivers = False

    response = register(client)

    assert response.status_code == 201
    assert response.json()["email_sent"] is False
