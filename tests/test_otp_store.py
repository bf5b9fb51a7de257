"""Issue / verify / get / delete / list behaviour, run against both backends"""
import pytest

from app.errors.exceptions import OtpValidationError
from app.services.otp_store import OtpFailure, generate_code, normalize_email
from tests.conftest import MAX_ATTEMPTS, TTL


def wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


def test_issue_creates_six_digit_code_valid_for_ttl(store, clock):
    record = store.issue("user@test.com")

    assert len(record.code) == 6
    assert record.code.isdigit()
    assert record.created_at == clock()
    assert record.expires_at == clock() + TTL
    assert record.verified is False
    assert record.attempts == 0


def test_correct_code_verifies_exactly_once(store):
    code = store.issue("user@test.com").code

    first = store.verify("user@test.com", code)
    second = store.verify("user@test.com", code)

    assert first.valid is True
    assert second.valid is False
    assert second.reason is OtpFailure.ALREADY_USED
    assert store.get("user@test.com").verified is True


def test_email_and_code_are_normalized(store):
    code = store.issue("user@test.com").code

    result = store.verify("USER@TEST.COM ", f" {code} ")

    assert result.valid is True
    assert store.verify("user@test.com", code).reason is OtpFailure.ALREADY_USED


def test_issue_normalizes_email_key(store):
    store.issue("  Mixed@Case.COM ")

    assert store.get("mixed@case.com") is not None
    assert store.get_raw("mixed@case.com").email == "mixed@case.com"


def test_wrong_codes_count_attempts_then_lock(store):
    code = store.issue("x@y.com").code

    for expected_attempts in range(1, MAX_ATTEMPTS + 1):
        result = store.verify("x@y.com", wrong(code))
        assert result.valid is False
        assert result.reason is OtpFailure.MISMATCH
        assert result.attempts == expected_attempts
        assert result.message == f"Incorrect code. Attempt {expected_attempts}/{MAX_ATTEMPTS}"

    assert store.get("x@y.com").attempts == MAX_ATTEMPTS

    locked = store.verify("x@y.com", code)
    assert locked.valid is False
    assert locked.reason is OtpFailure.TOO_MANY_ATTEMPTS
    assert store.get("x@y.com").attempts == MAX_ATTEMPTS
    assert store.get("x@y.com").verified is False


def test_fewer_wrong_codes_than_cap_still_allow_success(store):
    code = store.issue("x@y.com").code
    for _ in range(MAX_ATTEMPTS - 1):
        store.verify("x@y.com", wrong(code))

    result = store.verify("x@y.com", code)

    assert result.valid is True
    assert result.attempts == MAX_ATTEMPTS - 1


def test_expired_code_is_rejected_even_when_correct(store, clock):
    code = store.issue("a@b.com").code
    clock.advance(minutes=10, seconds=1)

    result = store.verify("a@b.com", code)

    assert result.valid is False
    assert result.reason is OtpFailure.EXPIRED
    assert result.message == "Code expired. Please request a new code."


def test_code_expires_exactly_at_expires_at(store, clock):
    code = store.issue("a@b.com").code
    clock.advance(minutes=10)

    assert store.verify("a@b.com", code).reason is OtpFailure.EXPIRED


def test_code_still_valid_just_before_expiry(store, clock):
    code = store.issue("a@b.com").code
    clock.advance(minutes=9, seconds=59)

    assert store.verify("a@b.com", code).valid is True


def test_expired_wins_over_verified_and_locked(store, clock):
    code = store.issue("a@b.com").code
    store.verify("a@b.com", code)
    clock.advance(minutes=11)

    assert store.verify("a@b.com", code).reason is OtpFailure.EXPIRED


def test_reissue_invalidates_previous_code(store):
    first = store.issue("e@x.com").code
    second = store.issue("e@x.com").code
    while second == first:
        second = store.issue("e@x.com").code

    stale = store.verify("e@x.com", first)

    assert stale.valid is False
    assert stale.reason is OtpFailure.MISMATCH
    assert store.verify("e@x.com", second).valid is True


def test_reissue_resets_verified_and_attempts(store):
    code = store.issue("e@x.com").code
    store.verify("e@x.com", wrong(code))
    store.verify("e@x.com", code)

    fresh = store.issue("e@x.com")

    current = store.get("e@x.com")
    assert current.verified is False
    assert current.attempts == 0
    assert store.verify("e@x.com", fresh.code).valid is True


def test_reissue_unlocks_after_too_many_attempts(store):
    code = store.issue("e@x.com").code
    for _ in range(MAX_ATTEMPTS):
        store.verify("e@x.com", wrong(code))

    fresh = store.issue("e@x.com").code

    assert store.verify("e@x.com", fresh).valid is True


def test_delete_then_verify_is_not_found(store):
    code = store.issue("d@x.com").code

    store.delete("d@x.com")

    result = store.verify("d@x.com", code)
    assert result.valid is False
    assert result.reason is OtpFailure.NOT_FOUND
    assert store.get("d@x.com") is None


def test_delete_unknown_email_is_noop(store):
    store.delete("nobody@x.com")

    assert store.get("nobody@x.com") is None


def test_verify_without_issue_is_not_found(store):
    result = store.verify("ghost@x.com", "123456")

    assert result.reason is OtpFailure.NOT_FOUND
    assert result.message == "No code was requested for this email"


def test_get_hides_expired_but_get_raw_keeps_it(store, clock):
    store.issue("g@x.com")
    clock.advance(minutes=15)

    assert store.get("g@x.com") is None
    raw = store.get_raw("g@x.com")
    assert raw is not None
    assert raw.is_expired(clock())


def test_get_returns_a_copy(store):
    store.issue("c@x.com")

    snapshot = store.get("c@x.com")
    snapshot.verified = True
    snapshot.attempts = 99

    assert store.get("c@x.com").verified is False
    assert store.get("c@x.com").attempts == 0


def test_account_id_is_returned_on_success(store):
    code = store.issue("new@x.com", account_id="acc-42").code

    result = store.verify("new@x.com", code)

    assert result.valid is True
    assert result.account_id == "acc-42"


def test_list_all_is_newest_first_and_flags_expired(store, clock):
    store.issue("old@x.com")
    clock.advance(minutes=11)
    store.issue("new@x.com")

    listings = store.list_all()

    assert [item.record.email for item in listings] == ["new@x.com", "old@x.com"]
    assert [item.expired for item in listings] == [False, True]


def test_purge_expired_removes_only_expired(store, clock):
    store.issue("old@x.com")
    clock.advance(minutes=11)
    store.issue("new@x.com")

    assert store.purge_expired() == 1
    assert store.get_raw("old@x.com") is None
    assert store.get_raw("new@x.com") is not None


@pytest.mark.parametrize("email", ["", "   ", None, "no-at-sign", "@domain.com", "local@"])
def test_malformed_email_is_rejected_before_store(store, email):
    with pytest.raises(OtpValidationError):
        store.verify(email, "123456")
    with pytest.raises(OtpValidationError):
        store.issue(email)


@pytest.mark.parametrize("code", ["", "   ", None])
def test_missing_code_is_rejected(store, code):
    store.issue("v@x.com")

    with pytest.raises(OtpValidationError):
        store.verify("v@x.com", code)
    assert store.get("v@x.com").attempts == 0


def test_generate_code_respects_length():
    assert len(generate_code(8)) == 8
    assert generate_code(4).isdigit()


def test_normalize_email_trims_and_lowercases():
    assert normalize_email("  Someone@Example.ORG\t") == "someone@example.org"
