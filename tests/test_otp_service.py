"""Tests for :mod:`autoreply.otp.service`."""

import threading

import pytest

from autoreply.config import Settings
from autoreply.connections.registry import CredentialRegistry
from autoreply.dispatch import PlatformDispatcher
from autoreply.otp import (
    AlreadyVerifiedError,
    AttemptsExceededError,
    CodeMismatchError,
    OtpSessionManager,
    OtpState,
    SessionExpiredError,
    SessionNotFoundError,
)
from autoreply.otp.service import generate_code

from conftest import FakeResponse, FakeSession, whatsapp_send_ok


class _Clock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _codes(*codes):
    pending = list(codes)
    return lambda: pending.pop(0)


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def registry():
    return CredentialRegistry()


def _manager(registry, clock, *codes, session=None, app_env="development"):
    settings = Settings(
        app_env=app_env,
        whatsapp_access_token="service-token",
        whatsapp_phone_number_id="SERVICE_PNID",
    )
    dispatcher = None
    if session is not None:
        dispatcher = PlatformDispatcher(session=session)
    return OtpSessionManager(
        settings,
        registry,
        dispatcher,
        clock=clock,
        code_factory=_codes(*codes) if codes else generate_code,
    )


def test_generate_code_is_six_digits():
    code = generate_code()
    assert len(code) == 6 and code.isdigit()


def test_request_delivers_code_over_whatsapp(registry, clock):
    session = FakeSession([whatsapp_send_ok()])
    manager = _manager(registry, clock, "123456", session=session)

    result = manager.request_otp("+1 555 000 1111", "user-1")

    assert result.delivered is True
    assert result.expires_in == 300
    sent = session.requests[0]
    assert sent["url"].endswith("/SERVICE_PNID/messages")
    assert sent["json"]["to"] == "15550001111"
    assert "123456" in sent["json"]["text"]["body"]


def test_correct_code_verifies_and_records_phone(registry, clock):
    manager = _manager(registry, clock, "123456")
    result = manager.request_otp("+15550001111", "user-1")

    clock.now += 299
    session = manager.verify_otp(result.verification_id, "123456", "+15550001111", "user-1")

    assert session.state is OtpState.VERIFIED
    verified = registry.get_verified_phone("+15550001111")
    assert verified is not None and verified.owner_user_id == "user-1"


def test_reverifying_a_verified_session_is_rejected(registry, clock):
    manager = _manager(registry, clock, "123456")
    result = manager.request_otp("+15550001111", "user-1")
    manager.verify_otp(result.verification_id, "123456")

    with pytest.raises(AlreadyVerifiedError):
        manager.verify_otp(result.verification_id, "123456")
    with pytest.raises(AlreadyVerifiedError):
        manager.verify_otp(result.verification_id, "123456")


def test_three_wrong_codes_exhaust_the_session(registry, clock):
    manager = _manager(registry, clock, "123456")
    vid = manager.request_otp("+15550001111", "user-1").verification_id

    with pytest.raises(CodeMismatchError) as first:
        manager.verify_otp(vid, "000000")
    assert first.value.remaining_attempts == 2
    assert str(first.value) == "Invalid OTP. 2 attempts remaining."

    with pytest.raises(CodeMismatchError) as second:
        manager.verify_otp(vid, "000001")
    assert second.value.remaining_attempts == 1

    with pytest.raises(AttemptsExceededError):
        manager.verify_otp(vid, "000002")

    # The correct code no longer helps: the stored code is not consulted.
    with pytest.raises(AttemptsExceededError):
        manager.verify_otp(vid, "123456")


def test_attempts_never_exceed_maximum_under_concurrency(registry, clock):
    manager = _manager(registry, clock, "123456")
    vid = manager.request_otp("+15550001111", "user-1").verification_id
    outcomes = []
    lock = threading.Lock()

    def attempt():
        try:
            manager.verify_otp(vid, "999999")
        except (CodeMismatchError, AttemptsExceededError) as exc:
            with lock:
                outcomes.append(type(exc))

    threads = [threading.Thread(target=attempt) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count(CodeMismatchError) == 2
    assert outcomes.count(AttemptsExceededError) == 8
    assert manager._sessions[vid].attempts == 3


def test_expired_session(registry, clock):
    manager = _manager(registry, clock, "123456")
    vid = manager.request_otp("+15550001111", "user-1").verification_id

    clock.now += 301
    with pytest.raises(SessionExpiredError):
        manager.verify_otp(vid, "123456")


def test_new_request_supersedes_live_session(registry, clock):
    manager = _manager(registry, clock, "111111", "222222")
    first = manager.request_otp("+15550001111", "user-1").verification_id
    second = manager.request_otp("+1 555 000 1111", "user-1").verification_id

    with pytest.raises(SessionExpiredError):
        manager.verify_otp(first, "111111")
    assert manager.verify_otp(second, "222222").verified
    assert manager.live_count() == 0


def test_unknown_or_mismatched_session(registry, clock):
    manager = _manager(registry, clock, "123456")
    vid = manager.request_otp("+15550001111", "user-1").verification_id

    with pytest.raises(SessionNotFoundError):
        manager.verify_otp("missing", "123456")
    with pytest.raises(SessionNotFoundError):
        manager.verify_otp(vid, "123456", phone_number="+15550002222")
    with pytest.raises(SessionNotFoundError):
        manager.verify_otp(vid, "123456", owner_user_id="someone-else")


def test_failed_delivery_exposes_code_to_operator_outside_production(registry, clock):
    session = FakeSession([FakeResponse({"error": "down"}, status_code=503)])
    manager = _manager(registry, clock, "654321", session=session)

    result = manager.request_otp("+15550001111", "user-1")

    assert result.delivered is False
    assert manager.peek_code(result.verification_id) == "654321"


def test_peek_code_hides_finished_sessions(registry, clock):
    manager = _manager(registry, clock, "654321")
    vid = manager.request_otp("+15550001111", "user-1").verification_id
    manager.verify_otp(vid, "654321")

    assert manager.peek_code(vid) is None


def test_peek_code_hides_delivered_codes(registry, clock):
    session = FakeSession([whatsapp_send_ok()])
    manager = _manager(registry, clock, "654321", session=session)

    result = manager.request_otp("+15550001111", "user-1")

    assert result.delivered is True
    assert manager.peek_code(result.verification_id) is None


def test_non_ascii_code_counts_as_a_wrong_attempt(registry, clock):
    manager = _manager(registry, clock, "123456")
    vid = manager.request_otp("+15550001111", "user-1").verification_id

    with pytest.raises(CodeMismatchError) as excinfo:
        manager.verify_otp(vid, "\uff11\uff12\uff13\uff14\uff15\uff16")

    assert excinfo.value.remaining_attempts == 2
    assert manager.verify_otp(vid, "123456").state is OtpState.VERIFIED


def test_blank_phone_is_rejected(registry, clock):
    manager = _manager(registry, clock)
    with pytest.raises(ValueError):
        manager.request_otp("   ", "user-1")
