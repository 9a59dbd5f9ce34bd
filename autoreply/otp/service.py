"""Phone ownership verification with short-lived one-time codes."""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
from collections.abc import Callable

from ..config import Settings
from ..connections.models import Platform
from ..connections.registry import CredentialRegistry
from ..core.locks import StripedLock
from ..dispatch import PlatformDispatcher
from .models import OtpRequestResult, OtpSession, OtpState

logger = logging.getLogger(__name__)
operator_logger = logging.getLogger("autoreply.otp.operator")

CODE_LENGTH = 6


class OtpVerificationError(Exception):
    """Base class for verification failures reported back to the caller."""

    code = "verification_failed"
    message = "Verification failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class SessionNotFoundError(OtpVerificationError):
    code = "session_not_found"
    message = "Verification session not found"


class SessionExpiredError(OtpVerificationError):
    code = "session_expired"
    message = "OTP has expired. Please request a new one."


class AttemptsExceededError(OtpVerificationError):
    code = "attempts_exceeded"
    message = "Too many failed attempts. Please request a new OTP."


class AlreadyVerifiedError(OtpVerificationError):
    code = "already_verified"
    message = "This verification has already been completed"


class CodeMismatchError(OtpVerificationError):
    code = "code_mismatch"

    def __init__(self, remaining_attempts: int) -> None:
        self.remaining_attempts = remaining_attempts
        super().__init__(f"Invalid OTP. {remaining_attempts} attempts remaining.")


def normalize_phone(phone_number: str) -> str:
    return "".join(phone_number.split())


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


class OtpSessionManager:
    """Issue and check one-time codes delivered over WhatsApp."""

    def __init__(
        self,
        settings: Settings,
        registry: CredentialRegistry,
        dispatcher: PlatformDispatcher | None = None,
        *,
        clock: Callable[[], float] = time.time,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._dispatcher = dispatcher
        self._clock = clock
        self._code_factory = code_factory
        self._sessions: dict[str, OtpSession] = {}
        self._live_by_phone: dict[str, str] = {}
        self._lock = threading.Lock()
        self._attempt_locks = StripedLock()

    @property
    def ttl_seconds(self) -> int:
        return self._settings.otp_ttl_seconds

    @property
    def max_attempts(self) -> int:
        return self._settings.otp_max_attempts

    def _is_expired(self, session: OtpSession, now: float) -> bool:
        return now - session.created_at > self.ttl_seconds

    def _purge_locked(self, now: float) -> None:
        # Keep expired sessions around for one more TTL so late verifies
        # still report expiry rather than an unknown id.
        horizon = self.ttl_seconds * 2
        stale = [
            vid for vid, session in self._sessions.items() if now - session.created_at > horizon
        ]
        for vid in stale:
            session = self._sessions.pop(vid)
            if self._live_by_phone.get(session.phone_number) == vid:
                del self._live_by_phone[session.phone_number]

    def request_otp(self, phone_number: str, owner_user_id: str) -> OtpRequestResult:
        phone = normalize_phone(phone_number)
        if not phone:
            raise ValueError("phone number is required")
        now = self._clock()
        session = OtpSession(
            phone_number=phone,
            owner_user_id=owner_user_id,
            otp_code=self._code_factory(),
            created_at=now,
        )
        with self._lock:
            self._purge_locked(now)
            previous_id = self._live_by_phone.get(phone)
            self._sessions[session.verification_id] = session
            self._live_by_phone[phone] = session.verification_id

        if previous_id:
            with self._attempt_locks.for_key(previous_id):
                previous = self._sessions.get(previous_id)
                if previous is not None and previous.state is OtpState.CREATED:
                    previous.state = OtpState.EXPIRED
                    logger.info("Superseded OTP session %s", previous_id)

        session.delivered = self._deliver(session)
        if not session.delivered:
            if self._settings.is_production:
                logger.error(
                    "OTP delivery failed for session %s", session.verification_id
                )
            else:
                operator_logger.warning(
                    "OTP for %s (session %s): %s",
                    phone,
                    session.verification_id,
                    session.otp_code,
                )
        return OtpRequestResult(
            verification_id=session.verification_id,
            expires_in=self.ttl_seconds,
            delivered=session.delivered,
        )

    def _deliver(self, session: OtpSession) -> bool:
        if self._dispatcher is None:
            return False
        credentials = {
            "access_token": self._settings.whatsapp_access_token or "",
            "phone_number_id": self._settings.whatsapp_phone_number_id or "",
        }
        minutes = max(1, self.ttl_seconds // 60)
        text = (
            f"🔐 Your verification code is: {session.otp_code}\n\n"
            f"This code expires in {minutes} minutes. Don't share it with anyone."
        )
        result = self._dispatcher.send(
            Platform.WHATSAPP, credentials, session.phone_number.lstrip("+"), text
        )
        return result.ok

    def verify_otp(
        self,
        verification_id: str,
        submitted_code: str,
        phone_number: str | None = None,
        owner_user_id: str | None = None,
    ) -> OtpSession:
        """Check ``submitted_code`` and mark the session verified on a match.

        Raises a subclass of :class:`OtpVerificationError` otherwise.
        """

        with self._attempt_locks.for_key(verification_id):
            with self._lock:
                session = self._sessions.get(verification_id)
            if session is None:
                raise SessionNotFoundError()
            if phone_number and normalize_phone(phone_number) != session.phone_number:
                raise SessionNotFoundError()
            if owner_user_id and owner_user_id != session.owner_user_id:
                raise SessionNotFoundError()

            if session.state is OtpState.VERIFIED:
                raise AlreadyVerifiedError()
            if session.state is OtpState.INVALIDATED:
                raise AttemptsExceededError()
            if session.state is OtpState.EXPIRED or self._is_expired(session, self._clock()):
                session.state = OtpState.EXPIRED
                raise SessionExpiredError()
            if session.attempts >= self.max_attempts:
                session.state = OtpState.INVALIDATED
                raise AttemptsExceededError()

            submitted = (submitted_code or "").strip().encode("utf-8")
            if hmac.compare_digest(session.otp_code.encode("utf-8"), submitted):
                session.state = OtpState.VERIFIED
                self._registry.record_verified_phone(
                    session.phone_number, session.owner_user_id
                )
                logger.info("Verified phone for user %s", session.owner_user_id)
                return session

            session.attempts += 1
            if session.attempts >= self.max_attempts:
                session.state = OtpState.INVALIDATED
                logger.warning("OTP session %s exhausted its attempts", verification_id)
                raise AttemptsExceededError()
            raise CodeMismatchError(self.max_attempts - session.attempts)

    def peek_code(self, verification_id: str) -> str | None:
        """Return the code of a live session whose delivery failed."""

        with self._lock:
            session = self._sessions.get(verification_id)
        if session is None or session.state is not OtpState.CREATED or session.delivered:
            return None
        if self._is_expired(session, self._clock()):
            return None
        return session.otp_code

    def live_count(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(
                1
                for session in self._sessions.values()
                if session.state is OtpState.CREATED and not self._is_expired(session, now)
            )
