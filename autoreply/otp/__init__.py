"""One-time passcode verification of phone ownership."""

from .models import OtpRequestResult, OtpSession, OtpState
from .service import (
    AlreadyVerifiedError,
    AttemptsExceededError,
    CodeMismatchError,
    OtpSessionManager,
    OtpVerificationError,
    SessionExpiredError,
    SessionNotFoundError,
    normalize_phone,
)

__all__ = [
    "AlreadyVerifiedError",
    "AttemptsExceededError",
    "CodeMismatchError",
    "OtpRequestResult",
    "OtpSession",
    "OtpSessionManager",
    "OtpState",
    "OtpVerificationError",
    "SessionExpiredError",
    "SessionNotFoundError",
    "normalize_phone",
]
