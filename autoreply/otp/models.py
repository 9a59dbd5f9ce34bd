"""OTP verification session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4


class OtpState(str, Enum):
    CREATED = "created"
    VERIFIED = "verified"
    INVALIDATED = "invalidated"
    EXPIRED = "expired"


@dataclass
class OtpSession:
    phone_number: str
    owner_user_id: str
    otp_code: str
    created_at: float
    verification_id: str = field(default_factory=lambda: uuid4().hex)
    attempts: int = 0
    state: OtpState = OtpState.CREATED
    delivered: bool = False

    @property
    def verified(self) -> bool:
        return self.state is OtpState.VERIFIED


@dataclass(frozen=True)
class OtpRequestResult:
    verification_id: str
    expires_in: int
    delivered: bool
