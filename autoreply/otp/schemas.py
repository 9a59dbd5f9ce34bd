"""Request and response bodies for the OTP endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendOtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(alias="phoneNumber", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)


class SendOtpResponse(BaseModel):
    success: bool = True
    verificationId: str
    expiresIn: int


class VerifyOtpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verification_id: str = Field(alias="verificationId", min_length=1)
    otp_code: str = Field(alias="otpCode")
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    user_id: str | None = Field(default=None, alias="userId")


class VerifyOtpResponse(BaseModel):
    success: bool
    error: str | None = None
    code: str | None = None
    remainingAttempts: int | None = None


class OperatorOtpView(BaseModel):
    verificationId: str
    otpCode: str
