"""Phone verification endpoints backed by WhatsApp-delivered codes."""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..core.rate_limit import limiter, otp_rate_limit
from ..otp import CodeMismatchError, OtpVerificationError
from ..otp import schemas as otp_schemas
from ..runtime import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/whatsapp", tags=["otp"])


@router.post("/send-otp", response_model=otp_schemas.SendOtpResponse)
@limiter.limit(otp_rate_limit)
def send_otp(
    request: Request,
    payload: otp_schemas.SendOtpRequest,
    services: Services = Depends(get_services),
) -> otp_schemas.SendOtpResponse:
    try:
        result = services.otp.request_otp(payload.phone_number, payload.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return otp_schemas.SendOtpResponse(
        verificationId=result.verification_id, expiresIn=result.expires_in
    )


@router.post(
    "/verify-otp",
    response_model=otp_schemas.VerifyOtpResponse,
    response_model_exclude_none=True,
)
@limiter.limit(otp_rate_limit)
def verify_otp(
    request: Request,
    payload: otp_schemas.VerifyOtpRequest,
    services: Services = Depends(get_services),
):
    try:
        services.otp.verify_otp(
            payload.verification_id,
            payload.otp_code,
            phone_number=payload.phone_number,
            owner_user_id=payload.user_id,
        )
    except OtpVerificationError as exc:
        body = otp_schemas.VerifyOtpResponse(success=False, error=str(exc), code=exc.code)
        if isinstance(exc, CodeMismatchError):
            body.remainingAttempts = exc.remaining_attempts
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(exclude_none=True),
        )
    return otp_schemas.VerifyOtpResponse(success=True)


@router.get("/otp/{verification_id}", response_model=otp_schemas.OperatorOtpView)
def operator_otp_lookup(
    verification_id: str,
    x_operator_token: str | None = Header(default=None),
    services: Services = Depends(get_services),
) -> otp_schemas.OperatorOtpView:
    """Let an operator read back a code whose delivery failed.

    Only available outside production and only with the operator token.
    """

    settings = services.settings
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not found")
    expected = settings.operator_token
    if not expected or not x_operator_token or not hmac.compare_digest(
        x_operator_token.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(status_code=403, detail="Operator token required")
    code = services.otp.peek_code(verification_id)
    if code is None:
        raise HTTPException(status_code=404, detail="No live verification session")
    logger.info("Operator read OTP for session %s", verification_id)
    return otp_schemas.OperatorOtpView(verificationId=verification_id, otpCode=code)
