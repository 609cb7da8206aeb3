"""OTP HTTP API — thin FastAPI boundary over the lifecycle manager.

Endpoints
---------
POST /send-otp     → issue a challenge and deliver it
POST /verify-otp   → validate a submitted code
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from otp_gate.errors import (
    DeliveryFailed,
    DeliveryUnavailable,
    InvalidCode,
    InvalidRequest,
    OTPError,
    TooManyAttempts,
)
from otp_gate.services.lifecycle import ChallengeManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])


# ── Request / response models ────────────────────────────
# Request fields take any JSON value; the manager decides what is valid so
# that every malformed field is reported as ``invalid_request``.

class SendOTPRequest(BaseModel):
    type: Any = None
    to: Any = None


class SendOTPResponse(BaseModel):
    success: bool
    method: str
    message: str


class VerifyOTPRequest(BaseModel):
    to: Any = None
    otp: Any = None


class VerifyOTPResponse(BaseModel):
    success: bool
    message: str


# ── Dependencies ─────────────────────────────────────────

def get_manager(request: Request) -> ChallengeManager:
    """Resolve the manager owned by the application's runtime context."""
    return request.app.state.runtime.manager


# ── Endpoints ────────────────────────────────────────────

@router.post("/send-otp", response_model=SendOTPResponse)
async def send_otp(
    body: SendOTPRequest, manager: ChallengeManager = Depends(get_manager)
):
    """Issue a fresh code for ``to`` and deliver it over ``type``."""
    result = await manager.issue(body.to, body.type)
    return SendOTPResponse(success=True, method=result.channel.value, message="otp_sent")


@router.post("/verify-otp", response_model=VerifyOTPResponse)
async def verify_otp(
    body: VerifyOTPRequest, manager: ChallengeManager = Depends(get_manager)
):
    """Validate ``otp`` for ``to``.  Numbers are compared as their string form."""
    otp = body.otp
    if isinstance(otp, int) and not isinstance(otp, bool):
        otp = str(otp)
    await manager.verify(body.to, otp)
    return VerifyOTPResponse(success=True, message="verified")


# ── Error mapping ────────────────────────────────────────

def status_for(exc: OTPError) -> int:
    """HTTP status used for each failure reason."""
    if isinstance(exc, DeliveryUnavailable):
        return 503
    if isinstance(exc, DeliveryFailed):
        return 502
    if isinstance(exc, TooManyAttempts):
        return 429
    return 400


async def otp_error_handler(request: Request, exc: OTPError) -> JSONResponse:
    """Render an ``OTPError`` as ``{success: false, error: <reason>}``."""
    content: dict = {"success": False, "error": exc.reason}
    if isinstance(exc, InvalidCode):
        content["attemptsLeft"] = exc.attempts_remaining
    logger.debug("%s %s → %s", request.method, request.url.path, exc.reason)
    return JSONResponse(status_code=status_for(exc), content=content)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report bodies FastAPI cannot parse (non-JSON, non-object) as ``invalid_request``."""
    logger.debug("%s %s → malformed body: %s", request.method, request.url.path, exc.errors())
    return await otp_error_handler(request, InvalidRequest("malformed request body"))
