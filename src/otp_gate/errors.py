"""Failure taxonomy for the OTP lifecycle.

Every error here is an expected outcome the caller can recover from.  The
HTTP layer maps them to responses via :pyattr:`OTPError.reason`.
"""

from __future__ import annotations


class OTPError(Exception):
    """Base class for all OTP outcomes that are not a success."""

    reason = "otp_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.reason)


class InvalidRequest(OTPError):
    """A required field is missing or malformed."""

    reason = "invalid_request"


class ChannelNotConfigured(OTPError):
    """The delivery channel has no provider credentials."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"{channel} delivery is not configured")

    @property
    def reason(self) -> str:  # type: ignore[override]
        return f"{self.channel}_not_configured"


class DeliveryUnavailable(ChannelNotConfigured):
    """Raised by the lifecycle manager when a challenge could not be delivered
    because its channel is not configured."""


class DeliveryFailed(OTPError):
    """The provider accepted the request but failed to deliver."""

    reason = "delivery_failed"


class NoActiveChallenge(OTPError):
    """No outstanding challenge exists for the recipient."""

    reason = "no_active_otp"


class Expired(OTPError):
    """The challenge's validity window has passed; it has been consumed."""

    reason = "otp_expired"


class TooManyAttempts(OTPError):
    """The attempt budget is spent; the challenge has been consumed."""

    reason = "too_many_attempts"


class InvalidCode(OTPError):
    """The submitted code does not match; the challenge remains active."""

    reason = "invalid_otp"

    def __init__(self, attempts_remaining: int) -> None:
        self.attempts_remaining = attempts_remaining
        super().__init__(f"invalid code, {attempts_remaining} attempts remaining")
