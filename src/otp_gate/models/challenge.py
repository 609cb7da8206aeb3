"""Challenge model — one outstanding OTP per recipient."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from otp_gate.errors import InvalidRequest


class Channel(str, Enum):
    """Delivery path a challenge was sent through."""

    SMS = "sms"
    EMAIL = "email"

    @classmethod
    def parse(cls, value: Channel | str | None) -> Channel:
        """Coerce *value* to a ``Channel`` or raise ``InvalidRequest``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRequest(f"unsupported channel: {value!r}") from None


@dataclass(frozen=True)
class Challenge:
    """An issued, not yet consumed, one-time passcode.

    Records are immutable; a failed attempt stores a replacement with
    ``attempts_used`` incremented.
    """

    recipient: str
    code: str
    channel: Channel
    expires_at: datetime
    attempts_used: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def __repr__(self) -> str:
        # Keep the code out of tracebacks and debug output.
        return (
            f"<Challenge recipient={self.recipient!r} channel={self.channel.value} "
            f"expires_at={self.expires_at.isoformat()} attempts_used={self.attempts_used}>"
        )


@dataclass(frozen=True)
class IssueResult:
    """Value object returned by ``ChallengeManager.issue``."""

    code: str
    channel: Channel
    expires_at: datetime


@dataclass(frozen=True)
class VerifyResult:
    verified: bool = True
