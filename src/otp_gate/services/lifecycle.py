"""Challenge lifecycle — issue, verify and expire one-time passcodes."""

from __future__ import annotations

import hmac
import logging
from dataclasses import replace
from datetime import timedelta

from otp_gate.config import Settings
from otp_gate.delivery.dispatcher import Delivery
from otp_gate.errors import (
    ChannelNotConfigured,
    DeliveryFailed,
    DeliveryUnavailable,
    Expired,
    InvalidCode,
    InvalidRequest,
    NoActiveChallenge,
    TooManyAttempts,
)
from otp_gate.models.challenge import Challenge, Channel, IssueResult, VerifyResult
from otp_gate.services.messages import mask_recipient, render_message
from otp_gate.services.sources import Clock, RandomSource, secure_randbelow, utc_now
from otp_gate.store.base import ChallengeStore

logger = logging.getLogger(__name__)


class ChallengeManager:
    """Creates and validates challenges on top of a ``ChallengeStore``.

    Rules
    -----
    * One active challenge per recipient; issuing again replaces it.
    * A challenge is consumed on success, on expiry detection, or when the
      attempt budget is spent.  Afterwards the recipient looks as if nothing
      had ever been issued.
    * A wrong code that leaves budget keeps the challenge and reports how
      many attempts remain.
    * If delivery fails the freshly stored challenge is discarded, so a
      caller always re-issues after a delivery error.

    Codes are never logged.
    """

    def __init__(
        self,
        store: ChallengeStore,
        delivery: Delivery,
        *,
        digit_width: int = 5,
        ttl: timedelta = timedelta(minutes=5),
        max_attempts: int = 5,
        clock: Clock = utc_now,
        random_source: RandomSource = secure_randbelow,
    ) -> None:
        if digit_width < 1:
            raise ValueError("digit_width must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self._store = store
        self._delivery = delivery
        self._digit_width = digit_width
        self._ttl = ttl
        self._max_attempts = max_attempts
        self._clock = clock
        self._random = random_source

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: ChallengeStore,
        delivery: Delivery,
        **overrides,
    ) -> ChallengeManager:
        """Build a manager using the lifecycle values in *settings*."""
        options = {
            "digit_width": settings.otp_digit_width,
            "ttl": timedelta(milliseconds=settings.otp_ttl_ms),
            "max_attempts": settings.otp_max_attempts,
        }
        options.update(overrides)
        return cls(store, delivery, **options)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    # ── Issue ────────────────────────────────────────────

    async def issue(self, recipient: str | None, channel: Channel | str | None) -> IssueResult:
        """Create a challenge for *recipient* and deliver it over *channel*.

        Raises
        ------
        InvalidRequest
            Empty recipient, control characters or unsupported channel.
        DeliveryUnavailable
            The channel has no provider configured.
        DeliveryFailed
            The provider could not deliver the message, or the transport
            failed in an unexpected way.
        """
        recipient = self._require(recipient, "recipient")
        if channel is None:
            raise InvalidRequest("channel is required")
        channel = Channel.parse(channel)

        challenge = Challenge(
            recipient=recipient,
            code=self._generate_code(),
            channel=channel,
            expires_at=self._clock() + self._ttl,
        )
        with self._store.lock(recipient):
            self._store.put(recipient, challenge)

        masked = mask_recipient(recipient)
        logger.info("Challenge issued for %s via %s", masked, channel.value)

        # Delivery runs outside the lock; the code is valid once stored.
        message = render_message(challenge.code, channel, self._ttl)
        try:
            await self._delivery.send(channel, recipient, message)
        except ChannelNotConfigured as exc:
            self._discard(challenge)
            raise DeliveryUnavailable(channel.value) from exc
        except DeliveryFailed:
            self._discard(challenge)
            logger.warning("Delivery to %s failed; challenge discarded", masked)
            raise
        except Exception as exc:
            self._discard(challenge)
            logger.exception("Unexpected delivery error for %s; challenge discarded", masked)
            raise DeliveryFailed("unexpected delivery error") from exc

        return IssueResult(
            code=challenge.code, channel=channel, expires_at=challenge.expires_at
        )

    # ── Verify ───────────────────────────────────────────

    async def verify(self, recipient: str | None, submitted_code: str | None) -> VerifyResult:
        """Check *submitted_code* against *recipient*'s active challenge.

        The whole read-check-write sequence runs under the recipient's lock
        and contains no suspension point.
        """
        recipient = self._require(recipient, "recipient")
        submitted = self._require(submitted_code, "code")
        masked = mask_recipient(recipient)

        with self._store.lock(recipient):
            challenge = self._store.get(recipient)
            if challenge is None:
                raise NoActiveChallenge()

            if challenge.is_expired(self._clock()):
                self._store.delete(recipient)
                logger.info("Challenge for %s expired", masked)
                raise Expired()

            attempt = replace(challenge, attempts_used=challenge.attempts_used + 1)
            if hmac.compare_digest(submitted.encode(), challenge.code.encode()):
                self._store.delete(recipient)
                logger.info("Challenge for %s verified", masked)
                return VerifyResult(verified=True)

            remaining = self._max_attempts - attempt.attempts_used
            if remaining <= 0:
                self._store.delete(recipient)
                logger.info("Challenge for %s exhausted its attempts", masked)
                raise TooManyAttempts()

            self._store.put(recipient, attempt)

        logger.info("Invalid code for %s, %d attempt(s) left", masked, remaining)
        raise InvalidCode(attempts_remaining=remaining)

    # ── Maintenance ──────────────────────────────────────

    def purge_expired(self) -> int:
        """Evict expired challenges now instead of waiting for a verify."""
        return self._store.purge_expired(self._clock())

    # ── Private helpers ──────────────────────────────────

    def _generate_code(self) -> str:
        value = self._random(10**self._digit_width)
        return f"{value:0{self._digit_width}d}"

    def _discard(self, challenge: Challenge) -> None:
        """Remove *challenge* unless a newer issuance already replaced it."""
        with self._store.lock(challenge.recipient):
            if self._store.get(challenge.recipient) is challenge:
                self._store.delete(challenge.recipient)

    @staticmethod
    def _require(value: str | None, field: str) -> str:
        if value is None or not isinstance(value, str) or not value.strip():
            raise InvalidRequest(f"{field} is required")
        value = value.strip()
        # Recipients end up in mail headers and provider requests.
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in value):
            raise InvalidRequest(f"{field} contains control characters")
        return value
