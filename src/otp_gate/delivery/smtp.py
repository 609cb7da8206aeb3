"""Email delivery via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from otp_gate.config import Settings
from otp_gate.delivery.base import DeliveryChannel
from otp_gate.errors import DeliveryFailed
from otp_gate.models.challenge import Channel
from otp_gate.services.messages import RenderedMessage, mask_recipient

logger = logging.getLogger(__name__)


class SMTPEmailChannel(DeliveryChannel):
    """Sends verification emails using the configured SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        *,
        username: str = "",
        password: str = "",
        start_tls: bool = True,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._start_tls = start_tls

    @classmethod
    def from_settings(cls, settings: Settings) -> SMTPEmailChannel:
        return cls(
            settings.smtp_host,
            settings.smtp_port,
            settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
        )

    @property
    def channel(self) -> Channel:
        return Channel.EMAIL

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._sender)

    async def send(self, recipient: str, message: RenderedMessage) -> None:
        masked = mask_recipient(recipient)
        try:
            msg = EmailMessage()
            msg["Subject"] = message.subject
            msg["From"] = self._sender
            msg["To"] = recipient
            msg.set_content(message.body)
        except ValueError as exc:
            logger.error("Cannot build email for %s: %s", masked, exc)
            raise DeliveryFailed("invalid email headers") from exc

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._host,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                start_tls=self._start_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.exception("Email delivery to %s failed: %s", masked, exc)
            raise DeliveryFailed("SMTP delivery failed") from exc

        logger.info("Verification email sent to %s", masked)
