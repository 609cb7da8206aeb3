"""SMS delivery via the Twilio REST API."""

from __future__ import annotations

import logging

import httpx

from otp_gate.config import Settings
from otp_gate.delivery.base import DeliveryChannel
from otp_gate.errors import DeliveryFailed
from otp_gate.models.challenge import Channel
from otp_gate.services.messages import RenderedMessage, mask_recipient

logger = logging.getLogger(__name__)


class TwilioSMSChannel(DeliveryChannel):
    """Sends text messages through Twilio's Messages endpoint.

    Parameters
    ----------
    account_sid, auth_token, from_number:
        Twilio credentials and sender.  Any of them empty means the channel
        is not configured.
    transport:
        Optional ``httpx`` transport, handy for tests.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        *,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> TwilioSMSChannel:
        return cls(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_from_number,
            base_url=settings.twilio_api_base_url,
        )

    @property
    def channel(self) -> Channel:
        return Channel.SMS

    @property
    def is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send(self, recipient: str, message: RenderedMessage) -> None:
        url = f"{self._base_url}/Accounts/{self._account_sid}/Messages.json"
        payload = {"To": recipient, "From": self._from_number, "Body": message.body}
        masked = mask_recipient(recipient)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    url, data=payload, auth=(self._account_sid, self._auth_token)
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.exception("SMS request error for %s: %s", masked, exc)
            raise DeliveryFailed("SMS provider unreachable") from exc

        if resp.is_success:
            logger.info("SMS sent to %s, SID: %s", masked, _message_sid(resp))
            return

        logger.error("Failed to send SMS to %s: %s %s", masked, resp.status_code, resp.text)
        raise DeliveryFailed(f"SMS provider returned {resp.status_code}")


def _message_sid(resp: httpx.Response) -> str | None:
    """Twilio's message SID, or ``None`` if the body is not the expected JSON."""
    try:
        data = resp.json()
    except ValueError:
        return None
    return data.get("sid") if isinstance(data, dict) else None
