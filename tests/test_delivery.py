"""Tests for the delivery dispatcher and its transports."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest

from otp_gate.config import Settings
from otp_gate.delivery.console import ConsoleChannel
from otp_gate.delivery.dispatcher import Delivery
from otp_gate.delivery.sms import TwilioSMSChannel
from otp_gate.delivery.smtp import SMTPEmailChannel
from otp_gate.errors import ChannelNotConfigured, DeliveryFailed
from otp_gate.models.challenge import Channel
from otp_gate.runtime import build_delivery
from otp_gate.services.messages import RenderedMessage

from conftest import RecordingChannel

SMS_MESSAGE = RenderedMessage(subject="", body="Your OTP code: 12345")
EMAIL_MESSAGE = RenderedMessage(
    subject="Your verification code",
    body="Your OTP code: 12345\nIt expires in 5 minutes.",
)


# ── Dispatcher ───────────────────────────────────────────

@pytest.mark.asyncio
async def test_dispatch_routes_by_channel(delivery, sms, email):
    await delivery.send(Channel.EMAIL, "alice@example.com", EMAIL_MESSAGE)

    assert email.sent == [("alice@example.com", EMAIL_MESSAGE)]
    assert sms.sent == []


@pytest.mark.asyncio
async def test_dispatch_unregistered_channel():
    delivery = Delivery([RecordingChannel(Channel.SMS)])

    with pytest.raises(ChannelNotConfigured) as info:
        await delivery.send(Channel.EMAIL, "alice@example.com", EMAIL_MESSAGE)
    assert info.value.reason == "email_not_configured"


@pytest.mark.asyncio
async def test_dispatch_never_sends_over_unconfigured_channel():
    sms = RecordingChannel(Channel.SMS, configured=False)
    delivery = Delivery([sms])

    with pytest.raises(ChannelNotConfigured):
        await delivery.send(Channel.SMS, "+15551234567", SMS_MESSAGE)
    assert sms.sent == []
    assert delivery.is_configured(Channel.SMS) is False


def test_register_replaces_channel():
    first, second = RecordingChannel(Channel.SMS, configured=False), RecordingChannel(Channel.SMS)
    delivery = Delivery([first])
    delivery.register(second)
    assert delivery.is_configured(Channel.SMS)


def test_build_delivery_without_credentials():
    delivery = build_delivery(Settings(_env_file=None))
    assert not delivery.is_configured(Channel.SMS)
    assert not delivery.is_configured(Channel.EMAIL)


def test_build_delivery_with_credentials():
    delivery = build_delivery(
        Settings(
            _env_file=None,
            twilio_account_sid="AC123",
            twilio_auth_token="secret",
            twilio_from_number="+15550000000",
            smtp_host="smtp.example.com",
            email_from="otp@example.com",
        )
    )
    assert delivery.is_configured(Channel.SMS)
    assert delivery.is_configured(Channel.EMAIL)


# ── Twilio SMS ───────────────────────────────────────────

def twilio(handler) -> TwilioSMSChannel:
    return TwilioSMSChannel(
        "AC123",
        "secret",
        "+15550000000",
        base_url="https://twilio.test/2010-04-01",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize(
    "sid, token, sender",
    [("", "secret", "+1555"), ("AC123", "", "+1555"), ("AC123", "secret", "")],
)
def test_sms_requires_all_credentials(sid, token, sender):
    assert TwilioSMSChannel(sid, token, sender).is_configured is False


@pytest.mark.asyncio
async def test_sms_posts_to_messages_endpoint():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    await twilio(handler).send("+15551234567", SMS_MESSAGE)

    (request,) = requests
    assert request.method == "POST"
    assert str(request.url) == "https://twilio.test/2010-04-01/Accounts/AC123/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = dict(httpx.QueryParams(request.content.decode()))
    assert form == {"To": "+15551234567", "From": "+15550000000", "Body": "Your OTP code: 12345"}


@pytest.mark.asyncio
async def test_sms_provider_error_is_delivery_failed():
    channel = twilio(lambda request: httpx.Response(400, json={"message": "bad number"}))

    with pytest.raises(DeliveryFailed):
        await channel.send("+1", SMS_MESSAGE)


@pytest.mark.asyncio
async def test_sms_network_error_is_delivery_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(DeliveryFailed):
        await twilio(handler).send("+15551234567", SMS_MESSAGE)


# ── SMTP email ───────────────────────────────────────────

def test_email_requires_host_and_sender():
    assert SMTPEmailChannel("", 587, "otp@example.com").is_configured is False
    assert SMTPEmailChannel("smtp.example.com", 587, "").is_configured is False
    assert SMTPEmailChannel("smtp.example.com", 587, "otp@example.com").is_configured


@pytest.mark.asyncio
async def test_email_sends_via_smtp():
    channel = SMTPEmailChannel(
        "smtp.example.com", 2525, "otp@example.com", username="user", password="pw"
    )
    with patch("otp_gate.delivery.smtp.aiosmtplib.send", new=AsyncMock()) as send:
        await channel.send("alice@example.com", EMAIL_MESSAGE)

    send.assert_awaited_once()
    msg = send.await_args.args[0]
    assert msg["To"] == "alice@example.com"
    assert msg["From"] == "otp@example.com"
    assert msg["Subject"] == "Your verification code"
    assert "12345" in msg.get_content()
    assert send.await_args.kwargs == {
        "hostname": "smtp.example.com",
        "port": 2525,
        "username": "user",
        "password": "pw",
        "start_tls": True,
    }


@pytest.mark.asyncio
async def test_email_without_credentials_sends_anonymously():
    channel = SMTPEmailChannel("smtp.example.com", 25, "otp@example.com")
    with patch("otp_gate.delivery.smtp.aiosmtplib.send", new=AsyncMock()) as send:
        await channel.send("alice@example.com", EMAIL_MESSAGE)

    assert send.await_args.kwargs["username"] is None
    assert send.await_args.kwargs["password"] is None


@pytest.mark.asyncio
async def test_email_smtp_error_is_delivery_failed():
    channel = SMTPEmailChannel("smtp.example.com", 587, "otp@example.com")
    failure = AsyncMock(side_effect=aiosmtplib.SMTPException("relay denied"))
    with patch("otp_gate.delivery.smtp.aiosmtplib.send", new=failure):
        with pytest.raises(DeliveryFailed):
            await channel.send("alice@example.com", EMAIL_MESSAGE)


# ── Console ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_console_writes_message():
    stream = io.StringIO()
    await ConsoleChannel(Channel.EMAIL, stream).send("alice@example.com", EMAIL_MESSAGE)

    text = stream.getvalue()
    assert text.startswith("[email → alice@example.com] Your verification code\n")
    assert "Your OTP code: 12345" in text


@pytest.mark.asyncio
async def test_sms_non_json_success_body_is_still_delivered():
    channel = twilio(lambda request: httpx.Response(201, text="<Response/>"))
    await channel.send("+15551234567", SMS_MESSAGE)


@pytest.mark.asyncio
async def test_sms_invalid_url_is_delivery_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.InvalidURL("invalid host")

    with pytest.raises(DeliveryFailed):
        await twilio(handler).send("+15551234567", SMS_MESSAGE)


@pytest.mark.asyncio
async def test_email_header_injection_is_delivery_failed():
    channel = SMTPEmailChannel("smtp.example.com", 587, "otp@example.com")
    with patch("otp_gate.delivery.smtp.aiosmtplib.send", new=AsyncMock()) as send:
        with pytest.raises(DeliveryFailed):
            await channel.send("a@example.com\nBcc: evil@example.com", EMAIL_MESSAGE)

    send.assert_not_awaited()
