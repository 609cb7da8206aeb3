"""Shared fixtures: a controllable clock and a recording delivery."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from otp_gate.delivery.base import DeliveryChannel
from otp_gate.delivery.dispatcher import Delivery
from otp_gate.models.challenge import Channel
from otp_gate.services.lifecycle import ChallengeManager
from otp_gate.services.messages import RenderedMessage
from otp_gate.store.memory import InMemoryChallengeStore

START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingChannel(DeliveryChannel):
    """Transport that remembers what it was asked to send."""

    def __init__(self, channel: Channel, configured: bool = True) -> None:
        self._channel = channel
        self._configured = configured
        self.sent: list[tuple[str, RenderedMessage]] = []

    @property
    def channel(self) -> Channel:
        return self._channel

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def send(self, recipient: str, message: RenderedMessage) -> None:
        self.sent.append((recipient, message))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms():
    return RecordingChannel(Channel.SMS)


@pytest.fixture
def email():
    return RecordingChannel(Channel.EMAIL)


@pytest.fixture
def delivery(sms, email):
    return Delivery([sms, email])


@pytest.fixture
def store():
    return InMemoryChallengeStore()


@pytest.fixture
def manager(store, delivery, clock):
    return ChallengeManager(store, delivery, clock=clock)
