"""Runtime context — the per-process wiring of store, delivery and manager."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from otp_gate.config import Settings
from otp_gate.delivery.dispatcher import Delivery
from otp_gate.delivery.sms import TwilioSMSChannel
from otp_gate.delivery.smtp import SMTPEmailChannel
from otp_gate.models.challenge import Channel
from otp_gate.services.lifecycle import ChallengeManager
from otp_gate.store.base import ChallengeStore
from otp_gate.store.memory import InMemoryChallengeStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything one process needs to issue and verify challenges."""

    settings: Settings
    store: ChallengeStore
    delivery: Delivery
    manager: ChallengeManager


def build_delivery(settings: Settings) -> Delivery:
    """Register the provider-backed channels described by *settings*."""
    delivery = Delivery(
        [
            TwilioSMSChannel.from_settings(settings),
            SMTPEmailChannel.from_settings(settings),
        ]
    )
    for channel in Channel:
        if not delivery.is_configured(channel):
            logger.warning("%s delivery is not configured", channel.value)
    return delivery


def build_runtime(
    settings: Settings,
    *,
    store: ChallengeStore | None = None,
    delivery: Delivery | None = None,
    **manager_options,
) -> Runtime:
    """Create a runtime, defaulting to an in-memory store and real providers.

    *manager_options* (``clock``, ``random_source``, ...) override what
    ``ChallengeManager.from_settings`` would use.
    """
    store = store or InMemoryChallengeStore()
    delivery = delivery or build_delivery(settings)
    manager = ChallengeManager.from_settings(settings, store, delivery, **manager_options)
    return Runtime(settings=settings, store=store, delivery=delivery, manager=manager)
