"""Delivery dispatcher — routes a rendered message to its channel."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from otp_gate.delivery.base import DeliveryChannel
from otp_gate.errors import ChannelNotConfigured
from otp_gate.models.challenge import Channel
from otp_gate.services.messages import RenderedMessage, mask_recipient

logger = logging.getLogger(__name__)


class Delivery:
    """The delivery capability the lifecycle manager calls.

    Holds at most one ``DeliveryChannel`` per ``Channel``.  Channels are
    independently optional.
    """

    def __init__(self, channels: Iterable[DeliveryChannel] = ()) -> None:
        self._channels: dict[Channel, DeliveryChannel] = {}
        for transport in channels:
            self.register(transport)

    def register(self, transport: DeliveryChannel) -> None:
        """Add or replace the transport for ``transport.channel``."""
        self._channels[transport.channel] = transport

    def is_configured(self, channel: Channel) -> bool:
        transport = self._channels.get(channel)
        return transport is not None and transport.is_configured

    async def send(
        self, channel: Channel, recipient: str, message: RenderedMessage
    ) -> None:
        """Send *message* over *channel*.

        Raises ``ChannelNotConfigured`` without attempting delivery when the
        channel has no usable transport; provider errors propagate as
        ``DeliveryFailed``.
        """
        transport = self._channels.get(channel)
        if transport is None or not transport.is_configured:
            logger.warning("%s delivery requested but not configured", channel.value)
            raise ChannelNotConfigured(channel.value)

        logger.info("Sending %s message to %s", channel.value, mask_recipient(recipient))
        await transport.send(recipient, message)
