"""Console delivery — writes messages to a terminal instead of a provider."""

from __future__ import annotations

import sys
from typing import TextIO

from otp_gate.delivery.base import DeliveryChannel
from otp_gate.models.challenge import Channel
from otp_gate.services.messages import RenderedMessage


class ConsoleChannel(DeliveryChannel):
    """Development transport for *channel* that prints to *stream*.

    This is a transport, not a log sink: the code is written to the
    terminal exactly as a provider would put it on the recipient's device.
    """

    def __init__(self, channel: Channel, stream: TextIO | None = None) -> None:
        self._channel = channel
        self._stream = stream

    @property
    def channel(self) -> Channel:
        return self._channel

    async def send(self, recipient: str, message: RenderedMessage) -> None:
        stream = self._stream or sys.stdout
        header = f"[{self._channel.value} → {recipient}]"
        if message.subject:
            header += f" {message.subject}"
        stream.write(f"{header}\n{message.body}\n")
        stream.flush()
