"""Base delivery channel — interface every transport must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

from otp_gate.models.challenge import Channel
from otp_gate.services.messages import RenderedMessage


class DeliveryChannel(ABC):
    """Abstract transport for one ``Channel``.

    A channel without provider credentials reports ``is_configured = False``
    and is never asked to send.
    """

    @property
    @abstractmethod
    def channel(self) -> Channel:
        """The channel this transport serves."""

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def send(self, recipient: str, message: RenderedMessage) -> None:
        """Deliver *message* to *recipient*.

        Raises
        ------
        DeliveryFailed
            If the provider rejected the message or could not be reached.
        """
