"""Message rendering and log-safe recipient masking."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

from otp_gate.models.challenge import Channel


@dataclass(frozen=True)
class RenderedMessage:
    """Text handed to a delivery channel.  SMS ignores ``subject``."""

    subject: str
    body: str


def render_message(code: str, channel: Channel, ttl: timedelta) -> RenderedMessage:
    """Render the notification carrying *code* for *channel*."""
    if channel is Channel.SMS:
        return RenderedMessage(subject="", body=f"Your OTP code: {code}")

    minutes = max(1, math.ceil(ttl.total_seconds() / 60))
    unit = "minute" if minutes == 1 else "minutes"
    return RenderedMessage(
        subject="Your verification code",
        body=f"Your OTP code: {code}\nIt expires in {minutes} {unit}.",
    )


def mask_recipient(recipient: str) -> str:
    """Mask a recipient for logs: ``j***n@example.com`` or ``+155*****67``."""
    if "@" in recipient:
        local, _, domain = recipient.rpartition("@")
        if len(local) <= 2:
            masked_local = local[:1] + "***"
        else:
            masked_local = local[0] + "***" + local[-1]
        return f"{masked_local}@{domain}"

    if len(recipient) <= 6:
        return "*" * len(recipient)
    return recipient[:4] + "*" * (len(recipient) - 6) + recipient[-2:]
