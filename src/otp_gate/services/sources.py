"""Injectable time and randomness sources."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import UTC, datetime

# Returns the current timezone-aware time.
Clock = Callable[[], datetime]

# Returns a uniformly distributed integer in ``[0, upper)``.
RandomSource = Callable[[int], int]


def utc_now() -> datetime:
    return datetime.now(UTC)


def secure_randbelow(upper: int) -> int:
    """Default random source, backed by the OS CSPRNG."""
    return secrets.randbelow(upper)
