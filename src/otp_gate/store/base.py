"""Store interface — the only owner of challenge state."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from otp_gate.models.challenge import Challenge


class ChallengeStore(ABC):
    """Abstract keyed table holding zero or one ``Challenge`` per recipient.

    Implementations must make :pymethod:`lock` a real mutual-exclusion
    primitive for one recipient so that callers can run a read-check-write
    sequence without losing updates.  Different recipients must not block
    each other indefinitely.
    """

    @abstractmethod
    def put(self, recipient: str, challenge: Challenge) -> None:
        """Store *challenge*, replacing whatever *recipient* had."""

    @abstractmethod
    def get(self, recipient: str) -> Challenge | None:
        """Return the current challenge for *recipient*, or ``None``."""

    @abstractmethod
    def delete(self, recipient: str) -> None:
        """Remove *recipient*'s challenge if present (idempotent)."""

    @abstractmethod
    def lock(self, recipient: str) -> AbstractContextManager:
        """Critical section guarding *recipient*'s entry."""

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Evict every challenge expired at *now*; return the count."""

    @property
    @abstractmethod
    def active_count(self) -> int:
        """Number of stored challenges (useful for monitoring)."""
