"""In-memory challenge store with striped per-recipient locks."""

from __future__ import annotations

import logging
import threading
from contextlib import AbstractContextManager
from datetime import datetime

from otp_gate.models.challenge import Challenge
from otp_gate.store.base import ChallengeStore

logger = logging.getLogger(__name__)

# Number of lock stripes; recipients hashing to the same stripe serialise.
DEFAULT_LOCK_STRIPES = 64


class InMemoryChallengeStore(ChallengeStore):
    """Process-local store keyed by recipient.

    Each entry maps ``recipient → Challenge``.  Locks are taken from a fixed
    pool indexed by the recipient's hash, so memory stays bounded no matter
    how many recipients pass through.  Nothing survives a restart.
    """

    def __init__(self, lock_stripes: int = DEFAULT_LOCK_STRIPES) -> None:
        if lock_stripes < 1:
            raise ValueError("lock_stripes must be at least 1")
        self._challenges: dict[str, Challenge] = {}
        self._locks = [threading.Lock() for _ in range(lock_stripes)]

    def put(self, recipient: str, challenge: Challenge) -> None:
        self._challenges[recipient] = challenge

    def get(self, recipient: str) -> Challenge | None:
        return self._challenges.get(recipient)

    def delete(self, recipient: str) -> None:
        self._challenges.pop(recipient, None)

    def lock(self, recipient: str) -> AbstractContextManager:
        return self._locks[hash(recipient) % len(self._locks)]

    def purge_expired(self, now: datetime) -> int:
        evicted = 0
        for recipient in list(self._challenges):
            with self.lock(recipient):
                challenge = self._challenges.get(recipient)
                if challenge is not None and challenge.is_expired(now):
                    del self._challenges[recipient]
                    evicted += 1
        if evicted:
            logger.debug("Purged %d expired challenge(s)", evicted)
        return evicted

    @property
    def active_count(self) -> int:
        return len(self._challenges)
