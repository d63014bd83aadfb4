"""Expiring key -> payload stores for verification codes and OTPs.

Expiry is enforced on read: ``get`` never returns an entry past its
``expires_at`` and deletes it on the spot. There is no background sweeper;
``purge_expired`` is available for explicit maintenance.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

P = TypeVar("P")


class VerificationStore(ABC, Generic[P]):
    """Abstract interface for verification record storage."""

    @abstractmethod
    async def put(self, key: str, payload: P, ttl: timedelta) -> float:
        """Store ``payload`` under ``key``, replacing any existing entry.

        Returns:
            The expiry as an epoch timestamp.
        """

    @abstractmethod
    async def get(self, key: str) -> Optional[P]:
        """Return the payload, or None if absent or expired."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove the entry. Returns True if something was removed."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Drop every expired entry and return how many were dropped."""


@dataclass
class _Entry(Generic[P]):
    payload: P
    expires_at: float


class InMemoryVerificationStore(VerificationStore[P]):
    """Process-local store; one instance per workflow kind."""

    def __init__(self, name: str, clock: Callable[[], float] = time.time):
        self.name = name
        self._clock = clock
        self._data: dict[str, _Entry[P]] = {}

    async def put(self, key: str, payload: P, ttl: timedelta) -> float:
        expires_at = self._clock() + ttl.total_seconds()
        self._data[key] = _Entry(payload=payload, expires_at=expires_at)
        return expires_at

    async def get(self, key: str) -> Optional[P]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._data[key]
            logger.info("Verification record expired", store=self.name)
            return None
        return entry.payload

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._data.items() if now > entry.expires_at]
        for key in expired:
            del self._data[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)
