"""
Message Queue - Per-node FIFO list in the shared store.

Producers push to the tail of the target node's list; the owning node
blocking-pops from the head. Payloads are opaque bytes. Delivery is
at-least-once with no deduplication.
"""

from typing import Any, Optional

from .breaker import AvailabilityBreaker
from .models import UNKNOWN, StoreKeys
from .ports.store import StorePort, Value


class MessageQueue:
    """Queue operations addressed by node address."""

    def __init__(
        self,
        store: StorePort,
        breaker: AvailabilityBreaker,
        logger: Any,
        keys: Optional[StoreKeys] = None,
    ):
        self.store = store
        self.breaker = breaker
        self.logger = logger
        self.keys = keys or StoreKeys()

    async def enqueue(self, addr: str, message: Value) -> bool:
        key = self.keys.queue(addr)
        try:
            await self.store.rpush(key, message)
            return True
        except Exception as e:
            self.logger.error(f"push {key} failed: {e}")
            self.breaker.trip("queue push")
            return False

    async def dequeue_blocking(self, addr: str, timeout: float) -> Optional[bytes]:
        """
        Wait up to timeout seconds for the head of addr's queue.

        Returns None on timeout or store failure. A timeout of 0 waits
        until a message arrives.
        """
        if timeout < 0:
            raise ValueError(f"timeout must not be negative, got {timeout}")

        key = self.keys.queue(addr)
        try:
            return await self.store.blpop(key, timeout)
        except Exception as e:
            self.logger.error(f"blocking pop {key} failed: {e}")
            self.breaker.trip("queue pop")
            return None

    async def length(self, addr: str) -> int:
        key = self.keys.queue(addr)
        try:
            return await self.store.llen(key)
        except Exception as e:
            self.logger.error(f"length {key} failed: {e}")
            self.breaker.trip("queue length")
            return UNKNOWN

    async def clear(self, addr: str) -> bool:
        # start > end empties the list
        return await self._trim(addr, 1, 0)

    async def truncate(self, addr: str, max_len: int) -> bool:
        """Keep only the newest max_len messages."""
        if max_len <= 0:
            return await self.clear(addr)
        return await self._trim(addr, -max_len, -1)

    async def _trim(self, addr: str, start: int, end: int) -> bool:
        key = self.keys.queue(addr)
        try:
            await self.store.ltrim(key, start, end)
            return True
        except Exception as e:
            self.logger.error(f"trim {key} [{start}, {end}] failed: {e}")
            self.breaker.trip("queue trim")
            return False
