"""
Node Registry - Per-node load published under a TTL key.

A node that stops publishing drops out when its key expires; there is no
other liveness signal.
"""

from typing import Any, Optional

from .breaker import AvailabilityBreaker
from .models import CLIENT_ALIVE_EXPIRE_DURATION, UNKNOWN, StoreKeys
from .ports.store import StorePort


class NodeRegistry:
    """Publishes this node's client count and reads any node's count."""

    def __init__(
        self,
        store: StorePort,
        breaker: AvailabilityBreaker,
        self_address: str,
        logger: Any,
        keys: Optional[StoreKeys] = None,
        alive_ttl: int = CLIENT_ALIVE_EXPIRE_DURATION,
    ):
        self.store = store
        self.breaker = breaker
        self.self_address = self_address
        self.logger = logger
        self.keys = keys or StoreKeys()
        self.alive_ttl = alive_ttl

    async def publish_client_count(self, count: int) -> bool:
        # Not gated on the breaker
        key = self.keys.stats(self.self_address)
        try:
            await self.store.set(key, int(count), ex=self.alive_ttl)
            self.logger.debug(f"set {key}={count}")
            return True
        except Exception as e:
            self.logger.error(f"publish {key} failed: {e}")
            self.breaker.trip("stats publish")
            return False

    async def query_node_client_count(self, addr: str) -> int:
        """
        Returns the published count, or UNKNOWN (-1) when the key is absent,
        unparseable, or the store failed.
        """
        key = self.keys.stats(addr)
        try:
            raw = await self.store.get(key)
        except Exception as e:
            self.logger.error(f"query {key} failed: {e}")
            self.breaker.trip("stats query")
            return UNKNOWN

        if raw is None:
            return UNKNOWN
        try:
            return int(raw)
        except (TypeError, ValueError):
            self.logger.warn(f"non-numeric value under {key}: {raw!r}")
            return UNKNOWN
