"""
Peer Directory - Which node owns which peer.

Uses the shared store as the source of truth:
- Each node writes <prefix>:peerId:{peer_id} = its own address, with TTL
- Long-lived connections refresh the TTL; detaching deletes the key
- Lookups go through a local read-through cache first
"""

from typing import Any, Optional

from .breaker import AvailabilityBreaker
from .cache import PeerCache
from .models import PEER_EXPIRE_DURATION, StoreKeys
from .ports.store import StorePort


class PeerDirectory:
    """
    Maps peer ids to owning node addresses.

    Writes are best-effort and skipped while the breaker is open. Reads
    serve cached hints without revalidation; a peer that moves nodes while
    cached keeps resolving to its old node until the entry is evicted or
    forgotten.
    """

    def __init__(
        self,
        store: StorePort,
        breaker: AvailabilityBreaker,
        self_address: str,
        logger: Any,
        cache: Optional[PeerCache] = None,
        keys: Optional[StoreKeys] = None,
        peer_ttl: int = PEER_EXPIRE_DURATION,
    ):
        self.store = store
        self.breaker = breaker
        self.self_address = self_address
        self.logger = logger
        self.cache = cache if cache is not None else PeerCache()
        self.keys = keys or StoreKeys()
        self.peer_ttl = peer_ttl

    async def register_local_peer(self, peer_id: str) -> bool:
        """Point peer_id at this node. Skipped while the store is unavailable."""
        if not self.breaker.is_available:
            return False
        key = self.keys.peer(peer_id)
        try:
            await self.store.set(key, self.self_address, ex=self.peer_ttl)
            return True
        except Exception as e:
            self.logger.error(f"register {key} failed: {e}")
            self.breaker.trip("peer register")
            return False

    async def deregister_local_peer(self, peer_id: str) -> bool:
        if not self.breaker.is_available:
            return False
        key = self.keys.peer(peer_id)
        try:
            await self.store.delete(key)
            return True
        except Exception as e:
            self.logger.error(f"deregister {key} failed: {e}")
            self.breaker.trip("peer deregister")
            return False

    async def refresh_local_peer_ttl(self, peer_id: str) -> bool:
        """Reset the record's TTL without rewriting the address."""
        if not self.breaker.is_available:
            return False
        key = self.keys.peer(peer_id)
        try:
            await self.store.expire(key, self.peer_ttl)
            return True
        except Exception as e:
            self.logger.error(f"refresh {key} failed: {e}")
            self.breaker.trip("peer refresh")
            return False

    async def resolve_peer_address(self, peer_id: str) -> Optional[str]:
        """
        Cache first, store on miss.

        Returns None when the peer is not registered, has expired, or the
        store could not be read; callers cannot tell these apart.
        """
        cached = self.cache.get(peer_id)
        if cached is not None:
            return cached

        key = self.keys.peer(peer_id)
        try:
            raw = await self.store.get(key)
        except Exception as e:
            self.logger.error(f"resolve {key} failed: {e}")
            self.breaker.trip("peer resolve")
            return None

        if not raw:
            return None

        addr = raw.decode() if isinstance(raw, bytes) else str(raw)
        self.cache.set(peer_id, addr)
        return addr

    def forget(self, peer_id: str) -> None:
        """Drop a cached hint, e.g. on an external invalidation signal."""
        self.cache.pop(peer_id)
