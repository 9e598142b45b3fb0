"""
Signal Broker Service - One node's coordination layer.

Handles:
- Store connection and availability tracking
- Peer attach / detach and periodic TTL refresh
- Client count publication
- Delivery to a peer's owning node and consumption of this node's queue
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from .adapters.redis_store import RedisStoreAdapter
from .breaker import AvailabilityBreaker
from .cache import PeerCache
from .config import BrokerConfig
from .directory import PeerDirectory
from .models import StoreKeys
from .mq import MessageQueue
from .node import generate_node_address
from .registry import NodeRegistry

MessageHandler = Callable[[bytes], Awaitable[None]]


class SignalBroker:
    """
    Coordination service for a signaling node.

    Runs background tasks for:
    - Publishing the node's client count
    - Refreshing attached peers' directory TTLs
    - Consuming this node's message queue (when a handler is given)
    """

    def __init__(
        self,
        config: BrokerConfig,
        logger: Any,
        on_message: Optional[MessageHandler] = None,
        client_count: Optional[Callable[[], int]] = None,
        breaker: Optional[AvailabilityBreaker] = None,
        client: Optional[Any] = None,
    ):
        self.config = config
        self.logger = logger
        self.on_message = on_message
        self._client_count = client_count or (lambda: len(self._local_peers))

        # Node identity
        self.address = config.node_address or generate_node_address()
        self.keys = StoreKeys(config.key_prefix)

        self.breaker = breaker or AvailabilityBreaker(
            break_duration=config.break_duration,
            logger=logger.child("breaker"),
        )
        self.store = RedisStoreAdapter(
            topology=config.topology,
            breaker=self.breaker,
            logger=logger.child("store"),
            client=client,
        )

        self.directory = PeerDirectory(
            store=self.store,
            breaker=self.breaker,
            self_address=self.address,
            logger=logger.child("directory"),
            cache=PeerCache(max_size=config.peer_cache_max, ttl=config.peer_cache_ttl),
            keys=self.keys,
            peer_ttl=config.peer_ttl,
        )
        self.registry = NodeRegistry(
            store=self.store,
            breaker=self.breaker,
            self_address=self.address,
            logger=logger.child("registry"),
            keys=self.keys,
            alive_ttl=config.client_alive_ttl,
        )
        self.queue = MessageQueue(
            store=self.store,
            breaker=self.breaker,
            logger=logger.child("mq"),
            keys=self.keys,
        )

        # State
        self.running = False
        self._local_peers: Set[str] = set()
        self._tasks: List[asyncio.Task] = []

        # Stats
        self.messages_delivered = 0
        self.messages_undeliverable = 0
        self.messages_consumed = 0
        self.handler_errors = 0
        self.stats_errors = 0

    @property
    def is_store_available(self) -> bool:
        return self.breaker.is_available

    async def start(self) -> None:
        """Connect the store and start background loops."""
        if self.running:
            self.logger.warn("Signal broker already running")
            return

        self.logger.configure_from_config(self.config.to_dict())
        await self.store.connect()

        self.running = True
        name = self.config.service_id
        self._tasks = [
            asyncio.create_task(self.run_stats_loop(), name=f"{name}-stats"),
            asyncio.create_task(self.run_peer_refresh_loop(), name=f"{name}-peer-refresh"),
        ]
        if self.on_message is not None:
            self._tasks.append(
                asyncio.create_task(self.run_consumer_loop(), name=f"{name}-consumer")
            )

        self.logger.info(f"Signal broker started as {self.address}", emoji="📡")

    async def stop(self) -> None:
        """Stop loops and close the store."""
        self.running = False

        tasks, self._tasks = self._tasks, []
        for task in tasks:
            if not task.done():
                task.cancel()

        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for task, result in zip(tasks, results):
                if isinstance(result, Exception):
                    self.logger.error(
                        f"{task.get_name()} exited with error: {result}", emoji="💥"
                    )
        finally:
            await self.store.close()
            self.breaker.close()

        self.logger.info("Signal broker stopped", emoji="🛑")

    # -------------------------------------------------
    # Peers
    # -------------------------------------------------

    async def attach_peer(self, peer_id: str) -> bool:
        """Track a locally connected peer and point the directory at this node."""
        self._local_peers.add(peer_id)
        return await self.directory.register_local_peer(peer_id)

    async def detach_peer(self, peer_id: str) -> bool:
        self._local_peers.discard(peer_id)
        return await self.directory.deregister_local_peer(peer_id)

    def get_local_peers(self) -> List[str]:
        return sorted(self._local_peers)

    # -------------------------------------------------
    # Delivery
    # -------------------------------------------------

    async def deliver(self, peer_id: str, message: Any) -> Optional[str]:
        """
        Push message onto the queue of the node that owns peer_id.

        Returns the target node address, or None when the peer could not be
        resolved or the push failed.
        """
        addr = await self.directory.resolve_peer_address(peer_id)
        if addr is None:
            self.messages_undeliverable += 1
            self.logger.debug(f"peer {peer_id} not found; message dropped")
            return None

        if not await self.queue.enqueue(addr, message):
            self.messages_undeliverable += 1
            return None

        self.messages_delivered += 1
        return addr

    # -------------------------------------------------
    # Background loops
    # -------------------------------------------------

    async def run_stats_loop(self) -> None:
        """Background task for publishing the client count."""
        try:
            while self.running:
                try:
                    count = self._client_count()
                except Exception as e:
                    self.stats_errors += 1
                    self.logger.error(f"client count failed: {e}", emoji="💥")
                else:
                    await self.registry.publish_client_count(count)
                await asyncio.sleep(self.config.stats_interval_sec)

        except asyncio.CancelledError:
            self.logger.debug("Stats loop cancelled")
            raise

    async def run_peer_refresh_loop(self) -> None:
        """Background task keeping attached peers' directory records alive."""
        try:
            while self.running:
                await asyncio.sleep(self.config.peer_refresh_interval_sec)
                for peer_id in list(self._local_peers):
                    await self.directory.refresh_local_peer_ttl(peer_id)

        except asyncio.CancelledError:
            self.logger.debug("Peer refresh loop cancelled")
            raise

    async def run_consumer_loop(self) -> None:
        """Background task draining this node's queue into on_message."""
        if self.on_message is None:
            raise RuntimeError("No message handler configured")

        try:
            while self.running:
                payload = await self.queue.dequeue_blocking(
                    self.address, self.config.consume_timeout_sec
                )
                if payload is None:
                    if not self.breaker.is_available:
                        await asyncio.sleep(self.config.break_duration)
                    continue

                self.messages_consumed += 1
                try:
                    await self.on_message(payload)
                except Exception as e:
                    self.handler_errors += 1
                    self.logger.error(f"message handler failed: {e}", emoji="💥")

        except asyncio.CancelledError:
            self.logger.debug("Consumer loop cancelled")
            raise

    def get_status(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "running": self.running,
            "store_available": self.is_store_available,
            "breaker": self.breaker.to_dict(),
            "local_peers": len(self._local_peers),
            "peer_cache_size": len(self.directory.cache),
            "messages_delivered": self.messages_delivered,
            "messages_undeliverable": self.messages_undeliverable,
            "messages_consumed": self.messages_consumed,
            "handler_errors": self.handler_errors,
            "stats_errors": self.stats_errors,
        }
