"""
Redis Store Adapter - Implementation of StorePort for Redis.

Connects to either a single Redis instance or a Redis Cluster, depending on
the configured topology. Exactly one client is created per adapter.
"""

from typing import Any, Optional

from redis.asyncio import Redis
from redis.asyncio.cluster import ClusterNode, RedisCluster

from ..breaker import AvailabilityBreaker
from ..config import StoreTopology
from ..ports.store import StorePort, Value


class RedisStoreAdapter(StorePort):
    """
    Redis implementation of the StorePort.

    No retries live here: command errors propagate to the caller, which
    routes them through the availability breaker.
    """

    def __init__(
        self,
        topology: StoreTopology,
        breaker: AvailabilityBreaker,
        logger: Any,
        client: Optional[Any] = None,
    ):
        """
        Initialize adapter with topology.

        Args:
            topology: Single instance or cluster seeds, plus credentials
            breaker: Marked available once connect() succeeds
            logger: LogUtil instance
            client: Pre-built async client to use instead of building one
        """
        self.topology = topology
        self.breaker = breaker
        self.logger = logger

        self._client: Optional[Any] = client
        self._connected = False

    def _build_client(self) -> Any:
        t = self.topology
        if t.is_cluster:
            return RedisCluster(
                startup_nodes=[ClusterNode(host, port) for host, port in t.cluster_nodes],
                username=t.username,
                password=t.password,
                decode_responses=False,
            )
        return Redis(
            host=t.host,
            port=t.port,
            db=t.db,
            username=t.username,
            password=t.password,
            decode_responses=False,
        )

    async def connect(self) -> None:
        """Create the client, verify it with PING, then mark the store available."""
        if self._connected:
            return

        if self._client is None:
            self._client = self._build_client()

        try:
            await self._client.ping()
        except Exception as e:
            self.logger.error(
                f"Failed to connect to store {self.topology.describe()}: {e}",
                emoji="❌",
            )
            await self.close()
            raise ConnectionError(f"Store connection failed: {e}") from e

        self._connected = True
        self.breaker.mark_available()
        self.logger.info(f"Store connected: {self.topology.describe()}", emoji="🔴")

    async def close(self) -> None:
        """Close the client and mark the store unavailable."""
        if self._client is not None:
            try:
                await self._client.aclose()
            except Exception as e:
                self.logger.debug(f"Store close failed: {e}")
            self._client = None

        self._connected = False
        self.breaker.close()
        self.logger.debug("Store connection closed")

    @property
    def client(self) -> Any:
        if self._client is None or not self._connected:
            raise RuntimeError("Store adapter not connected")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def get(self, key: str) -> Optional[bytes]:
        return await self.client.get(key)

    async def set(self, key: str, value: Value, ex: Optional[int] = None) -> None:
        if ex:
            await self.client.set(key, value, ex=ex)
        else:
            await self.client.set(key, value)

    async def delete(self, key: str) -> int:
        return await self.client.delete(key)

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self.client.expire(key, seconds))

    async def rpush(self, key: str, value: Value) -> int:
        return await self.client.rpush(key, value)

    async def ltrim(self, key: str, start: int, end: int) -> None:
        await self.client.ltrim(key, start, end)

    async def blpop(self, key: str, timeout: float) -> Optional[bytes]:
        result = await self.client.blpop([key], timeout=timeout)
        if not result:
            return None
        return result[1]

    async def llen(self, key: str) -> int:
        return await self.client.llen(key)
