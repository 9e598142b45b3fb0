"""
Shared fixtures: an in-memory async Redis fake plus wired-up components.

FakeRedis implements only the commands the broker issues. TTLs run on a
manual clock (advance()), blocking pops wait on real time.
"""
import asyncio
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

from shared.logutil import LogUtil
from services.signal_broker.adapters.redis_store import RedisStoreAdapter
from services.signal_broker.breaker import AvailabilityBreaker
from services.signal_broker.cache import PeerCache
from services.signal_broker.config import StoreTopology
from services.signal_broker.directory import PeerDirectory
from services.signal_broker.models import StoreKeys
from services.signal_broker.mq import MessageQueue
from services.signal_broker.registry import NodeRegistry

NODE_A = "10.0.0.1-100"
NODE_B = "10.0.0.2-200"

TEST_BREAK_DURATION = 0.2


def _enc(value) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode()


class FakeRedis:
    def __init__(self):
        self.now = 0.0
        self._kv: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self._lists: Dict[str, List[bytes]] = {}
        self._pushed = asyncio.Event()
        self.calls: List[str] = []
        self.fail: Optional[Exception] = None
        self.closed = False

    # ---- test controls ----
    def advance(self, seconds: float) -> None:
        self.now += seconds

    def count(self, op: str) -> int:
        return self.calls.count(op)

    def ttl(self, key: str) -> Optional[float]:
        entry = self._kv.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self.now

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail is not None:
            raise self.fail

    def _alive(self, key: str):
        entry = self._kv.get(key)
        if entry is None:
            return None
        if entry[1] is not None and entry[1] <= self.now:
            del self._kv[key]
            return None
        return entry

    # ---- commands ----
    async def ping(self):
        self._check("ping")
        return True

    async def get(self, key):
        self._check("get")
        entry = self._alive(key)
        return entry[0] if entry else None

    async def set(self, key, value, ex=None):
        self._check("set")
        expires = self.now + ex if ex else None
        self._kv[key] = (_enc(value), expires)
        return True

    async def delete(self, *keys):
        self._check("delete")
        removed = 0
        for key in keys:
            if self._alive(key) is not None:
                del self._kv[key]
                removed += 1
            if self._lists.pop(key, None) is not None:
                removed += 1
        return removed

    async def expire(self, key, seconds):
        self._check("expire")
        entry = self._alive(key)
        if entry is None:
            return False
        self._kv[key] = (entry[0], self.now + seconds)
        return True

    async def rpush(self, key, *values):
        self._check("rpush")
        items = self._lists.setdefault(key, [])
        items.extend(_enc(v) for v in values)
        self._pushed.set()
        return len(items)

    async def ltrim(self, key, start, end):
        self._check("ltrim")
        items = self._lists.get(key, [])
        n = len(items)
        start = max(start + n if start < 0 else start, 0)
        end = end + n if end < 0 else end
        end = min(end, n - 1)
        if start > end or start >= n:
            self._lists.pop(key, None)
        else:
            self._lists[key] = items[start:end + 1]
        return True

    async def llen(self, key):
        self._check("llen")
        return len(self._lists.get(key, []))

    async def blpop(self, keys, timeout=0):
        self._check("blpop")
        if isinstance(keys, (str, bytes)):
            keys = [keys]
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout else None

        while True:
            for key in keys:
                items = self._lists.get(key)
                if items:
                    value = items.pop(0)
                    if not items:
                        del self._lists[key]
                    return [_enc(key), value]

            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return None

            self._pushed.clear()
            try:
                await asyncio.wait_for(self._pushed.wait(), remaining)
            except asyncio.TimeoutError:
                return None

    async def aclose(self):
        self.closed = True


@pytest.fixture
def logger():
    return LogUtil("signal_broker-test")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def keys():
    return StoreKeys()


@pytest.fixture
def breaker(logger):
    return AvailabilityBreaker(break_duration=TEST_BREAK_DURATION, logger=logger)


@pytest_asyncio.fixture
async def store(fake_redis, breaker, logger):
    adapter = RedisStoreAdapter(StoreTopology(), breaker, logger, client=fake_redis)
    await adapter.connect()
    yield adapter
    breaker.close()


@pytest.fixture
def directory(store, breaker, logger, keys):
    return PeerDirectory(store, breaker, NODE_A, logger, cache=PeerCache(), keys=keys)


@pytest.fixture
def remote_directory(store, breaker, logger, keys):
    """Directory of a second node sharing the same store, with a cold cache."""
    return PeerDirectory(store, breaker, NODE_B, logger, cache=PeerCache(), keys=keys)


@pytest.fixture
def registry(store, breaker, logger, keys):
    return NodeRegistry(store, breaker, NODE_A, logger, keys=keys)


@pytest.fixture
def remote_registry(store, breaker, logger, keys):
    return NodeRegistry(store, breaker, NODE_B, logger, keys=keys)


@pytest.fixture
def queue(store, breaker, logger, keys):
    return MessageQueue(store, breaker, logger, keys=keys)
