"""
Node Registry Tests - client count publication and lookup.
"""
import pytest

from services.signal_broker.models import CLIENT_ALIVE_EXPIRE_DURATION, UNKNOWN


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_then_query_from_other_node(self, registry, remote_registry):
        assert await registry.publish_client_count(5)
        assert await remote_registry.query_node_client_count(registry.self_address) == 5

    @pytest.mark.asyncio
    async def test_publish_sets_alive_ttl(self, registry, fake_redis, keys):
        await registry.publish_client_count(3)
        assert fake_redis.ttl(keys.stats(registry.self_address)) == CLIENT_ALIVE_EXPIRE_DURATION

    @pytest.mark.asyncio
    async def test_count_expires_without_republish(self, registry, remote_registry, fake_redis):
        await registry.publish_client_count(5)

        fake_redis.advance(CLIENT_ALIVE_EXPIRE_DURATION)
        assert await remote_registry.query_node_client_count(registry.self_address) == UNKNOWN

    @pytest.mark.asyncio
    async def test_republish_keeps_count_alive(self, registry, remote_registry, fake_redis):
        await registry.publish_client_count(5)
        fake_redis.advance(CLIENT_ALIVE_EXPIRE_DURATION - 1)
        await registry.publish_client_count(7)
        fake_redis.advance(CLIENT_ALIVE_EXPIRE_DURATION - 1)

        assert await remote_registry.query_node_client_count(registry.self_address) == 7

    @pytest.mark.asyncio
    async def test_publish_not_gated_by_breaker(self, registry, remote_registry, breaker):
        breaker.trip("test")

        assert await registry.publish_client_count(2)
        assert await remote_registry.query_node_client_count(registry.self_address) == 2

    @pytest.mark.asyncio
    async def test_publish_failure_trips_breaker(self, registry, fake_redis, breaker):
        fake_redis.fail = ConnectionError("down")

        assert not await registry.publish_client_count(1)
        assert not breaker.is_available


class TestQuery:
    @pytest.mark.asyncio
    async def test_unknown_node(self, registry):
        assert await registry.query_node_client_count("10.9.9.9-1") == UNKNOWN

    @pytest.mark.asyncio
    async def test_zero_is_a_real_count(self, registry):
        await registry.publish_client_count(0)
        assert await registry.query_node_client_count(registry.self_address) == 0

    @pytest.mark.asyncio
    async def test_non_numeric_value(self, registry, fake_redis, keys):
        await fake_redis.set(keys.stats("10.9.9.9-1"), "garbage")
        assert await registry.query_node_client_count("10.9.9.9-1") == UNKNOWN

    @pytest.mark.asyncio
    async def test_failure_returns_unknown_and_trips(self, registry, fake_redis, breaker):
        fake_redis.fail = TimeoutError("slow")

        assert await registry.query_node_client_count(registry.self_address) == UNKNOWN
        assert not breaker.is_available
