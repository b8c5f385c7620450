"""Unit tests for the Redis quota store against a recording fake client."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from schedule_limiter.adapters.quota_store.redis_store import RedisQuotaStore, create_redis_client
from schedule_limiter.core.errors import StorageError


class FakePipeline:
    """Queues HINCRBY commands and applies them on execute, like MULTI/EXEC."""

    def __init__(self, redis: "FakeRedis", transaction: bool) -> None:
        self._redis = redis
        self.transaction = transaction
        self.commands: list[tuple[str, str, int]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    def hincrby(self, name: str, key: str, amount: int) -> "FakePipeline":
        self.commands.append((name, key, amount))
        return self

    async def execute(self) -> list[int]:
        if self._redis.fail_next_execute:
            raise RedisConnectionError("connection reset")
        self._redis.executed.append((self.transaction, list(self.commands)))
        return [self._redis.apply_hincrby(*command) for command in self.commands]


class FakeRedis:
    """Hash commands over dicts, returning strings as with decode_responses=True."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.executed: list[tuple[bool, list[tuple[str, str, int]]]] = []
        self.hmget_calls: list[tuple[str, list[str]]] = []
        self.fail_next_execute = False
        self.closed = False

    def apply_hincrby(self, name: str, key: str, amount: int) -> int:
        record = self.hashes.setdefault(name, {})
        value = int(record.get(key, "0")) + amount
        record[key] = str(value)
        return value

    async def hset(self, name: str, key: str, value: Any) -> int:
        record = self.hashes.setdefault(name, {})
        created = key not in record
        record[key] = str(value)
        return int(created)

    async def hget(self, name: str, key: str) -> str | None:
        return self.hashes.get(name, {}).get(key)

    async def hmget(self, name: str, keys: list[str]) -> list[str | None]:
        self.hmget_calls.append((name, list(keys)))
        record = self.hashes.get(name, {})
        return [record.get(key) for key in keys]

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_store(fake_redis: FakeRedis) -> RedisQuotaStore:
    return RedisQuotaStore(fake_redis)  # type: ignore[arg-type]


class TestRedisQuotaStoreLayout:
    @pytest.mark.asyncio
    async def test_set_limit_writes_suffix_field_in_shard(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        assert await redis_store.set_limit(1234, 10) == 10
        assert fake_redis.hashes == {"SL12": {"34": "10"}}

    @pytest.mark.asyncio
    async def test_increase_values_uses_one_transaction(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        values = await redis_store.increase_values(1, {2015: {1: 5, 2: 6}, 2016: {4: 8}})

        assert values == {2015: {1: 5, 2: 6}, 2016: {4: 8}}
        assert fake_redis.executed == [
            (True, [("SL", "120151", 5), ("SL", "120152", 6), ("SL", "120164", 8)]),
        ]

    @pytest.mark.asyncio
    async def test_decrease_values_sends_negative_increments(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        await redis_store.increase_values(1, {2015: {1: 5}})

        values = await redis_store.decrease_values(1, {2015: {1: 3}})

        assert values == {2015: {1: 2}}
        assert fake_redis.executed[-1] == (True, [("SL", "120151", -3)])

    @pytest.mark.asyncio
    async def test_get_usage_reads_buckets_and_limit_in_one_hmget(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        await redis_store.set_limit(1, 10)
        await redis_store.increase_values(1, {2015: {1: 5}})

        usage = await redis_store.get_usage(1, {2015: [1, 2]}, include_limit=True)

        assert usage == {2015: {1: 5, 2: 0}, "limit": 10}
        assert fake_redis.hmget_calls == [("SL", ["120151", "120152", "1"])]

    @pytest.mark.asyncio
    async def test_unset_limit_reads_zero(self, redis_store: RedisQuotaStore) -> None:
        assert await redis_store.get_limit(99) == 0
        assert await redis_store.get_usage(99, {2015: [1]}, include_limit=True) == {2015: {1: 0}, "limit": 0}

    @pytest.mark.asyncio
    async def test_empty_batch_skips_round_trip(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        assert await redis_store.increase_values(1, {2015: {}}) == {2015: {}}
        assert fake_redis.executed == []

    @pytest.mark.asyncio
    async def test_custom_tag_from_options(self, fake_redis: FakeRedis) -> None:
        with patch(
            "schedule_limiter.adapters.quota_store.redis_store.create_redis_client",
            return_value=fake_redis,
        ) as create_client:
            store = RedisQuotaStore.from_options({"host": "127.0.0.1", "port": 6379, "tag": "Q:"})

        create_client.assert_called_once_with({"host": "127.0.0.1", "port": 6379})
        await store.set_limit(1234, 3)
        assert fake_redis.hashes == {"Q:12": {"34": "3"}}


class TestRedisQuotaStoreErrors:
    @pytest.mark.asyncio
    async def test_redis_errors_surface_as_storage_error(
        self, redis_store: RedisQuotaStore, fake_redis: FakeRedis
    ) -> None:
        fake_redis.fail_next_execute = True

        with pytest.raises(StorageError) as exc_info:
            await redis_store.increase_values(1, {2015: {1: 5}})

        assert exc_info.value.code == "storage_error"
        assert isinstance(exc_info.value.__cause__, RedisConnectionError)
        assert fake_redis.hashes == {}

    @pytest.mark.asyncio
    async def test_read_errors_surface_as_storage_error(self, redis_store: RedisQuotaStore) -> None:
        async def _boom(*args: Any, **kwargs: Any) -> None:
            raise RedisConnectionError("refused")

        with patch.object(redis_store._client, "hget", _boom):
            with pytest.raises(StorageError):
                await redis_store.get_limit(1)

    @pytest.mark.asyncio
    async def test_close_closes_client(self, redis_store: RedisQuotaStore, fake_redis: FakeRedis) -> None:
        await redis_store.close()
        assert fake_redis.closed is True


class TestCreateRedisClient:
    def test_url_option_uses_from_url(self) -> None:
        with patch("schedule_limiter.adapters.quota_store.redis_store.redis.Redis") as redis_cls:
            create_redis_client({"url": "redis://localhost:6379/1"})

        redis_cls.from_url.assert_called_once_with("redis://localhost:6379/1", decode_responses=True)

    def test_keyword_options_pass_through(self) -> None:
        with patch("schedule_limiter.adapters.quota_store.redis_store.redis.Redis") as redis_cls:
            create_redis_client({"host": "127.0.0.1", "port": 6379})

        redis_cls.assert_called_once_with(host="127.0.0.1", port=6379, decode_responses=True)
