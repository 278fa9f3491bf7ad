import anyio
import httpx
from redis.exceptions import ConnectionError as RedisConnectionError

from capitalist.health.health_check import (
    catalog_snapshot_status,
    is_catalog_api_available,
    is_redis_available,
)
from capitalist.models.health import ServiceStatus, SnapshotStatus
from capitalist.redis_cache.cache import ALL_COUNTRIES_KEY


class DownRedis:
    async def ping(self):
        raise RedisConnectionError("redis is down")

    async def exists(self, key):
        raise RedisConnectionError("redis is down")


def catalog_status(handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await is_catalog_api_available(client, "https://catalog.test/v2/all")

    return anyio.run(run)


def test_redis_available(fake_redis):
    assert anyio.run(is_redis_available, fake_redis) == ServiceStatus.available


def test_redis_not_available():
    assert anyio.run(is_redis_available, DownRedis()) == ServiceStatus.not_available


def test_catalog_api_available():
    assert catalog_status(lambda request: httpx.Response(200, json=[])) == ServiceStatus.available


def test_catalog_api_bad_status():
    assert catalog_status(lambda request: httpx.Response(500)) == ServiceStatus.not_available


def test_catalog_api_unreachable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    assert catalog_status(handler) == ServiceStatus.not_available


def test_catalog_snapshot_missing(fake_redis):
    assert anyio.run(catalog_snapshot_status, fake_redis) == SnapshotStatus.missing


def test_catalog_snapshot_cached(fake_redis):
    async def run():
        await fake_redis.set(ALL_COUNTRIES_KEY, "[]")
        return await catalog_snapshot_status(fake_redis)

    assert anyio.run(run) == SnapshotStatus.cached


def test_catalog_snapshot_unknown_when_redis_down():
    assert anyio.run(catalog_snapshot_status, DownRedis()) == SnapshotStatus.unknown
