"""Health checks for Redis, the catalog snapshot and the remote country catalog."""

import httpx
from redis.exceptions import RedisError

from capitalist.logging_config import logger
from capitalist.models.health import ServiceStatus, SnapshotStatus
from capitalist.redis_cache.cache import ALL_COUNTRIES_KEY


async def is_redis_available(redis_client) -> ServiceStatus:
    """Check Redis connectivity.

    Args:
        redis_client: Async Redis client to ping.

    Returns:
        ServiceStatus.available when Redis responds, else not_available.
    """
    try:
        await redis_client.ping()
        logger.info("REDIS CONNECTED")
        return ServiceStatus.available
    except (RedisError, OSError) as exc:
        logger.error("REDIS UNAVAILABLE", error=str(exc))
        return ServiceStatus.not_available


async def is_catalog_api_available(http_client: httpx.AsyncClient, url: str) -> ServiceStatus:
    """Check that the catalog endpoint answers with a 2xx status.

    Args:
        http_client: Shared HTTP client.
        url: Catalog URL.

    Returns:
        ServiceStatus.available when the endpoint responds successfully.
    """
    try:
        response = await http_client.get(url)
    except httpx.HTTPError as exc:
        logger.error("CATALOG API UNAVAILABLE", error=str(exc))
        return ServiceStatus.not_available
    if response.is_success:
        return ServiceStatus.available
    logger.error("CATALOG API UNAVAILABLE", status=response.status_code)
    return ServiceStatus.not_available


async def catalog_snapshot_status(redis_client) -> SnapshotStatus:
    """Report whether the catalog snapshot is present in Redis.

    Args:
        redis_client: Async Redis client.

    Returns:
        SnapshotStatus.cached or missing, or unknown when Redis cannot answer.
    """
    try:
        exists = await redis_client.exists(ALL_COUNTRIES_KEY)
    except (RedisError, OSError) as exc:
        logger.error("CATALOG SNAPSHOT UNKNOWN", error=str(exc))
        return SnapshotStatus.unknown
    return SnapshotStatus.cached if exists else SnapshotStatus.missing
