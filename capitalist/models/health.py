"""Health check response models."""

from enum import Enum

from pydantic import BaseModel


class ServiceStatus(str, Enum):
    """Availability status for dependencies."""

    available = "available"
    not_available = "not_available"


class SnapshotStatus(str, Enum):
    """Whether the catalog is currently cached in Redis."""

    cached = "cached"
    missing = "missing"
    unknown = "unknown"


class Dependencies(BaseModel):
    """Reachability of the remote catalog and the Redis store."""

    catalog_api: ServiceStatus
    redis: ServiceStatus


class HealthResponse(BaseModel):
    """API health payload.

    ``catalog_snapshot`` tells whether country reads will be served from
    cache or must go to the remote catalog.
    """

    status: str
    dependencies: Dependencies
    catalog_snapshot: SnapshotStatus
    saved_countries: int | None = None
