"""FastAPI application routes, middleware, and metrics."""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from redis.asyncio import Redis
from structlog.contextvars import bind_contextvars, clear_contextvars

from capitalist.config import (
    CATALOG_URL,
    HTTP_TIMEOUT_S,
    HTTP_USER_AGENT,
    REDIS_DB,
    REDIS_HOST,
    REDIS_PORT,
)
from capitalist.directory.directory import CountryDirectory, build_directory
from capitalist.health.health_check import (
    catalog_snapshot_status,
    is_catalog_api_available,
    is_redis_available,
)
from capitalist.logging_config import logger
from capitalist.models.country import Country, Location
from capitalist.models.health import Dependencies, HealthResponse
from capitalist.models.result import CatalogError, Err, ErrorKind, Result

ERROR_RESPONSES = {
    ErrorKind.network: (502, "Could not load countries, please try again"),
    ErrorKind.not_found: (404, "Country not found"),
    ErrorKind.invalid: (502, "Received invalid country data"),
    ErrorKind.location_denied: (422, "Location unavailable"),
    ErrorKind.max_reached: (409, "You can save 5 countries max"),
}


class DirectoryError(Exception):
    """Raised by routes when a directory call returns an error result."""

    def __init__(self, error: CatalogError):
        super().__init__(error.message or error.kind.value)
        self.error = error


def unwrap(outcome: Result):
    """Return the value of a successful result or raise DirectoryError."""
    if isinstance(outcome, Err):
        raise DirectoryError(outcome.error)
    return outcome.value


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared clients and directory for the application session."""
    http_client = httpx.AsyncClient(
        timeout=HTTP_TIMEOUT_S, headers={"User-Agent": HTTP_USER_AGENT}
    )
    redis_client = Redis(host=REDIS_HOST, port=REDIS_PORT, db=REDIS_DB)
    app.state.http_client = http_client
    app.state.redis_client = redis_client
    app.state.directory = build_directory(http_client, redis_client)
    logger.info("APP_STARTED", redis_host=REDIS_HOST, catalog_url=CATALOG_URL)
    try:
        yield
    finally:
        await http_client.aclose()
        await redis_client.aclose()


app = FastAPI(lifespan=lifespan)

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["path"]
)


def get_directory(request: Request) -> CountryDirectory:
    """Return the directory built during application startup."""
    return request.app.state.directory


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Log request details, attach a request ID, and record metrics.

    Args:
        request: Incoming HTTP request.
        call_next: FastAPI handler for the next middleware/app.

    Returns:
        The response produced by the downstream handler.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    start = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response
    finally:
        duration_s = time.perf_counter() - start
        duration_ms = round(duration_s * 1000, 2)
        status_code = getattr(response, "status_code", 500)
        logger.info(
            "HTTP_REQUEST",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
        REQUEST_COUNT.labels(
            method=request.method, path=request.url.path, status_code=status_code
        ).inc()
        REQUEST_LATENCY.labels(path=request.url.path).observe(duration_s)
        clear_contextvars()


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError):
    """Convert directory error results into JSON responses.

    Args:
        request: Incoming HTTP request.
        exc: Raised directory error.

    Returns:
        A JSON response with a user-facing message and the error kind.
    """
    status_code, message = ERROR_RESPONSES[exc.error.kind]
    logger.info(
        "DIRECTORY_ERROR",
        kind=exc.error.kind.value,
        detail=exc.error.message,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "kind": exc.error.kind.value},
    )


@app.get("/")
async def root():
    """Return a basic liveness response."""
    return {"message": "CapitaList"}


@app.get("/countries")
async def list_countries(
    directory: CountryDirectory = Depends(get_directory),
) -> list[Country]:
    """Return the whole catalog, served from cache when possible."""
    return unwrap(await directory.get_all_countries())


@app.get("/countries/search")
async def search_country(
    name: str = Query(min_length=1),
    directory: CountryDirectory = Depends(get_directory),
) -> Country:
    """Return the first country whose name contains the query.

    Args:
        name: Case-insensitive name fragment; empty values are rejected
            with 422 before the catalog is read.
        directory: Injected country directory.
    """
    return unwrap(await directory.get_country_by_name(name))


@app.get("/countries/locate")
async def locate_country(
    latitude: float,
    longitude: float,
    directory: CountryDirectory = Depends(get_directory),
) -> Country:
    """Return the country at the given coordinates."""
    return unwrap(await directory.get_country_by_location(latitude, longitude))


@app.get("/countries/{code}")
async def get_country(
    code: str, directory: CountryDirectory = Depends(get_directory)
) -> Country:
    """Return the catalog country with the exact code.

    Args:
        code: Case-sensitive catalog code.
        directory: Injected country directory.

    Returns:
        The matching country; unknown codes respond with 404.
    """
    return unwrap(await directory.get_country_by_code(code))


@app.get("/saved")
async def list_saved(
    directory: CountryDirectory = Depends(get_directory),
) -> list[Country]:
    """Return the saved countries in the order they were added."""
    return unwrap(await directory.get_saved_countries())


@app.post("/saved/seed")
async def seed_saved(
    latitude: float | None = None,
    longitude: float | None = None,
    directory: CountryDirectory = Depends(get_directory),
) -> list[Country]:
    """Seed an empty saved list from the caller's position or the default country.

    Args:
        latitude: Optional latitude of the caller.
        longitude: Optional longitude of the caller.
    """
    location = None
    if latitude is not None and longitude is not None:
        location = Location(latitude=latitude, longitude=longitude)
    return unwrap(await directory.seed_saved_countries(location))


@app.post("/saved/{code}")
async def save_country(
    code: str, directory: CountryDirectory = Depends(get_directory)
):
    """Look up a catalog country by code and add it to the saved list."""
    country = unwrap(await directory.get_country_by_code(code))
    return {"saved": unwrap(await directory.save_country(country))}


@app.delete("/saved/{code}")
async def remove_country(
    code: str, directory: CountryDirectory = Depends(get_directory)
):
    """Remove a country from the saved list.

    Args:
        code: Code of the saved country.
        directory: Injected country directory.

    Returns:
        ``{"removed": bool}``, false when the code was not saved.
    """
    return {"removed": unwrap(await directory.remove_country(code))}


@app.get("/health", response_model=HealthResponse)
async def health(
    request: Request, directory: CountryDirectory = Depends(get_directory)
) -> HealthResponse:
    """Report dependency availability and the state of the local store.

    Args:
        request: Incoming HTTP request, used to reach the shared clients.
        directory: Directory whose saved list is counted.

    Returns:
        A HealthResponse with dependency status, catalog snapshot presence
        and the number of saved countries (None when unreadable).
    """
    redis_client = request.app.state.redis_client
    saved = await directory.get_saved_countries()
    return HealthResponse(
        status="ok",
        dependencies=Dependencies(
            catalog_api=await is_catalog_api_available(
                request.app.state.http_client, CATALOG_URL
            ),
            redis=await is_redis_available(redis_client),
        ),
        catalog_snapshot=await catalog_snapshot_status(redis_client),
        saved_countries=None if isinstance(saved, Err) else len(saved.value),
    )


@app.get("/metrics")
async def metrics():
    """Expose Prometheus metrics for scraping."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
