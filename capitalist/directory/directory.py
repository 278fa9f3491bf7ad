"""Country directory: cache-first catalog access and the bounded saved list."""

import httpx
from prometheus_client import Counter

from capitalist.catalog_service.catalog import CatalogFetcher
from capitalist.config import (
    CATALOG_TTL_S,
    CATALOG_URL,
    DEFAULT_COUNTRY_CODE,
    GEOCODER_URL,
)
from capitalist.geocoding.resolver import CoordinateResolver, NominatimGeocoder
from capitalist.logging_config import logger
from capitalist.models import result
from capitalist.models.country import MAX_SAVED_COUNTRIES, Country, Location
from capitalist.models.result import Err, Ok, Result
from capitalist.redis_cache.cache import CountriesCache

CATALOG_LOOKUPS = Counter(
    "catalog_lookups_total", "Catalog reads by source", ["source"]
)


class CountryDirectory:
    """Answer country queries and manage the saved list.

    The catalog is served from the cache when a non-empty snapshot exists and
    fetched (then written back) otherwise. The saved list is never held in
    memory; each call reads it from the cache.
    """

    def __init__(
        self,
        cache: CountriesCache,
        fetcher: CatalogFetcher,
        resolver: CoordinateResolver,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.resolver = resolver

    async def get_all_countries(self) -> Result[list[Country]]:
        """Return the catalog, preferring a non-empty cached snapshot.

        A missing, empty or undecodable snapshot triggers one remote fetch whose
        result is written back to the cache.

        Returns:
            Ok with the catalog in upstream order, or the fetch error.
        """
        cached = await self.cache.load_all()
        if isinstance(cached, Ok) and cached.value:
            logger.info("CACHED_CATALOG_HIT", count=len(cached.value))
            CATALOG_LOOKUPS.labels(source="cache").inc()
            return cached

        logger.info(
            "CACHE_CATALOG_MISS",
            reason=cached.error.kind.value if isinstance(cached, Err) else "empty",
        )
        fetched = await self.fetcher.fetch_all()
        if isinstance(fetched, Err):
            return fetched
        CATALOG_LOOKUPS.labels(source="remote").inc()
        await self.cache.save_all(fetched.value)
        return fetched

    async def get_country_by_code(self, code: str) -> Result[Country]:
        """Return the catalog country whose code equals ``code`` exactly.

        Args:
            code: Catalog code; the comparison is case-sensitive.

        Returns:
            Ok with the country, Err ``not_found`` when no code matches, or
            the catalog error.
        """
        countries = await self.get_all_countries()
        if isinstance(countries, Err):
            return countries
        for country in countries.value:
            if country.code == code:
                return Ok(country)
        return result.not_found(f"No country with code {code}")

    async def get_country_by_name(self, name: str) -> Result[Country]:
        """Return the first country, in catalog order, whose name contains ``name``.

        Matching ignores case.
        """
        countries = await self.get_all_countries()
        if isinstance(countries, Err):
            return countries
        needle = name.lower()
        for country in countries.value:
            if needle in country.name.lower():
                return Ok(country)
        return result.not_found(f"No country matching {name!r}")

    async def get_country_by_location(
        self, latitude: float, longitude: float
    ) -> Result[Country]:
        """Resolve coordinates to a code, then look the code up in the catalog.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            Ok with the country, or the resolver or catalog error. The
            catalog is not read when resolution fails.
        """
        resolved = await self.resolver.resolve(
            Location(latitude=latitude, longitude=longitude)
        )
        if isinstance(resolved, Err):
            return resolved
        return await self.get_country_by_code(resolved.value)

    async def get_saved_countries(self) -> Result[list[Country]]:
        """Return the saved list in insertion order; empty when nothing is saved."""
        return await self.cache.load_saved()

    async def save_country(self, country: Country) -> Result[bool]:
        """Add a country to the saved list.

        A full list is rejected here without touching storage; the cache
        repeats the capacity check under its lock and has the final say.
        """
        saved = await self.cache.load_saved()
        if (
            isinstance(saved, Ok)
            and len(saved.value) >= MAX_SAVED_COUNTRIES
            and all(existing.code != country.code for existing in saved.value)
        ):
            logger.info("MAX_SAVED_REACHED", code=country.code)
            return result.max_reached()
        return await self.cache.save(country)

    async def remove_country(self, code: str) -> Result[bool]:
        """Remove ``code`` from the saved list.

        Returns:
            Ok(True) when removed, Ok(False) when it was not saved.
        """
        return await self.cache.remove(code)

    async def seed_saved_countries(
        self,
        location: Location | None = None,
        default_code: str = DEFAULT_COUNTRY_CODE,
    ) -> Result[list[Country]]:
        """Give a first-time user one saved country.

        When the saved list is empty, the country at ``location`` is saved,
        falling back to ``default_code`` if there is no location or it cannot
        be resolved.

        Args:
            location: The user's current position, if known.
            default_code: Catalog code used when the location is unusable.

        Returns:
            The saved list after seeding, or the error that prevented it.
        """
        saved = await self.get_saved_countries()
        if isinstance(saved, Err) or saved.value:
            return saved

        country: Result[Country] = result.location_denied("No location provided")
        if location is not None:
            country = await self.get_country_by_location(
                location.latitude, location.longitude
            )
        if isinstance(country, Err):
            logger.info(
                "SEED_DEFAULT_COUNTRY",
                code=default_code,
                reason=country.error.kind.value,
            )
            country = await self.get_country_by_code(default_code)
            if isinstance(country, Err):
                return country

        stored = await self.save_country(country.value)
        if isinstance(stored, Err):
            return stored
        return await self.get_saved_countries()


def build_directory(
    http_client: httpx.AsyncClient,
    redis_client,
    *,
    catalog_url: str = CATALOG_URL,
    geocoder_url: str = GEOCODER_URL,
    catalog_ttl_s: int = CATALOG_TTL_S,
) -> CountryDirectory:
    """Compose a directory from explicitly constructed clients."""
    return CountryDirectory(
        cache=CountriesCache(redis_client, catalog_ttl_s=catalog_ttl_s),
        fetcher=CatalogFetcher(http_client, url=catalog_url),
        resolver=CoordinateResolver(NominatimGeocoder(http_client, url=geocoder_url)),
    )
