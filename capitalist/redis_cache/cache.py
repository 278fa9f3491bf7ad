"""Redis persistence for the country catalog snapshot and the saved list."""

import asyncio

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from capitalist.logging_config import logger
from capitalist.models import result
from capitalist.models.country import (
    MAX_SAVED_COUNTRIES,
    Country,
    decode_countries,
    encode_countries,
)
from capitalist.models.result import Err, ErrorKind, Ok, Result

ALL_COUNTRIES_KEY = "allCountries"
SAVED_COUNTRIES_KEY = "savedCountries"


class CountriesCache:
    """Cache wrapper for the catalog snapshot and the user's saved countries.

    Every public method holds the same lock, so read-modify-write cycles on
    the saved list never interleave.
    """

    def __init__(self, client, catalog_ttl_s: int = 0):
        self.redis_client: Redis = client
        self.catalog_ttl_s = catalog_ttl_s
        self._lock = asyncio.Lock()

    async def save_all(self, countries: list[Country]) -> None:
        """Overwrite the catalog snapshot.

        Failures are logged and dropped; losing the snapshot only costs a refetch.

        Args:
            countries: Full catalog to store.
        """
        async with self._lock:
            try:
                ttl = self.catalog_ttl_s if self.catalog_ttl_s > 0 else None
                await self.redis_client.set(
                    ALL_COUNTRIES_KEY, encode_countries(countries), ex=ttl
                )
            except (RedisError, ValueError) as exc:
                logger.error("REDIS_SAVE_ALL_FAILED", error=str(exc))

    async def load_all(self) -> Result[list[Country]]:
        """Read the catalog snapshot.

        Returns:
            Ok with the stored countries, Err ``not_found`` when nothing is
            stored, ``invalid`` when the stored value does not decode.
        """
        async with self._lock:
            return await self._read(ALL_COUNTRIES_KEY, missing=result.not_found())

    async def load_saved(self) -> Result[list[Country]]:
        """Read the saved list; an absent list is an empty success."""
        async with self._lock:
            return await self._load_saved()

    async def save(self, country: Country) -> Result[bool]:
        """Append a country to the saved list.

        Args:
            country: Country to add.

        Returns:
            Ok(True) when added, Ok(False) when already present, Err
            ``max_reached`` when the list is full. An undecodable list is
            replaced by this country alone; other load failures are returned
            unchanged.
        """
        async with self._lock:
            loaded = await self._load_saved()
            if isinstance(loaded, Err):
                if loaded.kind != ErrorKind.invalid:
                    return loaded
                # Undecodable list: start over with just this country.
                logger.warning(
                    "SAVED_LIST_RESET", code=country.code, error=loaded.error.kind.value
                )
                return await self._write_saved([country])

            countries = loaded.value
            if any(saved.code == country.code for saved in countries):
                return Ok(False)
            if len(countries) >= MAX_SAVED_COUNTRIES:
                logger.info("MAX_SAVED_REACHED", code=country.code)
                return result.max_reached()

            written = await self._write_saved([*countries, country])
            if written.ok:
                logger.info("SAVED_COUNTRY_ADDED", code=country.code)
            return written

    async def remove(self, code: str) -> Result[bool]:
        """Drop a country from the saved list.

        Args:
            code: Code of the country to remove.

        Returns:
            Ok(True) when removed, Ok(False) when the code was not saved, or
            the load failure unchanged.
        """
        async with self._lock:
            loaded = await self._load_saved()
            if isinstance(loaded, Err):
                return loaded

            remaining = [saved for saved in loaded.value if saved.code != code]
            if len(remaining) == len(loaded.value):
                return Ok(False)

            written = await self._write_saved(remaining)
            if written.ok:
                logger.info("SAVED_COUNTRY_REMOVED", code=code)
            return written

    async def _load_saved(self) -> Result[list[Country]]:
        return await self._read(SAVED_COUNTRIES_KEY, missing=Ok([]))

    async def _read(self, key: str, missing: Result[list[Country]]) -> Result[list[Country]]:
        try:
            raw = await self.redis_client.get(key)
        except UnicodeDecodeError as exc:
            logger.error("REDIS_BAD_PAYLOAD", key=key, error=str(exc))
            return result.invalid(f"Stored value for {key} could not be decoded")
        except RedisError as exc:
            logger.error("REDIS_GET_FAILED", key=key, error=str(exc))
            return result.network(str(exc))
        if raw is None:
            return missing
        try:
            return Ok(decode_countries(raw))
        except ValidationError as exc:
            logger.error("REDIS_BAD_PAYLOAD", key=key, error=str(exc))
            return result.invalid(f"Stored value for {key} could not be decoded")

    async def _write_saved(self, countries: list[Country]) -> Result[bool]:
        try:
            payload = encode_countries(countries)
        except ValueError as exc:
            logger.error("SAVED_ENCODE_FAILED", error=str(exc))
            return result.invalid("Saved countries could not be encoded")
        try:
            await self.redis_client.set(SAVED_COUNTRIES_KEY, payload)
        except RedisError as exc:
            logger.error("REDIS_SAVE_SAVED_FAILED", error=str(exc))
            return result.network(str(exc))
        return Ok(True)
