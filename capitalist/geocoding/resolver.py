"""Coordinate to country-code resolution."""

from typing import Protocol

import httpx

from capitalist.config import GEOCODER_URL
from capitalist.logging_config import logger
from capitalist.models import result
from capitalist.models.country import Location
from capitalist.models.result import Ok, Result


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None: ...


class NominatimGeocoder:
    """Reverse geocoder backed by a Nominatim-compatible ``/reverse`` endpoint."""

    def __init__(self, client: httpx.AsyncClient, url: str = GEOCODER_URL):
        self.client = client
        self.url = url

    async def reverse_geocode(self, latitude: float, longitude: float) -> str | None:
        """Return the country code at the given coordinates.

        The ISO alpha-3 extratag is preferred since catalog codes are alpha-3;
        the alpha-2 address code is used when the tag is missing.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            The upper-cased country code, or None when nothing was found.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses.
        """
        response = await self.client.get(
            self.url,
            params={
                "format": "jsonv2",
                "lat": latitude,
                "lon": longitude,
                "zoom": 3,
                "addressdetails": 1,
                "extratags": 1,
            },
        )
        logger.info(
            "GEOCODE_RESPONSE",
            latitude=latitude,
            longitude=longitude,
            status=response.status_code,
        )
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict) or "error" in data:
            return None
        alpha3 = (data.get("extratags") or {}).get("ISO3166-1:alpha3")
        if alpha3:
            return alpha3.upper()
        alpha2 = (data.get("address") or {}).get("country_code")
        return alpha2.upper() if alpha2 else None


class CoordinateResolver:
    """Map a location to a country code with a single geocoder attempt."""

    def __init__(self, geocoder: ReverseGeocoder):
        self.geocoder = geocoder

    async def resolve(self, location: Location) -> Result[str]:
        """Ask the geocoder once for the country code at ``location``.

        Args:
            location: Coordinates to resolve.

        Returns:
            Ok with an upper-case country code, Err ``location_denied`` when
            the geocoder call fails, or ``not_found`` when it has no answer.
        """
        try:
            code = await self.geocoder.reverse_geocode(location.latitude, location.longitude)
        except Exception as exc:
            logger.error(
                "GEOCODE_FAILED",
                latitude=location.latitude,
                longitude=location.longitude,
                error=str(exc),
            )
            return result.location_denied(str(exc))
        if not code:
            logger.info(
                "GEOCODE_NO_RESULT",
                latitude=location.latitude,
                longitude=location.longitude,
            )
            return result.not_found()
        return Ok(code)
