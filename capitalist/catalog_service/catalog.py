"""Remote country catalog retrieval."""

import httpx
from pydantic import ValidationError

from capitalist.config import CATALOG_URL
from capitalist.logging_config import logger
from capitalist.models import result
from capitalist.models.country import Country, decode_countries
from capitalist.models.result import Ok, Result


class CatalogFetcher:
    """Fetch the full catalog from the remote source in a single request.

    No retries are attempted; a failed request is reported straight back
    to the caller.
    """

    def __init__(self, client: httpx.AsyncClient, url: str = CATALOG_URL):
        self.client = client
        self.url = url

    def _catalog_url(self) -> httpx.URL | None:
        try:
            url = httpx.URL(self.url)
        except httpx.InvalidURL:
            return None
        if url.scheme not in ("http", "https") or not url.host:
            return None
        return url

    async def fetch_all(self) -> Result[list[Country]]:
        """Download and decode every country in the catalog.

        Returns:
            Ok with the decoded countries, or Err with ``invalid`` for a bad
            URL or payload and ``network`` for transport or status failures.
        """
        url = self._catalog_url()
        if url is None:
            logger.error("CATALOG_BAD_URL", url=self.url)
            return result.invalid(f"Invalid catalog URL: {self.url}")

        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            logger.error("CATALOG_REQUEST_FAILED", url=str(url), error=str(exc))
            return result.network(str(exc) or exc.__class__.__name__)

        logger.info("CATALOG_RESPONSE", url=str(url), status=response.status_code)
        if not 200 <= response.status_code <= 299:
            logger.error("CATALOG_BAD_STATUS", url=str(url), status=response.status_code)
            return result.network(f"Invalid response: {response.status_code}")

        try:
            countries = decode_countries(response.content)
        except ValidationError as exc:
            logger.error("CATALOG_BAD_PAYLOAD", url=str(url), error=str(exc))
            return result.invalid("Catalog payload could not be decoded")
        return Ok(countries)
