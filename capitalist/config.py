"""Environment-driven settings."""

import os

REDIS_HOST = os.getenv("REDIS_HOST", "redis")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

CATALOG_URL = os.getenv(
    "CATALOG_URL",
    "https://restcountries.com/v2/all?fields=name,alpha3Code,capital,latlng,currencies",
)
CATALOG_TTL_S = int(os.getenv("CATALOG_TTL", "0"))

GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")

HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT", "10"))
HTTP_USER_AGENT = os.getenv("HTTP_USER_AGENT", "capitalist/0.1")

DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "FRA")

LOG_JSON = os.getenv("LOG_JSON", "1") not in ("0", "false", "False")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
