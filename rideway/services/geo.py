import asyncio
import ipaddress
import logging
from typing import Iterable, Optional

import aiohttp
from pydantic import BaseModel
from rideway.core.constants import COUNTRY_NAMES

logger = logging.getLogger(__name__)

DEFAULT_RESTRICTED_COUNTRIES = frozenset(COUNTRY_NAMES)
GEO_FIELDS = "status,message,country,countryCode,city,query"


class LocationServiceError(Exception):
    """The geo-IP lookup could not resolve an address."""


class GeoLocation(BaseModel):
    country: str
    country_code: str
    city: str
    ip: str


def is_country_restricted(country_code: Optional[str], restricted: Optional[Iterable[str]] = None) -> bool:
    """
    Checks an ISO 2-letter code against the restricted set, case-insensitively.
    A missing code is treated as not restricted.
    """
    if not country_code or not country_code.strip():
        logger.warning("Country code is missing, allowing request")
        return False

    codes = DEFAULT_RESTRICTED_COUNTRIES if restricted is None else {c.upper() for c in restricted}
    normalized = country_code.strip().upper()
    restricted_hit = normalized in codes
    logger.info(
        "Country restriction check: %s (%s) - restricted: %s",
        normalized,
        COUNTRY_NAMES.get(normalized, "Unknown"),
        restricted_hit,
    )
    return restricted_hit


class GeoRestrictionChecker:
    def __init__(self, restricted: Optional[Iterable[str]] = None):
        source = DEFAULT_RESTRICTED_COUNTRIES if restricted is None else restricted
        self.restricted = frozenset(code.strip().upper() for code in source if code.strip())
        logger.info(
            "Initialized restricted countries: %s",
            ", ".join(
                f"{code}: {COUNTRY_NAMES.get(code, 'Unknown')}" for code in sorted(self.restricted)
            ),
        )

    def is_restricted(self, country_code: Optional[str]) -> bool:
        return is_country_restricted(country_code, self.restricted)


def _is_public_address(ip: str) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_global


class GeoLocationService:
    """Resolves an IP address to country/city data through the ip-api.com JSON endpoint."""

    def __init__(self, api_url: str = "http://ip-api.com/json", timeout: float = 5.0):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def get_user_location(self, ip: str) -> GeoLocation:
        # Private and loopback addresses cannot be resolved; the service then
        # looks up the public address the request comes from.
        url = f"{self.api_url}/{ip}" if ip and _is_public_address(ip) else self.api_url
        logger.debug("Fetching geolocation for IP: %s", ip)

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params={"fields": GEO_FIELDS}) as resp:
                    if resp.status != 200:
                        raise LocationServiceError(f"Geolocation service answered {resp.status}")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Geolocation service error: %s", e)
            raise LocationServiceError("Failed to fetch location data") from e

        if not data or data.get("status") == "fail":
            logger.error("Invalid geolocation response: %s", data)
            raise LocationServiceError(f"Invalid geolocation response: {data}")

        return GeoLocation(
            country=data.get("country") or "Unknown",
            country_code=data.get("countryCode") or "XX",
            city=data.get("city") or "Unknown",
            ip=data.get("query") or ip,
        )
