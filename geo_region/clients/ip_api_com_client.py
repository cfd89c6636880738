from http import HTTPStatus
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from geo_region.clients.base import BaseGeolocationClient, FetchResult
from geo_region.config import FREE_BASE_URL, PRIMARY_BASE_URL, Settings
from geo_region.errors import FetchError
from geo_region.logger import logger
from geo_region.models.common import GeoLocation

FIELDS = ("status", "message", "countryCode", "regionName", "city")


class IpApiCom(BaseGeolocationClient):
    """Client for the ip-api.com JSON API.

    With an API key the paid endpoint (pro.ip-api.com) is used, otherwise the
    free one. Only the fields needed for region targeting are requested.
    """

    def __init__(
        self,
        primary_base_url: str = PRIMARY_BASE_URL,
        free_base_url: str = FREE_BASE_URL,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._primary_base_url = primary_base_url.rstrip("/")
        self._free_base_url = free_base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    def build_url(self, ip: str, settings: Settings) -> str:
        """Build the lookup URL, picking the endpoint by API key presence."""
        fields = ",".join(FIELDS)
        if settings.has_api_key:
            return f"{self._primary_base_url}/{ip}?fields={fields}&key={quote(settings.api_key, safe='')}"
        return f"{self._free_base_url}/{ip}?fields={fields}"

    async def fetch_location(self, ip: str, settings: Settings) -> FetchResult:
        """Perform a single lookup and parse the response.

        A new AsyncClient is opened for every call, so no connection is reused
        between lookups.
        """
        url = self.build_url(ip, settings)
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.get(url)
        except httpx.RequestError as exc:
            logger.error(f"Request to geolocation provider failed ip={ip} error={repr(exc)}")
            return FetchError.network(f"Request to geolocation provider failed: {repr(exc)}")

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            # ip-api.com still sends a status/message body with most error codes.
            logger.warning(f"Geolocation provider returned HTTP {response.status_code} ip={ip}")

        return self._parse_location(response, ip)

    @staticmethod
    def _parse_location(response: httpx.Response, ip: str) -> FetchResult:
        if not response.text.strip():
            logger.error(f"Empty response from geolocation provider ip={ip}")
            return FetchError.parse("Empty response from geolocation provider")

        try:
            data: Any = response.json()
        except ValueError as exc:
            logger.error(f"Failed to decode geolocation response as JSON ip={ip} error={exc}")
            return FetchError.parse(f"Failed to decode geolocation response as JSON: {exc}")

        if not isinstance(data, dict):
            return FetchError.parse(f"Unexpected geolocation payload type: {type(data).__name__}")

        try:
            return GeoLocation.model_validate(data)
        except ValidationError as exc:
            logger.error(f"Invalid geolocation payload ip={ip} errors={exc.errors()}")
            return FetchError.parse(f"Invalid geolocation payload: {exc}")
