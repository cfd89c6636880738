from abc import ABC, abstractmethod

from geo_region.config import Settings
from geo_region.errors import FetchError
from geo_region.models.common import GeoLocation

FetchResult = GeoLocation | FetchError


class BaseGeolocationClient(ABC):
    """Abstract base for all geolocation backends.

    Implementations make a single attempt per call and report failures as a
    FetchError value; they never raise for network or parsing problems.
    """

    @abstractmethod
    async def fetch_location(self, ip: str, settings: Settings) -> FetchResult:
        """Look up geolocation information for an explicit IP address."""
        raise NotImplementedError
