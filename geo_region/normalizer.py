"""Region targeting rules applied to every geolocation lookup.

Traffic is forced onto a small allow-list of US regions: failed lookups and
non-US visitors get the fallback location, US visitors from any other region
keep their country but are moved to the fallback region and city.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from geo_region.errors import FetchError
from geo_region.logger import logger
from geo_region.models.common import FALLBACK_LOCATION, GeoLocation


class FallbackReason(str, Enum):
    fetch_error = "fetch_error"
    upstream_status = "upstream_status"
    disallowed_country = "disallowed_country"
    disallowed_region = "disallowed_region"


class RegionPolicy(BaseModel):
    """Allow-list and fallback location used by `normalize`."""

    model_config = ConfigDict(frozen=True)

    allowed_country_code: str = "US"
    allowed_regions: tuple[str, ...] = ("California", "Texas")
    fallback: GeoLocation = FALLBACK_LOCATION


DEFAULT_POLICY = RegionPolicy()


def normalize(raw: GeoLocation | FetchError, policy: RegionPolicy = DEFAULT_POLICY) -> GeoLocation:
    """Coerce a lookup result into an allowed location. Never fails."""
    if isinstance(raw, FetchError):
        logger.info(f"Using fallback location reason={FallbackReason.fetch_error.value} error={raw.kind.value}")
        return policy.fallback

    if not raw.is_success:
        logger.info(
            f"Using fallback location reason={FallbackReason.upstream_status.value} "
            f"status={raw.status.value} message={raw.message}"
        )
        return policy.fallback

    if raw.country_code != policy.allowed_country_code:
        logger.info(
            f"Using fallback location reason={FallbackReason.disallowed_country.value} country={raw.country_code}"
        )
        return policy.fallback

    if raw.region_name not in policy.allowed_regions:
        logger.debug(
            f"Moving location to fallback region reason={FallbackReason.disallowed_region.value} "
            f"region={raw.region_name} city={raw.city}"
        )
        return raw.model_copy(
            update={
                "region_name": policy.fallback.region_name,
                "city": policy.fallback.city,
            }
        )

    return raw
