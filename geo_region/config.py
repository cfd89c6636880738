from functools import lru_cache
from typing import Protocol

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from geo_region.ip_extractor import DEFAULT_REMOTE_ADDR, LOOPBACK_FALLBACK_IP
from geo_region.models.common import GeoLocation, GeoStatus
from geo_region.normalizer import RegionPolicy

PRIMARY_BASE_URL = "http://pro.ip-api.com/json"
FREE_BASE_URL = "http://ip-api.com/json"
GEO_COOKIE_NAME = "geo_location"


class SettingsProvider(Protocol):
    """Anything that can hand out the geolocation API key."""

    def get_api_key(self) -> str | None: ...


class Settings(BaseModel):
    """Read-only snapshot of the settings the lookup depends on."""

    model_config = ConfigDict(frozen=True)

    api_key: str | None = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_provider(cls, provider: SettingsProvider) -> "Settings":
        return cls(api_key=provider.get_api_key() or None)


class GeoRegionConfig(BaseSettings):
    """Environment-driven configuration, read from GEOIP_* variables or .env."""

    model_config = SettingsConfigDict(env_prefix="GEOIP_", env_file=".env", extra="ignore")

    api_key: str = ""
    primary_base_url: str = PRIMARY_BASE_URL
    free_base_url: str = FREE_BASE_URL
    timeout_seconds: float = 5.0

    cookie_name: str = GEO_COOKIE_NAME
    cookie_path: str = "/"

    loopback_fallback_ip: str = LOOPBACK_FALLBACK_IP
    default_remote_addr: str = DEFAULT_REMOTE_ADDR

    # Region targeting: US visitors outside allowed_regions, and everyone the
    # lookup fails for, are pinned to the fallback region/city.
    allowed_country_code: str = "US"
    allowed_regions: list[str] = ["California", "Texas"]
    fallback_region_name: str = "California"
    fallback_city: str = "Los Angeles"

    def get_api_key(self) -> str | None:
        return self.api_key.strip() or None

    def settings(self) -> Settings:
        return Settings.from_provider(self)

    def region_policy(self) -> RegionPolicy:
        return RegionPolicy(
            allowed_country_code=self.allowed_country_code,
            allowed_regions=tuple(self.allowed_regions),
            fallback=GeoLocation(
                status=GeoStatus.success,
                country_code=self.allowed_country_code,
                region_name=self.fallback_region_name,
                city=self.fallback_city,
            ),
        )


@lru_cache
def get_config() -> GeoRegionConfig:
    return GeoRegionConfig()
