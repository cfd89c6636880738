import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeoStatus(str, Enum):
    """Lookup status as reported by ip-api.com."""

    success = "success"
    fail = "fail"


class GeoLocation(BaseModel):
    """Geolocation data for one client IP.

    Field aliases follow the ip-api.com response (and the stored cookie value),
    so the same model parses the upstream body and the cached entry. ip-api.com
    omits the location fields when `status` is "fail", hence the empty defaults.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: GeoStatus
    country_code: str = Field(default="", alias="countryCode")
    region_name: str = Field(default="", alias="regionName")
    city: str = ""
    message: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("country_code", "region_name", "city", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_success(self) -> bool:
        return self.status == GeoStatus.success

    def to_json(self) -> str:
        """Compact JSON with the ip-api.com field names, used as the cookie value.

        Non-ASCII characters are escaped, cookie headers are latin-1 encoded.
        """
        return json.dumps(self.model_dump(mode="json", by_alias=True, exclude_none=True), separators=(",", ":"))


FALLBACK_LOCATION = GeoLocation(
    status=GeoStatus.success,
    country_code="US",
    region_name="California",
    city="Los Angeles",
)
