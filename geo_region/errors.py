from enum import Enum

from pydantic import BaseModel, ConfigDict


class FetchErrorKind(str, Enum):
    """Failure classes reported by a geolocation backend."""

    network_failure = "network_failure"
    parse_failure = "parse_failure"


class FetchError(BaseModel):
    """Failed geolocation lookup, returned as a value instead of raised.

    Every failure converges to the same fallback location, so callers consume
    this explicitly rather than catching exceptions around the lookup.
    """

    model_config = ConfigDict(frozen=True)

    kind: FetchErrorKind
    message: str

    @classmethod
    def network(cls, message: str) -> "FetchError":
        return cls(kind=FetchErrorKind.network_failure, message=message)

    @classmethod
    def parse(cls, message: str) -> "FetchError":
        return cls(kind=FetchErrorKind.parse_failure, message=message)
