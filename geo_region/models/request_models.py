from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geo_region.ip_extractor import DEFAULT_REMOTE_ADDR, LOOPBACK_FALLBACK_IP, resolve_client_ip


class HeaderSource(BaseModel):
    """Request headers plus the socket peer address of one incoming request.

    Header names are stored lower-cased so lookups do not depend on how the
    host framework spells them.
    """

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str] = Field(default_factory=dict)
    remote_addr: str | None = None

    @field_validator("headers", mode="before")
    @classmethod
    def _lower_header_names(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if not value:
            return {}
        return {str(name).lower(): str(header_value) for name, header_value in value.items()}

    def client_ip(
        self,
        fallback_ip: str = LOOPBACK_FALLBACK_IP,
        default_remote_addr: str = DEFAULT_REMOTE_ADDR,
    ) -> str:
        return resolve_client_ip(
            self.headers,
            self.remote_addr,
            fallback_ip=fallback_ip,
            default_remote_addr=default_remote_addr,
        )
