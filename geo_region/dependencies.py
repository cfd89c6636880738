from typing import Annotated

from fastapi import Depends, Request, Response

from geo_region.clients.base import BaseGeolocationClient
from geo_region.clients.ip_api_com_client import IpApiCom
from geo_region.config import GeoRegionConfig, get_config
from geo_region.models.common import GeoLocation
from geo_region.models.request_models import HeaderSource
from geo_region.resolution_cache import get_or_resolve
from geo_region.session_store import CookieSessionStore


def get_geolocation_client(config: Annotated[GeoRegionConfig, Depends(get_config)]) -> BaseGeolocationClient:
    """Dependency to provide the configured geolocation backend."""
    return IpApiCom(
        primary_base_url=config.primary_base_url,
        free_base_url=config.free_base_url,
        timeout_seconds=config.timeout_seconds,
    )


async def resolve_geo_location(
    request: Request,
    response: Response,
    config: Annotated[GeoRegionConfig, Depends(get_config)],
    client: Annotated[BaseGeolocationClient, Depends(get_geolocation_client)],
) -> GeoLocation:
    """Dependency resolving the visitor's location for the current request.

    Mount it on any route of the host application:

        @app.get("/")
        async def index(location: Annotated[GeoLocation, Depends(resolve_geo_location)]): ...

    The result is stored in a session cookie on the route's response, so later
    requests from the same browser skip the upstream lookup.

    FastAPI only copies cookies from the injected `response` when the route
    returns plain data. A route that returns its own Response object (e.g.
    HTMLResponse, RedirectResponse) drops the cookie, and every request from
    that route re-resolves; such routes must copy the `set-cookie` header
    themselves.
    """
    ip_source = HeaderSource(
        headers=dict(request.headers),
        remote_addr=request.client.host if request.client else None,
    )
    return await get_or_resolve(
        CookieSessionStore(request, response),
        ip_source,
        client,
        config.settings(),
        policy=config.region_policy(),
        cache_key=config.cookie_name,
        cookie_path=config.cookie_path,
        fallback_ip=config.loopback_fallback_ip,
        default_remote_addr=config.default_remote_addr,
    )
