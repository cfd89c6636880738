from pydantic import ValidationError

from geo_region.clients.base import BaseGeolocationClient
from geo_region.config import GEO_COOKIE_NAME, Settings
from geo_region.ip_extractor import DEFAULT_REMOTE_ADDR, LOOPBACK_FALLBACK_IP
from geo_region.logger import logger
from geo_region.models.common import GeoLocation
from geo_region.models.request_models import HeaderSource
from geo_region.normalizer import DEFAULT_POLICY, RegionPolicy, normalize
from geo_region.session_store import SessionStore


def _load_cached(session: SessionStore, cache_key: str) -> GeoLocation | None:
    if not session.has(cache_key):
        return None

    stored = session.get(cache_key)
    if not stored:
        return None

    try:
        return GeoLocation.model_validate_json(stored)
    except ValidationError as exc:
        logger.warning(f"Discarding unreadable cached location key={cache_key} errors={exc.errors()}")
        return None


async def get_or_resolve(
    session: SessionStore,
    ip_source: HeaderSource,
    client: BaseGeolocationClient,
    settings: Settings,
    *,
    policy: RegionPolicy = DEFAULT_POLICY,
    cache_key: str = GEO_COOKIE_NAME,
    cookie_path: str = "/",
    fallback_ip: str = LOOPBACK_FALLBACK_IP,
    default_remote_addr: str = DEFAULT_REMOTE_ADDR,
) -> GeoLocation:
    """Return the visitor's location, resolving it at most once per session.

    - A readable location already stored on the session is returned without
      calling the backend. The stored value comes from the client, so it is
      run through the normalizer again; valid entries come back unchanged.
    - Otherwise the client IP is extracted, looked up, normalized and stored on
      the session before being returned.

    Lookup failures end up as the policy's fallback location; nothing is raised.
    """
    cached = _load_cached(session, cache_key)
    if cached is not None:
        logger.debug(f"Location cache hit key={cache_key}")
        return normalize(cached, policy)

    ip = ip_source.client_ip(fallback_ip=fallback_ip, default_remote_addr=default_remote_addr)
    logger.info(f"Location cache miss, resolving ip={ip} key={cache_key}")

    raw = await client.fetch_location(ip, settings)
    location = normalize(raw, policy)

    session.set(cache_key, location.to_json(), path=cookie_path)
    return location
