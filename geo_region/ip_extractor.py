from collections.abc import Mapping
from ipaddress import ip_address

from geo_region.logger import logger

DEFAULT_REMOTE_ADDR = "1.1.1.1"
# Public IP used whenever the request comes from loopback (local/dev setups).
LOOPBACK_FALLBACK_IP = "24.176.217.66"

# Applied in order, the last present header wins. X-Forwarded-For is checked
# twice on purpose: it is the final authority.
CLIENT_IP_HEADERS: tuple[str, ...] = (
    "cf-connecting-ip",  # Cloudflare
    "x-real-ip",  # Reblaze
    "x-sucuri-clientip",  # Sucuri
    "x-forwarded-for",  # Ezoic
    "true-client-ip",  # Akamai
    "x-forwarded-for",
)

STRIPPED_FRAGMENTS: tuple[str, ...] = ("::ffff:", ", 127.0.0.1")
LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1"})


def _lookup_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        # Fall back to a case-insensitive scan for plain dicts.
        for header_name, header_value in headers.items():
            if header_name.lower() == name:
                value = header_value
                break
    if not value:
        return None
    return str(value)


def _is_ip_literal(value: str) -> bool:
    try:
        ip_address(value)
    except ValueError:
        return False
    return True


def resolve_client_ip(
    headers: Mapping[str, str],
    remote_addr: str | None,
    *,
    fallback_ip: str = LOOPBACK_FALLBACK_IP,
    default_remote_addr: str = DEFAULT_REMOTE_ADDR,
) -> str:
    """Derive the canonical client IP from the request headers.

    Starts from `remote_addr` (or `default_remote_addr` when it is missing) and
    lets every proxy header in CLIENT_IP_HEADERS override it in turn. The chosen
    value is cleaned of IPv4-mapped prefixes and trailing loopback hops, reduced
    to the first entry of a forwarding chain, and loopback is mapped to
    `fallback_ip`. Never fails: anything that is not an IP literal also ends up
    as `fallback_ip`.
    """
    candidate = remote_addr or default_remote_addr
    for name in CLIENT_IP_HEADERS:
        candidate = _lookup_header(headers, name) or candidate

    for fragment in STRIPPED_FRAGMENTS:
        candidate = candidate.replace(fragment, "")

    if "," in candidate:
        candidate = candidate.split(",")[0]
    candidate = candidate.strip()

    if candidate in LOOPBACK_ADDRESSES:
        return fallback_ip

    if not _is_ip_literal(candidate):
        logger.warning(f"Unusable client IP candidate={candidate!r}, using fallback ip={fallback_ip}")
        return fallback_ip

    return candidate
