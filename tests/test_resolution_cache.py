import json

import pytest

from geo_region.config import Settings
from geo_region.errors import FetchError
from geo_region.models.common import GeoLocation, GeoStatus
from geo_region.models.request_models import HeaderSource
from geo_region.resolution_cache import get_or_resolve
from geo_region.session_store import InMemorySessionStore
from tests.common import RecordingGeolocationClient

TEXAS = GeoLocation(status=GeoStatus.success, country_code="US", region_name="Texas", city="Austin")
STORED = '{"status":"success","countryCode":"US","regionName":"Texas","city":"Houston"}'


@pytest.mark.asyncio
async def test_cache_hit_makes_no_backend_call() -> None:
    session = InMemorySessionStore({"geo_location": STORED})
    client = RecordingGeolocationClient(TEXAS)

    result = await get_or_resolve(session, HeaderSource(remote_addr="8.8.8.8"), client, Settings())

    assert client.calls == []
    assert result.region_name == "Texas"
    assert result.city == "Houston"


@pytest.mark.asyncio
async def test_cache_miss_resolves_and_stores() -> None:
    session = InMemorySessionStore()
    client = RecordingGeolocationClient(TEXAS)
    settings = Settings(api_key="k")

    result = await get_or_resolve(
        session,
        HeaderSource(headers={"X-Forwarded-For": "9.9.9.9, 10.0.0.1"}, remote_addr="203.0.113.7"),
        client,
        settings,
    )

    assert result == TEXAS
    assert client.calls == [("9.9.9.9", settings)]
    assert json.loads(session.get("geo_location")) == {
        "status": "success",
        "countryCode": "US",
        "regionName": "Texas",
        "city": "Austin",
    }


@pytest.mark.asyncio
async def test_second_call_in_session_uses_stored_result() -> None:
    session = InMemorySessionStore()
    client = RecordingGeolocationClient(TEXAS)
    source = HeaderSource(remote_addr="8.8.8.8")

    first = await get_or_resolve(session, source, client, Settings())
    second = await get_or_resolve(session, source, client, Settings())

    assert first == second
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_fetch_error_is_absorbed_into_fallback() -> None:
    session = InMemorySessionStore()
    client = RecordingGeolocationClient(FetchError.network("timed out"))

    result = await get_or_resolve(session, HeaderSource(remote_addr="8.8.8.8"), client, Settings())

    assert (result.status, result.country_code, result.region_name, result.city) == (
        GeoStatus.success,
        "US",
        "California",
        "Los Angeles",
    )
    assert session.has("geo_location")


@pytest.mark.asyncio
async def test_disallowed_region_is_normalized_before_storing() -> None:
    session = InMemorySessionStore()
    florida = GeoLocation(status="success", country_code="US", region_name="Florida", city="Miami")

    result = await get_or_resolve(
        session, HeaderSource(remote_addr="8.8.8.8"), RecordingGeolocationClient(florida), Settings()
    )

    assert (result.region_name, result.city) == ("California", "Los Angeles")
    assert GeoLocation.model_validate_json(session.get("geo_location")) == result


@pytest.mark.asyncio
@pytest.mark.parametrize("stored", ["", "not-json", '{"status": "unknown"}'])
async def test_unusable_stored_value_is_treated_as_miss(stored: str) -> None:
    session = InMemorySessionStore({"geo_location": stored})
    client = RecordingGeolocationClient(TEXAS)

    result = await get_or_resolve(session, HeaderSource(remote_addr="8.8.8.8"), client, Settings())

    assert result == TEXAS
    assert len(client.calls) == 1
    assert session.get("geo_location") == TEXAS.to_json()


@pytest.mark.asyncio
async def test_loopback_client_is_looked_up_with_fallback_ip() -> None:
    client = RecordingGeolocationClient(TEXAS)

    await get_or_resolve(
        InMemorySessionStore(),
        HeaderSource(remote_addr="127.0.0.1"),
        client,
        Settings(),
        fallback_ip="192.0.2.10",
    )

    assert client.calls[0][0] == "192.0.2.10"


@pytest.mark.asyncio
async def test_custom_cache_key() -> None:
    session = InMemorySessionStore()

    await get_or_resolve(
        session, HeaderSource(remote_addr="8.8.8.8"), RecordingGeolocationClient(TEXAS), Settings(), cache_key="geo"
    )

    assert session.has("geo")
    assert not session.has("geo_location")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "stored",
    [
        '{"status":"fail"}',
        '{"status":"success","countryCode":"DE","regionName":"Berlin","city":"Berlin"}',
        '{"status":"success","countryCode":"US","regionName":"Florida","city":"Miami"}',
    ],
)
async def test_stored_value_outside_policy_is_normalized_without_backend_call(stored: str) -> None:
    """The cookie comes from the client, so a hit is normalized like a fresh lookup."""
    client = RecordingGeolocationClient(TEXAS)

    result = await get_or_resolve(
        InMemorySessionStore({"geo_location": stored}), HeaderSource(remote_addr="8.8.8.8"), client, Settings()
    )

    assert client.calls == []
    assert result.status == GeoStatus.success
    assert (result.country_code, result.region_name, result.city) == ("US", "California", "Los Angeles")
