import httpx
import pytest

from store_locator.core.exceptions.errors import (
    ConfigurationError,
    ProviderError,
    TransientIOError,
)
from store_locator.services.places import GooglePlacesClient

GEOCODE_OK = {
    "status": "OK",
    "results": [{"geometry": {"location": {"lat": -1.2921, "lng": 36.8219}}}],
}

TEXT_SEARCH_OK = {
    "status": "OK",
    "results": [
        {
            "place_id": "abc123",
            "name": "Tech Hub",
            "formatted_address": "Moi Ave, Nairobi, Kenya",
            "geometry": {"location": {"lat": -1.283, "lng": 36.823}},
            "types": ["electronics_store", "store"],
            "rating": 4.2,
        }
    ],
}


def make_client(handler, api_key="test-key") -> GooglePlacesClient:
    return GooglePlacesClient(
        api_key=api_key, timeout=1.0, transport=httpx.MockTransport(handler)
    )


def routed(responses: dict, seen: list | None = None):
    """Handler answering by URL path suffix and recording each request."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        for suffix, payload in responses.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(404)

    return handler


async def test_search_places_geocodes_then_searches_nearby():
    seen = []
    client = make_client(
        routed(
            {"/geocode/json": GEOCODE_OK, "/textsearch/json": TEXT_SEARCH_OK}, seen
        )
    )

    places = await client.search_places("laptop", "Nairobi", radius=2000)
    await client.close()

    assert len(places) == 1
    place = places[0]
    assert place.place_id == "abc123"
    assert place.coordinates.lat == -1.283
    assert place.types == ["electronics_store", "store"]

    search_request = seen[-1]
    assert search_request.url.params["query"] == "laptop"
    assert search_request.url.params["location"] == "-1.2921,36.8219"
    assert search_request.url.params["radius"] == "2000"
    assert search_request.url.params["key"] == "test-key"


async def test_search_places_falls_back_to_text_query_when_geocoding_finds_nothing():
    seen = []
    client = make_client(
        routed(
            {
                "/geocode/json": {"status": "ZERO_RESULTS", "results": []},
                "/textsearch/json": TEXT_SEARCH_OK,
            },
            seen,
        )
    )

    await client.search_places("laptop", "Atlantis")

    params = seen[-1].url.params
    assert params["query"] == "laptop in Atlantis"
    assert "location" not in params


async def test_zero_results_is_an_empty_list():
    client = make_client(
        routed(
            {
                "/geocode/json": GEOCODE_OK,
                "/textsearch/json": {"status": "ZERO_RESULTS", "results": []},
            }
        )
    )

    assert await client.search_places("unicorn", "Nairobi") == []


async def test_non_ok_status_raises_provider_error():
    client = make_client(
        routed(
            {
                "/geocode/json": GEOCODE_OK,
                "/textsearch/json": {"status": "OVER_QUERY_LIMIT", "results": []},
            }
        )
    )

    with pytest.raises(ProviderError) as exc_info:
        await client.search_places("laptop", "Nairobi")

    assert exc_info.value.provider_status == "OVER_QUERY_LIMIT"


async def test_http_error_raises_provider_error():
    client = make_client(lambda request: httpx.Response(500))

    with pytest.raises(ProviderError):
        await client.get_place_details("abc123")


async def test_missing_api_key_raises_configuration_error():
    calls = []
    client = make_client(routed({}, calls), api_key=None)

    assert client.is_configured() is False
    with pytest.raises(ConfigurationError):
        await client.search_places("laptop", "Nairobi")
    assert calls == []


async def test_timeout_raises_transient_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(handler)

    with pytest.raises(TransientIOError):
        await client.search_places("laptop", "Nairobi")


async def test_connection_failure_raises_transient_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(TransientIOError):
        await client.get_place_details("abc123")


async def test_place_details():
    seen = []
    client = make_client(
        routed(
            {
                "/details/json": {
                    "status": "OK",
                    "result": {
                        "formatted_phone_number": "020 123 4567",
                        "website": "https://techhub.example",
                        "opening_hours": {"open_now": True, "weekday_text": ["Mon: 9-5"]},
                    },
                }
            },
            seen,
        )
    )

    details = await client.get_place_details("abc123")

    assert details.formatted_phone_number == "020 123 4567"
    assert details.website == "https://techhub.example"
    assert details.opening_hours.open_now is True
    assert seen[0].url.params["place_id"] == "abc123"


async def test_place_details_not_found_raises_provider_error():
    client = make_client(routed({"/details/json": {"status": "NOT_FOUND"}}))

    with pytest.raises(ProviderError):
        await client.get_place_details("missing")
