from unittest.mock import AsyncMock

import pytest

from main import app
from store_locator.core.dependencies import get_search_orchestrator
from store_locator.db.schemas.store import Coordinates, StoreData
from store_locator.services.result_cache import ResultCache
from store_locator.services.search_orchestrator import SearchOrchestrator

STORE_PAYLOAD = {
    "store_name": "Nairobi Tech Hub",
    "store_type": "electronics",
    "address": "Moi Avenue, Nairobi",
    "country": "Kenya",
    "coordinates": {"lat": -1.2833, "lng": 36.8219},
    "phone": "+254 700 000000",
    "email": "hello@techhub.co.ke",
    "rating": 4.5,
    "tags": ["laptop", "phone"],
}


@pytest.fixture
def fake_orchestrator():
    stores = AsyncMock()
    stores.search.return_value = [
        StoreData(
            id="1",
            store_name="Gadget Galaxy",
            store_type="electronics",
            address="Kenyatta Ave, Nairobi",
            country="Kenya",
            coordinates=Coordinates(lat=-1.28, lng=36.82),
        ),
        StoreData(
            id="2",
            store_name="Laptop Land",
            store_type="computing",
            address="Biashara St, Nairobi",
            country="Kenya",
        ),
    ]
    orchestrator = SearchOrchestrator(
        cache=ResultCache(), stores=stores, places=AsyncMock()
    )
    app.dependency_overrides[get_search_orchestrator] = lambda: orchestrator
    yield orchestrator
    app.dependency_overrides.pop(get_search_orchestrator, None)


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "healthy"
    assert data["data"]["places_configured"] is False


def test_create_store(client):
    response = client.post("/api/v1/stores", json=STORE_PAYLOAD)
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["data"]["store_name"] == "Nairobi Tech Hub"
    assert data["data"]["source"] == "user_created"
    assert data["data"]["coordinates"] == {"lat": -1.2833, "lng": 36.8219}
    assert data["data"]["id"]


def test_create_store_validation_error(client):
    payload = {**STORE_PAYLOAD, "store_type": "spaceship", "rating": 9}
    response = client.post("/api/v1/stores", json=payload)
    assert response.status_code == 422
    errors = response.json()["data"]["errors"]
    assert "store_type" in errors
    assert "rating" in errors


def test_list_get_update_and_delete_store(client):
    created = client.post(
        "/api/v1/stores", json={**STORE_PAYLOAD, "store_name": "Book Nook", "store_type": "books"}
    ).json()["data"]

    listing = client.get("/api/v1/stores", params={"store_type": "books"}).json()["data"]
    assert [store["store_name"] for store in listing["stores"]] == ["Book Nook"]
    assert listing["pagination"]["total"] == 1
    assert listing["pagination"]["has_next_page"] is False

    fetched = client.get(f"/api/v1/stores/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["store_type"] == "books"

    updated = client.put(
        f"/api/v1/stores/{created['id']}",
        json={"store_name": "Book Nook & Cafe", "rating": 3.9},
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["store_name"] == "Book Nook & Cafe"
    assert updated.json()["data"]["rating"] == 3.9

    deleted = client.delete(f"/api/v1/stores/{created['id']}")
    assert deleted.status_code == 200

    missing = client.get(f"/api/v1/stores/{created['id']}")
    assert missing.status_code == 404
    assert missing.json()["success"] is False
    assert missing.json()["message"] == "Store not found"


def test_list_stores_treats_like_wildcards_literally(client):
    created = client.post(
        "/api/v1/stores",
        json={**STORE_PAYLOAD, "store_name": "100% Books", "address": "Plot_7, Nairobi"},
    ).json()["data"]

    percent = client.get("/api/v1/stores", params={"search": "%"}).json()["data"]
    assert [store["store_name"] for store in percent["stores"]] == ["100% Books"]

    underscore = client.get("/api/v1/stores", params={"address": "_"}).json()["data"]
    assert [store["store_name"] for store in underscore["stores"]] == ["100% Books"]

    plain = client.get("/api/v1/stores", params={"search": "nairobi"}).json()["data"]
    assert plain["pagination"]["total"] >= 2

    client.delete(f"/api/v1/stores/{created['id']}")


def test_database_search_endpoint(client):
    response = client.get(
        "/api/v1/stores/search",
        params={"lat": -1.2833, "lng": 36.8219, "radius": 1000},
    )
    assert response.status_code == 200
    names = [store["store_name"] for store in response.json()["data"]["stores"]]
    assert "Nairobi Tech Hub" in names


def test_search_served_from_database_then_cache(client):
    first = client.get("/api/v1/search", params={"q": "tech hub", "location": "Nairobi"})
    assert first.status_code == 200
    data = first.json()["data"]
    assert data["source"] == "database"
    assert data["cached"] is False
    assert data["stores"][0]["store_name"] == "Nairobi Tech Hub"
    assert data["stores"][0]["relevance"] == 140

    second = client.get("/api/v1/search", params={"q": "Tech Hub", "location": "nairobi"})
    assert second.json()["data"]["source"] == "cache"
    assert second.json()["data"]["cached"] is True


def test_search_without_places_key_is_service_unavailable(client):
    response = client.get(
        "/api/v1/search", params={"q": "unicorn saddles", "location": "Atlantis"}
    )
    assert response.status_code == 503
    assert response.json()["success"] is False


def test_search_requires_query_and_location(client):
    response = client.get("/api/v1/search", params={"q": "laptop"})
    assert response.status_code == 422
    assert "location" in response.json()["data"]["errors"]


def test_search_ranks_results_by_relevance(client, fake_orchestrator):
    response = client.get(
        "/api/v1/search", params={"q": "laptop", "location": "Nairobi"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert [store["store_name"] for store in data["stores"]] == [
        "Laptop Land",
        "Gadget Galaxy",
    ]
    assert data["total_results"] == 2
    assert data["synced_to_database"] is False


def test_category_inference_endpoint(client):
    response = client.get("/api/v1/search/category", params={"product": "running shoes"})
    assert response.status_code == 200
    assert response.json()["data"]["category"] == "clothing"

    unknown = client.get("/api/v1/search/category", params={"product": "zzqx"})
    assert unknown.json()["data"]["category"] is None
    assert unknown.json()["data"]["google_types"] == []


def test_admin_requires_key(client):
    assert client.get("/api/v1/admin/cache").status_code == 401
    wrong = client.get("/api/v1/admin/cache", headers={"X-Admin-Key": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["success"] is False


def test_admin_cache_endpoints(client, admin_headers, fake_orchestrator):
    for _ in range(3):
        client.get("/api/v1/search", params={"q": "laptop", "location": "Nairobi"})

    stats = client.get("/api/v1/admin/cache", headers=admin_headers).json()["data"]
    assert stats["total_entries"] == 1
    assert stats["total_hits"] == 2

    popular = client.get(
        "/api/v1/admin/cache/popular", params={"limit": 5}, headers=admin_headers
    ).json()["data"]["searches"]
    assert popular[0]["query"] == "laptop"
    assert popular[0]["count"] == 3

    cleanup = client.post("/api/v1/admin/cache/cleanup", headers=admin_headers)
    assert cleanup.json()["data"]["removed"] == 0

    cleared = client.post("/api/v1/admin/cache/clear", headers=admin_headers)
    assert cleared.status_code == 200
    stats = client.get("/api/v1/admin/cache", headers=admin_headers).json()["data"]
    assert stats["total_entries"] == 0


def test_admin_cleanup_purges_the_search_cache(client, admin_headers):
    now = [1_000.0]
    cache = ResultCache(clock=lambda: now[0])
    cache.set("laptop", "Nairobi", [], ttl=5)
    cache.set("phone", "Nairobi", [], ttl=60)
    orchestrator = SearchOrchestrator(cache=cache, stores=AsyncMock(), places=AsyncMock())
    app.dependency_overrides[get_search_orchestrator] = lambda: orchestrator
    try:
        now[0] += 10
        cleanup = client.post("/api/v1/admin/cache/cleanup", headers=admin_headers)
    finally:
        app.dependency_overrides.pop(get_search_orchestrator, None)

    assert cleanup.json()["data"]["removed"] == 1
    assert not cache.has("laptop", "Nairobi")
    assert cache.has("phone", "Nairobi")


def test_admin_store_stats_and_synced_cleanup(client, admin_headers):
    stats = client.get("/api/v1/admin/stores/stats", headers=admin_headers).json()["data"]
    assert stats["user"] >= 1
    assert stats["google"] == 0
    assert stats["google_percentage"] == 0.0

    deleted = client.delete("/api/v1/admin/stores/synced", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"]["deleted"] == 0


def test_admin_analytics(client, admin_headers):
    response = client.get(
        "/api/v1/admin/analytics",
        params={"period": "30d", "limit": 5},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period"] == "30d"
    assert data["performance"]["total_searches"] >= 1
    assert data["performance"]["by_source"]["database"] >= 1
    assert data["popular_queries"][0]["count"] >= 1

    invalid = client.get(
        "/api/v1/admin/analytics", params={"period": "2w"}, headers=admin_headers
    )
    assert invalid.status_code == 422


def test_history_save_dedupe_and_delete(client):
    headers = {"X-Client-Id": "client-1"}
    entry = {
        "store_id": "store-1",
        "name": "Nairobi Tech Hub",
        "address": "Moi Avenue, Nairobi",
        "store_type": "electronics",
        "search_query": "laptop",
        "coordinates": {"lat": -1.2833, "lng": 36.8219},
    }

    first = client.post("/api/v1/history", json=entry, headers=headers)
    assert first.status_code == 200
    second = client.post("/api/v1/history", json=entry, headers=headers)
    assert second.json()["data"]["id"] == first.json()["data"]["id"]
    client.post(
        "/api/v1/history", json={**entry, "store_id": "store-2"}, headers=headers
    )

    history = client.get("/api/v1/history", headers=headers).json()["data"]
    assert history["total_items"] == 2
    assert history["history"][0]["store_id"] == "store-2"

    other_client = client.get("/api/v1/history", headers={"X-Client-Id": "client-2"})
    assert other_client.json()["data"]["total_items"] == 0

    deleted = client.delete(f"/api/v1/history/{first.json()['data']['id']}", headers=headers)
    assert deleted.status_code == 200
    missing = client.delete(f"/api/v1/history/{first.json()['data']['id']}", headers=headers)
    assert missing.status_code == 404
