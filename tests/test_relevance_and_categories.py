from store_locator.db.schemas.store import StoreData
from store_locator.services.relevance import rank_stores, score_relevance
from store_locator.utils.categories import (
    DEFAULT_STORE_TYPE,
    STORE_TYPES,
    infer_product_category,
    map_google_types,
)
from store_locator.utils.geo import bounding_box, haversine_meters, longitude_ranges


def store(name: str, store_type: str = "other") -> StoreData:
    return StoreData(store_name=name, store_type=store_type, address="1 Road", country="Kenya")


def test_full_phrase_in_name_scores_highest():
    assert score_relevance("tech hub", store("Nairobi Tech Hub")) == 100 + 20 + 20
    assert score_relevance("hub tech", store("Nairobi Tech Hub")) == 40


def test_store_type_tokens_add_to_score():
    assert score_relevance("electronics", store("Alpha", "electronics")) == 10
    assert score_relevance("", store("Alpha")) == 0


def test_rank_stores_sorts_best_first_and_keeps_ties_stable():
    stores = [store("Zeta"), store("Phone Planet", "electronics"), store("Omega")]

    ranked = rank_stores("phone", stores)

    assert [item.store_name for item in ranked] == ["Phone Planet", "Zeta", "Omega"]
    assert ranked[0].relevance == 120
    assert ranked[1].relevance == 0


def test_map_google_types():
    assert map_google_types(["point_of_interest", "book_store"]) == "books"
    assert map_google_types(["point_of_interest"]) == DEFAULT_STORE_TYPE
    assert map_google_types([]) == DEFAULT_STORE_TYPE
    assert map_google_types(["book_store"], category="toys") == "toys"


def test_store_types_include_default():
    assert DEFAULT_STORE_TYPE in STORE_TYPES
    assert "electronics" in STORE_TYPES


def test_infer_product_category_whole_word_and_plural():
    assert infer_product_category("Samsung Galaxy Phone")["category"] == "electronics"
    assert infer_product_category("running shoes")["category"] == "clothing"
    inferred = infer_product_category("2 bottles of milk")
    assert inferred == {
        "category": "supermarket",
        "google_types": ["supermarket", "grocery_or_supermarket"],
    }


def test_infer_product_category_substring_fallback():
    assert infer_product_category("smartphonecase")["category"] == "electronics"


def test_infer_product_category_no_match():
    assert infer_product_category("zzqx") is None
    assert infer_product_category("") is None
    assert infer_product_category("a 1") is None


def test_haversine_and_bounding_box():
    assert haversine_meters(0, 0, 0, 0) == 0
    one_degree = haversine_meters(0, 0, 1, 0)
    assert 111_000 < one_degree < 111_400

    min_lat, max_lat, lng_ranges = bounding_box(89.999, 10, 5000)
    assert max_lat == 90.0
    assert min_lat < 89.999
    assert lng_ranges == ((-180.0, 180.0),)

    _, _, lng_ranges = bounding_box(-1.28, 36.82, 5000)
    [(low, high)] = lng_ranges
    assert low < 36.82 < high


def test_bounding_box_splits_at_the_antimeridian():
    _, _, east = bounding_box(0, 179.99, 5000)
    assert len(east) == 2
    assert east[0][1] == 180.0 and east[1][0] == -180.0
    assert -180.0 < east[1][1] < -179.9

    _, _, west = bounding_box(0, -179.99, 5000)
    assert west[0][0] > 179.9 and west[0][1] == 180.0
    assert west[1][0] == -180.0

    assert longitude_ranges(-10.0, 10.0) == ((-10.0, 10.0),)
    assert longitude_ranges(-200.0, 200.0) == ((-180.0, 180.0),)
