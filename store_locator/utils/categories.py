"""Store type taxonomy and the lookups that feed it.

Two tables live here: the mapping from Google Places types onto local store
types (used when synthesizing stores from provider results) and a keyword
table that guesses a product category from free text.
"""

import re
from typing import Literal, Optional, get_args

StoreType = Literal[
    "electronics",
    "clothing",
    "supermarket",
    "books",
    "furniture",
    "pharmacy",
    "sports",
    "toys",
    "hardware",
    "automotive",
    "beauty",
    "household",
    "computing",
    "gardening",
    "pets",
    "baby",
    "jewelry",
    "retail",
    "restaurant",
    "service",
    "healthcare",
    "education",
    "entertainment",
    "technology",
    "other",
]

STORE_TYPES: tuple[str, ...] = get_args(StoreType)

DEFAULT_STORE_TYPE = "other"

GOOGLE_TYPE_TO_STORE_TYPE: dict[str, str] = {
    "electronics_store": "electronics",
    "clothing_store": "clothing",
    "supermarket": "supermarket",
    "book_store": "books",
    "furniture_store": "furniture",
    "pharmacy": "pharmacy",
    "sports_complex": "sports",
    "toy_store": "toys",
    "hardware_store": "hardware",
    "car_dealer": "automotive",
    "beauty_salon": "beauty",
    "home_goods_store": "household",
    "computer_store": "computing",
    "garden_center": "gardening",
    "pet_store": "pets",
    "jewelry_store": "jewelry",
    "restaurant": "restaurant",
    "hospital": "healthcare",
    "school": "education",
    "movie_theater": "entertainment",
}


def map_google_types(google_types: list[str], category: Optional[str] = None) -> str:
    """Local store type for a provider place.

    An explicit category from the caller always wins; otherwise the first
    provider type with a table entry decides, falling back to ``other``.
    """
    if category:
        return category
    for google_type in google_types or []:
        mapped = GOOGLE_TYPE_TO_STORE_TYPE.get(google_type)
        if mapped:
            return mapped
    return DEFAULT_STORE_TYPE


PRODUCT_CATEGORIES: dict[str, dict[str, list[str]]] = {
    "electronics": {
        "keywords": [
            "phone", "smartphone", "iphone", "android", "mobile", "laptop",
            "notebook", "macbook", "chromebook", "camera", "dslr", "camcorder",
            "webcam", "tv", "television", "monitor", "projector", "headphone",
            "earphone", "earbud", "speaker", "soundbar", "headset", "microphone",
            "smartwatch", "wearable", "tablet", "ipad", "kindle", "playstation",
            "xbox", "router", "modem", "hard drive", "ssd", "printer", "scanner",
        ],
        "google_types": ["electronics_store", "computer_store"],
    },
    "clothing": {
        "keywords": [
            "shirt", "tshirt", "t-shirt", "blouse", "polo", "pant", "jeans",
            "trousers", "shorts", "leggings", "dress", "gown", "skirt", "shoe",
            "sneaker", "boot", "footwear", "sandals", "heels", "jacket", "coat",
            "sweater", "hoodie", "blazer", "bag", "backpack", "handbag", "wallet",
            "hat", "cap", "scarf", "glove", "belt", "socks", "swimwear", "suit",
        ],
        "google_types": ["clothing_store", "shoe_store"],
    },
    "supermarket": {
        "keywords": [
            "food", "grocery", "groceries", "supermarket", "milk", "bread", "egg",
            "cheese", "butter", "yogurt", "vegetable", "fruit", "meat", "fish",
            "chicken", "rice", "pasta", "flour", "sugar", "cereal", "snack",
            "chips", "biscuit", "cookie", "chocolate", "juice", "soda", "water",
            "tea", "coffee", "sauce", "ketchup", "frozen", "ice cream",
        ],
        "google_types": ["supermarket", "grocery_or_supermarket"],
    },
    "books": {
        "keywords": [
            "book", "novel", "textbook", "magazine", "comics", "journal",
            "manual", "encyclopedia", "dictionary",
        ],
        "google_types": ["book_store"],
    },
    "furniture": {
        "keywords": [
            "furniture", "chair", "table", "sofa", "bed", "cabinet", "desk",
            "dresser", "couch", "wardrobe", "stool", "bookshelf", "mattress",
        ],
        "google_types": ["furniture_store"],
    },
    "pharmacy": {
        "keywords": [
            "medicine", "drug", "pharmacy", "chemist", "pill", "syrup",
            "vitamin", "supplement", "first aid", "bandage",
        ],
        "google_types": ["pharmacy"],
    },
    "sports": {
        "keywords": [
            "sport", "gym", "fitness", "dumbbell", "treadmill", "football",
            "basketball", "cricket", "tennis", "racket", "golf", "hockey",
            "bicycle", "cycling", "skateboard", "yoga mat",
        ],
        "google_types": ["sporting_goods_store"],
    },
    "toys": {
        "keywords": [
            "toy", "game", "lego", "doll", "puzzle", "action figure",
            "boardgame", "drone", "teddy bear",
        ],
        "google_types": ["toy_store"],
    },
    "hardware": {
        "keywords": [
            "hardware", "tool", "drill", "hammer", "screwdriver", "wrench", "saw",
            "pliers", "toolbox", "paint", "nails", "screws", "grinder",
            "wheelbarrow", "bolts", "hinges", "adhesive",
        ],
        "google_types": ["hardware_store"],
    },
    "automotive": {
        "keywords": [
            "car", "vehicle", "automobile", "motorcycle", "scooter", "truck",
            "engine", "tyre", "tire", "battery", "brake", "wiper", "radiator",
            "headlight", "bumper", "spark plug", "exhaust",
        ],
        "google_types": ["car_dealer", "car_repair", "auto_parts_store"],
    },
    "beauty": {
        "keywords": [
            "makeup", "cosmetic", "lipstick", "foundation", "skincare", "beauty",
            "eyeliner", "mascara", "nail polish", "perfume", "fragrance",
            "cologne", "hair care",
        ],
        "google_types": ["beauty_salon"],
    },
    "household": {
        "keywords": [
            "cleaner", "detergent", "soap", "shampoo", "toothpaste", "sanitizer",
            "broom", "mop", "bucket", "vacuum", "dustbin", "scrubber",
        ],
        "google_types": ["home_goods_store"],
    },
    "computing": {
        "keywords": [
            "mouse", "keyboard", "charger", "cable", "power bank", "hard disk",
            "memory", "ram", "graphics card",
        ],
        "google_types": ["electronics_store", "computer_store"],
    },
    "gardening": {
        "keywords": [
            "plant", "flower", "seed", "pot", "fertilizer", "shovel", "rake",
            "watering can", "soil", "compost", "lawn mower",
        ],
        "google_types": ["garden_center", "florist"],
    },
    "pets": {
        "keywords": [
            "pet", "dog", "cat", "pet food", "leash", "aquarium", "collar",
            "kennel", "litter", "hamster",
        ],
        "google_types": ["pet_store"],
    },
    "baby": {
        "keywords": [
            "baby", "diaper", "stroller", "crib", "pacifier", "rattle", "bib",
            "car seat",
        ],
        "google_types": ["baby_store"],
    },
    "jewelry": {
        "keywords": [
            "jewelry", "jewellery", "ring", "necklace", "bracelet", "earrings",
            "diamond", "gold", "silver", "rolex",
        ],
        "google_types": ["jewelry_store"],
    },
}


def _clean_product(product_name: str) -> str:
    words = re.sub(r"[^\w\s]", "", product_name.lower()).split()
    return " ".join(
        word for word in words if len(word) > 2 and not re.fullmatch(r"[0-9.,]+", word)
    )


def infer_product_category(product_name: str) -> Optional[dict]:
    """Guess the store category for a product name.

    Returns ``{"category": ..., "google_types": [...]}`` or None. Whole-word
    matches (allowing a plural ``s``) are tried across every category before
    falling back to plain substring matches.
    """
    product = _clean_product(product_name or "")
    if not product:
        return None

    for category, data in PRODUCT_CATEGORIES.items():
        for keyword in data["keywords"]:
            if re.search(rf"\b{re.escape(keyword)}s?\b", product):
                return {"category": category, "google_types": data["google_types"]}

    for category, data in PRODUCT_CATEGORIES.items():
        if any(keyword in product for keyword in data["keywords"]):
            return {"category": category, "google_types": data["google_types"]}

    return None
