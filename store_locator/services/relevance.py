import re

from store_locator.db.schemas.search import RankedStore
from store_locator.db.schemas.store import StoreData

FULL_MATCH_SCORE = 100
NAME_TOKEN_SCORE = 20
CATEGORY_TOKEN_SCORE = 10

_TOKEN_RE = re.compile(r"\w+")


def _tokens(text: str) -> list[str]:
    return _TOKEN_RE.findall((text or "").lower())


def score_relevance(query: str, store: StoreData) -> int:
    """Keyword-overlap score of a store against the search query.

    The whole query appearing in the store name scores 100; on top of that
    every query token found in the name adds 20 and every token found in
    the store type adds 10.
    """
    query_tokens = _tokens(query)
    if not query_tokens:
        return 0

    name_sequence = _tokens(store.store_name)
    name_tokens = set(name_sequence)
    category_tokens = set(_tokens(store.store_type))

    phrase = f" {' '.join(query_tokens)} "
    score = FULL_MATCH_SCORE if phrase in f" {' '.join(name_sequence)} " else 0
    for token in query_tokens:
        if token in name_tokens:
            score += NAME_TOKEN_SCORE
        if token in category_tokens:
            score += CATEGORY_TOKEN_SCORE
    return score


def rank_stores(query: str, stores: list[StoreData]) -> list[RankedStore]:
    """Stores annotated with relevance, best first; ties keep source order."""
    ranked = [
        RankedStore(**store.model_dump(), relevance=score_relevance(query, store))
        for store in stores
    ]
    ranked.sort(key=lambda store: store.relevance, reverse=True)
    return ranked
