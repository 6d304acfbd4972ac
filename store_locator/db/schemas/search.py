from typing import Literal, Optional

from pydantic import BaseModel, Field as PydanticField

from store_locator.db.schemas.store import StoreData

SearchSource = Literal["cache", "database", "google_api"]
SyncAction = Literal["created", "updated", "failed"]


class SyncOutcome(BaseModel):
    store_name: str
    google_place_id: Optional[str] = None
    action: SyncAction
    store_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.action != "failed"


class SearchResult(BaseModel):
    stores: list[StoreData] = PydanticField(default_factory=list)
    source: SearchSource = "database"
    cached: bool = False
    synced_to_database: bool = False
    sync_outcomes: list[SyncOutcome] = PydanticField(default_factory=list)


class RankedStore(StoreData):
    relevance: int = 0


class SearchResponse(BaseModel):
    query: str
    location: str
    category: Optional[str] = None
    stores: list[RankedStore]
    source: SearchSource
    cached: bool
    synced_to_database: bool
    total_results: int
    search_time_ms: float


class CategoryInference(BaseModel):
    product: str
    category: Optional[str] = None
    google_types: list[str] = PydanticField(default_factory=list)
