from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from store_locator.db.schemas.store import Coordinates


class HistoryCreate(BaseModel):
    store_id: str = PydanticField(..., min_length=1)
    name: str = PydanticField(..., min_length=1, max_length=100)
    address: str = PydanticField(..., min_length=1, max_length=200)
    store_type: str = PydanticField(..., min_length=1, max_length=50)
    search_query: str = PydanticField(..., min_length=1, max_length=200)
    phone: Optional[str] = None
    email: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class HistoryResponse(BaseModel):
    id: UUID
    store_id: str
    name: str
    address: str
    store_type: str
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    search_query: str
    saved_at: datetime

    model_config = ConfigDict(from_attributes=True)
