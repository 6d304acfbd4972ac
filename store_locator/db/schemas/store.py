from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field as PydanticField

from store_locator.utils.categories import StoreType

StoreSource = Literal["database", "google_api", "user_created"]


class Coordinates(BaseModel):
    lat: float = PydanticField(..., ge=-90, le=90)
    lng: float = PydanticField(..., ge=-180, le=180)


class StoreData(BaseModel):
    """A store as it flows through search, cache and write-back."""

    id: Optional[str] = None
    store_name: str
    store_type: str
    address: str
    country: str
    coordinates: Optional[Coordinates] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    hours: Optional[str] = None
    rating: Optional[float] = None
    tags: list[str] = PydanticField(default_factory=list)
    source: StoreSource = "database"
    google_place_id: Optional[str] = None
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, store) -> "StoreData":
        coordinates = None
        if store.latitude is not None and store.longitude is not None:
            coordinates = Coordinates(lat=store.latitude, lng=store.longitude)
        return cls(
            id=str(store.id),
            store_name=store.store_name,
            store_type=store.store_type,
            address=store.address,
            country=store.country,
            coordinates=coordinates,
            phone=store.phone,
            email=store.email,
            website=store.website,
            description=store.description,
            hours=store.hours,
            rating=store.rating,
            tags=list(store.tags or []),
            source=store.source or "database",
            google_place_id=store.google_place_id,
            last_updated=store.last_updated or store.updated_at,
        )

    def to_columns(self) -> dict:
        """Column values for inserting or refreshing a ``Store`` row."""
        return {
            "store_name": self.store_name[:100],
            "store_type": self.store_type,
            "address": self.address[:200],
            "country": self.country,
            "latitude": self.coordinates.lat if self.coordinates else None,
            "longitude": self.coordinates.lng if self.coordinates else None,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "description": self.description,
            "hours": self.hours[:100] if self.hours else None,
            "rating": self.rating or 0.0,
            "tags": list(self.tags),
            "source": self.source,
            "google_place_id": self.google_place_id,
        }


class StoreCreate(BaseModel):
    store_name: str = PydanticField(..., min_length=1, max_length=100)
    store_type: StoreType
    address: str = PydanticField(..., min_length=1, max_length=200)
    country: str = PydanticField(..., min_length=1, max_length=100)
    coordinates: Coordinates
    phone: Optional[str] = PydanticField(None, pattern=r"^[\d\s\-+()]*$")
    email: Optional[EmailStr] = None
    website: Optional[str] = PydanticField(None, pattern=r"^https?://.+")
    description: Optional[str] = PydanticField(None, max_length=500)
    hours: Optional[str] = PydanticField(None, max_length=100)
    rating: float = PydanticField(0, ge=0, le=5)
    tags: list[str] = PydanticField(default_factory=list)
    created_by: Optional[str] = None


class StoreUpdate(BaseModel):
    store_name: Optional[str] = PydanticField(None, min_length=1, max_length=100)
    store_type: Optional[StoreType] = None
    address: Optional[str] = PydanticField(None, min_length=1, max_length=200)
    country: Optional[str] = PydanticField(None, min_length=1, max_length=100)
    coordinates: Optional[Coordinates] = None
    phone: Optional[str] = PydanticField(None, pattern=r"^[\d\s\-+()]*$")
    email: Optional[EmailStr] = None
    website: Optional[str] = PydanticField(None, pattern=r"^https?://.+")
    description: Optional[str] = PydanticField(None, max_length=500)
    hours: Optional[str] = PydanticField(None, max_length=100)
    rating: Optional[float] = PydanticField(None, ge=0, le=5)
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
