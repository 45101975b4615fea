"""Restaurant / menu DTOs (Pydantic v2, immutable).

Output DTOs are what the services cache and what the views render.
"""

from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.restaurants.models import MenuItem, Restaurant


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class RestaurantProfileDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    address: str
    description: str = ""
    phone: str = ""
    cuisine_type: str = ""
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("name", "address")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v

    @field_validator("latitude")
    @classmethod
    def latitude_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90.")
        return v

    @field_validator("longitude")
    @classmethod
    def longitude_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180.")
        return v


class UpdateRestaurantDTO(BaseModel):
    """All fields optional; only supplied fields are updated."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    phone: Optional[str] = None
    cuisine_type: Optional[str] = None
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CreateMenuItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    price: Decimal
    category: str
    description: str = ""
    is_available: bool = True
    image_url: str = ""

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than 0.")
        return v

    @field_validator("category")
    @classmethod
    def category_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Category is required.")
        return v


class UpdateMenuItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: Optional[str] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_available: Optional[bool] = None
    image_url: Optional[str] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than 0.")
        return v

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("Category must not be blank.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class RestaurantOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    owner_id: UUID
    name: str
    description: str
    address: str
    phone: str
    cuisine_type: str
    is_online: bool
    opening_time: Optional[time]
    closing_time: Optional[time]
    rating: Decimal
    total_ratings: int
    latitude: Optional[float]
    longitude: Optional[float]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, restaurant: Restaurant) -> RestaurantOutputDTO:
        return cls(
            id=restaurant.id,
            owner_id=restaurant.owner_id,
            name=restaurant.name,
            description=restaurant.description,
            address=restaurant.address,
            phone=restaurant.phone,
            cuisine_type=restaurant.cuisine_type,
            is_online=restaurant.is_online,
            opening_time=restaurant.opening_time,
            closing_time=restaurant.closing_time,
            rating=restaurant.rating,
            total_ratings=restaurant.total_ratings,
            latitude=restaurant.latitude,
            longitude=restaurant.longitude,
            created_at=restaurant.created_at,
            updated_at=restaurant.updated_at,
        )


class MenuItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    restaurant_id: UUID
    name: str
    description: str
    price: Decimal
    category: str
    is_available: bool
    image_url: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, item: MenuItem) -> MenuItemOutputDTO:
        return cls(
            id=item.id,
            restaurant_id=item.restaurant_id,
            name=item.name,
            description=item.description,
            price=item.price,
            category=item.category,
            is_available=item.is_available,
            image_url=item.image_url,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )
