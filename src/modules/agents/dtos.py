"""Delivery-agent DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from modules.agents.constants import VehicleType

if TYPE_CHECKING:
    from modules.agents.matching import NearbyAgent
    from modules.agents.models import DeliveryAgent


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class RegisterAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    vehicle_type: VehicleType
    license_number: str = ""


class UpdateAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    vehicle_type: Optional[VehicleType] = None
    license_number: Optional[str] = None


class LocationDTO(BaseModel):
    """A reported position; out-of-range coordinates are rejected."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    speed: Optional[float] = Field(default=None, ge=0)
    bearing: Optional[float] = Field(default=None, ge=0, le=360)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class AgentOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    user_id: UUID
    vehicle_type: str
    license_number: str
    is_active: bool
    is_available: bool
    is_on_delivery: bool
    state: str
    current_latitude: Optional[float]
    current_longitude: Optional[float]
    location_updated_at: Optional[datetime]
    rating: Decimal
    total_ratings: int
    total_deliveries: int
    total_earnings: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, agent: DeliveryAgent) -> AgentOutputDTO:
        return cls(
            id=agent.id,
            user_id=agent.user_id,
            vehicle_type=agent.vehicle_type,
            license_number=agent.license_number,
            is_active=agent.is_active,
            is_available=agent.is_available,
            is_on_delivery=agent.is_on_delivery,
            state=agent.state,
            current_latitude=agent.current_latitude,
            current_longitude=agent.current_longitude,
            location_updated_at=agent.location_updated_at,
            rating=agent.rating,
            total_ratings=agent.total_ratings,
            total_deliveries=agent.total_deliveries,
            total_earnings=agent.total_earnings,
            created_at=agent.created_at,
            updated_at=agent.updated_at,
        )


class AgentLocationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_id: UUID
    latitude: float
    longitude: float
    recorded_at: datetime


class AgentStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_deliveries: int
    completed_deliveries: int
    total_earnings: Decimal
    rating: Decimal
    completion_rate: float


class NearbyAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_id: UUID
    latitude: float
    longitude: float
    rating: float
    distance_m: float
    score: float

    @classmethod
    def from_candidate(cls, candidate: NearbyAgent) -> NearbyAgentDTO:
        return cls(
            agent_id=candidate.agent_id,
            latitude=candidate.latitude,
            longitude=candidate.longitude,
            rating=candidate.rating,
            distance_m=round(candidate.distance_m, 1),
            score=round(candidate.score, 4),
        )
