"""Rating DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.ratings.constants import MAX_SCORE, MIN_SCORE

if TYPE_CHECKING:
    from modules.ratings.models import Rating


class SubmitRatingDTO(BaseModel):
    """At least one of ``restaurant_rating`` / ``agent_rating`` is required."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: UUID
    restaurant_rating: Optional[int] = Field(default=None, ge=MIN_SCORE, le=MAX_SCORE)
    restaurant_comment: str = ""
    agent_rating: Optional[int] = Field(default=None, ge=MIN_SCORE, le=MAX_SCORE)
    agent_comment: str = ""

    @model_validator(mode="after")
    def at_least_one_rating(self) -> SubmitRatingDTO:
        if self.restaurant_rating is None and self.agent_rating is None:
            raise ValueError("Provide a restaurant rating, an agent rating, or both.")
        return self


class RatingOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    user_id: UUID
    target_type: str
    target_id: UUID
    score: int
    comment: str
    created_at: datetime

    @classmethod
    def from_entity(cls, rating: Rating) -> RatingOutputDTO:
        return cls(
            id=rating.id,
            order_id=rating.order_id,
            user_id=rating.user_id,
            target_type=rating.target_type,
            target_id=rating.target_id,
            score=rating.score,
            comment=rating.comment,
            created_at=rating.created_at,
        )


class CanRateDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    can_rate: bool
    reason: Optional[str] = None
