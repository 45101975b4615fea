"""Domain events for ratings (topic ``rating-events``)."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class RatingSubmitted(DomainEvent):
    order_id: UUID
    user_id: UUID
    target_type: str
    target_id: UUID
    score: int
