"""Domain events for the Orders bounded context (topic ``order-events``)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderPlaced(DomainEvent):
    user_id: UUID
    restaurant_id: UUID
    total_amount: Decimal
    item_count: int


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    restaurant_id: UUID
    user_id: UUID
    old_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(DomainEvent):
    restaurant_id: UUID
    user_id: UUID
    cancelled_by: Optional[UUID] = None
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderRejected(DomainEvent):
    restaurant_id: UUID
    user_id: UUID
    reason: str = ""
