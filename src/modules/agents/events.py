"""Domain events for deliveries (``delivery-events``) and agents (``agent-events``).

Delivery events use the order id as ``aggregate_id``; agent events use the
agent id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class DeliveryAssigned(DomainEvent):
    agent_id: UUID
    restaurant_id: UUID


@dataclass(frozen=True, kw_only=True)
class DeliveryStatusChanged(DomainEvent):
    agent_id: UUID
    old_status: Optional[str]
    new_status: str


@dataclass(frozen=True, kw_only=True)
class DeliveryRejected(DomainEvent):
    agent_id: UUID
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class AgentLocationUpdated(DomainEvent):
    latitude: float
    longitude: float


@dataclass(frozen=True, kw_only=True)
class AgentAvailabilityChanged(DomainEvent):
    is_available: bool
