"""Domain events primitives shared by every bounded context.

``DomainEvent`` is the in-process representation of something that
happened.  ``IntegrationMessage`` is its wire form: the JSON-safe
envelope handed to the broker and dispatched to consumers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable).

    Subclasses declare their payload as keyword-only fields.
    """

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    def to_payload(self) -> Dict[str, Any]:
        """Return the event fields as a JSON-safe dict."""
        data = asdict(self)
        for meta in ("event_id", "occurred_on", "event_name"):
            data.pop(meta, None)
        return normalize_for_json(data)


@dataclass(frozen=True)
class IntegrationMessage:
    """Serialized event as it travels through the message bus."""

    topic: str
    event_name: str
    key: str
    payload: Dict[str, Any]
    event_id: str
    occurred_on: str

    @classmethod
    def from_event(cls, topic: str, event: DomainEvent) -> IntegrationMessage:
        return cls(
            topic=topic,
            event_name=event.event_name,
            key=str(event.aggregate_id),
            payload=event.to_payload(),
            event_id=str(event.event_id),
            occurred_on=event.occurred_on.isoformat(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IntegrationMessage:
        return cls(**data)


def normalize_for_json(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: normalize_for_json(val) for key, val in value.items()}
    return value
