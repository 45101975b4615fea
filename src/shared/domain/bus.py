"""Domain bus interfaces for event publication and consumption."""

from __future__ import annotations

from typing import Protocol, Type

from shared.domain.events import DomainEvent, IntegrationMessage
from shared.domain.results import SideEffectResult


class IEventHandler(Protocol):
    """Consumer of integration messages for one event type."""

    def handle(self, message: IntegrationMessage) -> None: ...


class IEventBus(Protocol):
    """In-process dispatcher routing messages to subscribed handlers."""

    def dispatch(self, message: IntegrationMessage) -> int: ...

    def subscribe(
        self, event_class: Type[DomainEvent], handler: IEventHandler
    ) -> None: ...


class IEventPublisher(Protocol):
    """Fire-and-forget publisher.  Never raises on delivery failure."""

    def publish(self, topic: str, event: DomainEvent) -> SideEffectResult: ...
