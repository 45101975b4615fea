"""Event bus implementations.

- ``InMemoryEventBus``: in-process dispatcher used on the consumer side.
- ``CeleryEventPublisher``: hands integration messages to the broker via
  the ``core.deliver_event`` task.  Publishing is fire-and-forget: no
  retries, and broker failures are logged and reported as degraded.
"""

from __future__ import annotations

from typing import Dict, List, Type

import structlog

from shared.domain.bus import IEventBus, IEventHandler, IEventPublisher
from shared.domain.events import DomainEvent, IntegrationMessage
from shared.domain.results import SideEffectResult

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process bus keyed by event name."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class.__name__, [])
        if handler not in handlers:
            handlers.append(handler)

    def dispatch(self, message: IntegrationMessage) -> int:
        """Run every handler subscribed to ``message.event_name``.

        Returns the number of handlers invoked.
        """
        handlers = self._handlers.get(message.event_name, [])
        if not handlers:
            logger.debug("event_bus.no_handlers", event_name=message.event_name)
        for handler in handlers:
            handler.handle(message)
        return len(handlers)


class CeleryEventPublisher(IEventPublisher):
    """Publishes events to the Celery broker without waiting for delivery."""

    def publish(self, topic: str, event: DomainEvent) -> SideEffectResult:
        from modules.core.tasks import deliver_event

        message = IntegrationMessage.from_event(topic, event)
        log = logger.bind(
            topic=topic,
            event_name=message.event_name,
            key=message.key,
        )
        try:
            deliver_event.delay(message.to_dict())
        except Exception as exc:
            log.error("event.publish_failed", error=str(exc))
            return SideEffectResult.degraded(f"publish:{topic}", exc)

        log.info("event.published")
        return SideEffectResult.ok(f"publish:{topic}")


# Global instances (singletons)

event_bus = InMemoryEventBus()
event_publisher = CeleryEventPublisher()
