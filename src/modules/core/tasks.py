"""Celery tasks of the core module: the consumer side of the event bus."""

from __future__ import annotations

from typing import Any, Dict

import structlog
from celery import shared_task

from shared.domain.events import IntegrationMessage
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.deliver_event", ignore_result=True)
def deliver_event(message: Dict[str, Any]) -> int:
    """Dispatch a published integration message to in-process handlers."""
    envelope = IntegrationMessage.from_dict(message)
    logger.info(
        "event.received",
        topic=envelope.topic,
        event_name=envelope.event_name,
        key=envelope.key,
    )
    return event_bus.dispatch(envelope)
