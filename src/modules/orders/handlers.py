"""Consumers for ``order-events``.

Handlers only record the notification; no consumer performs
compensating work.
"""

from __future__ import annotations

import structlog

from shared.domain.bus import IEventHandler
from shared.domain.events import IntegrationMessage

logger = structlog.get_logger(__name__)


class OrderEventHandler(IEventHandler):
    def handle(self, message: IntegrationMessage) -> None:
        logger.info(
            "order.event_received",
            event_name=message.event_name,
            order_id=message.key,
            event_id=message.event_id,
            payload=message.payload,
        )


order_event_handler = OrderEventHandler()
