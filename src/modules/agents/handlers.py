"""Consumers for ``delivery-events`` and ``agent-events`` (log only)."""

from __future__ import annotations

import structlog

from shared.domain.bus import IEventHandler
from shared.domain.events import IntegrationMessage

logger = structlog.get_logger(__name__)


class DeliveryEventHandler(IEventHandler):
    def handle(self, message: IntegrationMessage) -> None:
        logger.info(
            "delivery.event_received",
            event_name=message.event_name,
            order_id=message.key,
            agent_id=message.payload.get("agent_id"),
            event_id=message.event_id,
        )


class AgentEventHandler(IEventHandler):
    def handle(self, message: IntegrationMessage) -> None:
        logger.info(
            "agent.event_received",
            event_name=message.event_name,
            agent_id=message.key,
            event_id=message.event_id,
        )


delivery_event_handler = DeliveryEventHandler()
agent_event_handler = AgentEventHandler()
