"""Consumers for ``rating-events``."""

from __future__ import annotations

import structlog

from shared.domain.bus import IEventHandler
from shared.domain.events import IntegrationMessage

logger = structlog.get_logger(__name__)


class RatingEventHandler(IEventHandler):
    def handle(self, message: IntegrationMessage) -> None:
        logger.info(
            "rating.event_received",
            event_name=message.event_name,
            rating_id=message.key,
            event_id=message.event_id,
            target_type=message.payload.get("target_type"),
            score=message.payload.get("score"),
        )


rating_event_handler = RatingEventHandler()
