"""Unit tests for the in-process event bus and the Celery publisher."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.tasks import deliver_event
from modules.orders.events import OrderPlaced, OrderRejected
from shared.domain.events import IntegrationMessage
from shared.infrastructure.bus import CeleryEventPublisher, InMemoryEventBus

pytestmark = pytest.mark.unit


class RecordingHandler:
    def __init__(self):
        self.messages = []

    def handle(self, message):
        self.messages.append(message)


def _order_placed() -> OrderPlaced:
    return OrderPlaced(
        aggregate_id=uuid4(),
        user_id=uuid4(),
        restaurant_id=uuid4(),
        total_amount=Decimal("12.99"),
        item_count=1,
    )


# ---------------------------------------------------------------------------
# InMemoryEventBus
# ---------------------------------------------------------------------------


class TestInMemoryEventBus:
    def test_dispatches_to_subscribers_of_the_event(self):
        bus = InMemoryEventBus()
        placed, rejected = RecordingHandler(), RecordingHandler()
        bus.subscribe(OrderPlaced, placed)
        bus.subscribe(OrderRejected, rejected)

        message = IntegrationMessage.from_event("order-events", _order_placed())
        invoked = bus.dispatch(message)

        assert invoked == 1
        assert placed.messages == [message]
        assert rejected.messages == []

    def test_subscribe_is_idempotent(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(OrderPlaced, handler)
        bus.subscribe(OrderPlaced, handler)

        bus.dispatch(IntegrationMessage.from_event("order-events", _order_placed()))

        assert len(handler.messages) == 1

    def test_unknown_event_has_no_handlers(self):
        bus = InMemoryEventBus()
        message = IntegrationMessage.from_event("order-events", _order_placed())
        assert bus.dispatch(message) == 0


# ---------------------------------------------------------------------------
# Consumer task
# ---------------------------------------------------------------------------


class TestDeliverEventTask:
    def test_registered_handlers_receive_published_messages(self):
        message = IntegrationMessage.from_event("order-events", _order_placed())
        # The orders app subscribes its log-only handler on startup.
        assert deliver_event(message.to_dict()) == 1


# ---------------------------------------------------------------------------
# CeleryEventPublisher
# ---------------------------------------------------------------------------


class TestCeleryEventPublisher:
    def test_publish_enqueues_the_envelope(self, monkeypatch):
        sent = []
        monkeypatch.setattr(deliver_event, "delay", lambda payload: sent.append(payload))
        event = _order_placed()

        result = CeleryEventPublisher().publish("order-events", event)

        assert not result.is_degraded
        assert result.operation == "publish:order-events"
        assert sent[0]["event_name"] == "OrderPlaced"
        assert sent[0]["key"] == str(event.aggregate_id)
        assert sent[0]["topic"] == "order-events"

    def test_broker_failure_is_reported_not_raised(self, monkeypatch):
        def unreachable(payload):
            raise ConnectionError("broker down")

        monkeypatch.setattr(deliver_event, "delay", unreachable)

        result = CeleryEventPublisher().publish("order-events", _order_placed())

        assert result.is_degraded
        assert "broker down" in result.error

    def test_eager_publish_runs_the_consumer(self):
        result = CeleryEventPublisher().publish("order-events", _order_placed())
        assert not result.is_degraded
