"""Unit tests for the ``is_on_delivery`` reconciliation task."""

from __future__ import annotations

import pytest

from modules.agents.models import DeliveryAgent
from modules.agents.tasks import reconcile_delivery_flags

pytestmark = pytest.mark.unit


def _flag(agent) -> bool:
    return DeliveryAgent.objects.get(id=agent.id).is_on_delivery


class TestReconcileDeliveryFlags:
    def test_consistent_flags_are_left_alone(self, make_agent, make_order):
        busy = make_agent(is_on_delivery=True)
        make_order(status="confirmed", agent=busy, delivery_status="accepted")
        make_agent()

        assert reconcile_delivery_flags() == {"marked_busy": 0, "released": 0}
        assert _flag(busy) is True

    def test_agent_with_open_delivery_is_marked_busy(self, make_agent, make_order):
        drifted = make_agent(is_on_delivery=False)
        make_order(status="preparing", agent=drifted, delivery_status="en_route_to_restaurant")

        result = reconcile_delivery_flags()

        assert result == {"marked_busy": 1, "released": 0}
        assert _flag(drifted) is True

    def test_agent_without_open_delivery_is_released(self, make_agent, make_order):
        stuck = make_agent(is_on_delivery=True)
        make_order(status="delivered", agent=stuck, delivery_status="delivered")

        result = reconcile_delivery_flags()

        assert result == {"marked_busy": 0, "released": 1}
        assert _flag(stuck) is False
