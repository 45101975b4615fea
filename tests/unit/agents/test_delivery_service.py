"""
Unit tests for DeliveryService.

Covers:
- explicit assignment and its compare-and-swap conflicts
- automatic matching around the restaurant
- the agent-side delivery lifecycle and its effect on the order
- rejection / reassignment
- active delivery and history queries
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.agents.events import DeliveryAssigned, DeliveryRejected, DeliveryStatusChanged
from modules.agents.exceptions import (
    AgentNotFound,
    AgentUnavailable,
    DeliveryNotFound,
    MissingPickupLocation,
    NoAgentAvailable,
    NotAssignedAgent,
    OrderNotAssignable,
)
from modules.agents.models import DeliveryAgent
from modules.agents.repositories import DeliveryAgentDjangoRepository
from modules.agents.services import DeliveryService
from modules.orders.exceptions import OrderActionForbidden, OrderNotFound
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.orders.state_machine import InvalidTransition
from modules.restaurants.models import Restaurant
from modules.restaurants.repositories import MenuItemDjangoRepository, RestaurantDjangoRepository
from shared.infrastructure.cache import build_key

pytestmark = pytest.mark.unit

PICKUP_LAT = 40.7128

AGENT_LIFECYCLE = [
    "en_route_to_restaurant",
    "arrived_at_restaurant",
    "picked_up",
    "en_route_to_customer",
    "arrived_at_customer",
    "delivered",
]


class FlakyAgentRepository(DeliveryAgentDjangoRepository):
    """Loses the reservation race for the listed agents."""

    def __init__(self, taken):
        self.taken = {str(agent_id) for agent_id in taken}

    def try_reserve(self, agent_id: str) -> bool:
        if str(agent_id) in self.taken:
            return False
        return super().try_reserve(agent_id)


def _service(publisher, cache, agent_repository=None) -> DeliveryService:
    return DeliveryService(
        OrderDjangoRepository(),
        agent_repository or DeliveryAgentDjangoRepository(),
        RestaurantDjangoRepository(),
        publisher=publisher,
        cache=cache,
    )


@pytest.fixture()
def service(publisher, read_cache):
    return _service(publisher, read_cache)


@pytest.fixture()
def rider(actor_for, agent):
    return actor_for(agent.user)


@pytest.fixture()
def assigned(service, make_order, agent):
    """A confirmed order already assigned to ``agent``."""
    order = make_order(status="confirmed")
    service.assign_order(order.id, agent.id)
    return order


def _reload(instance):
    instance.refresh_from_db()
    return instance


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------


class TestAssignOrder:
    def test_assigns_and_reserves_agent(self, service, make_order, agent, publisher):
        order = make_order(status="preparing")

        result = service.assign_order(order.id, agent.id)

        assert result.delivery_agent_id == agent.id
        assert result.delivery_status == "assigned"
        assert result.assigned_at is not None
        assert _reload(agent).is_on_delivery is True
        [event] = publisher.of_type(DeliveryAssigned)
        assert event.agent_id == agent.id
        assert event.aggregate_id == order.id

    def test_busy_agent_leaves_order_unassigned(self, service, make_order, agent):
        DeliveryAgent.objects.filter(id=agent.id).update(is_on_delivery=True)
        order = make_order(status="confirmed")

        with pytest.raises(AgentUnavailable):
            service.assign_order(order.id, agent.id)

        order = _reload(order)
        assert order.delivery_agent_id is None
        assert order.delivery_status is None

    def test_offline_agent(self, service, make_order, make_agent):
        offline = make_agent(is_available=False)

        with pytest.raises(AgentUnavailable):
            service.assign_order(make_order(status="confirmed").id, offline.id)

    def test_already_assigned_order(self, service, assigned, make_agent):
        second = make_agent()

        with pytest.raises(OrderNotAssignable):
            service.assign_order(assigned.id, second.id)

        assert _reload(second).is_on_delivery is False

    @pytest.mark.parametrize("status", ["pending", "out_for_delivery", "delivered", "cancelled"])
    def test_order_not_in_assignable_state(self, service, make_order, agent, status):
        with pytest.raises(OrderNotAssignable):
            service.assign_order(make_order(status=status).id, agent.id)

        assert _reload(agent).is_on_delivery is False

    def test_unknown_order(self, service, agent):
        with pytest.raises(OrderNotFound):
            service.assign_order(uuid4(), agent.id)

    def test_assignment_invalidates_agent_views(self, service, make_order, agent, cache_backend):
        cache_backend.store[build_key("active_delivery", agent.id)] = None

        service.assign_order(make_order(status="confirmed").id, agent.id)

        assert build_key("active_delivery", agent.id) not in cache_backend.store


class TestAutoAssign:
    def test_picks_best_scored_agent(self, service, make_order, make_agent):
        make_agent(latitude=PICKUP_LAT + 0.03, rating="5.00")
        best = make_agent(latitude=PICKUP_LAT + 0.001, rating="4.00")
        make_agent(latitude=PICKUP_LAT + 0.0005, is_available=False)

        result = service.auto_assign(make_order(status="confirmed").id)

        assert result.delivery_agent_id == best.id

    def test_skips_agent_taken_meanwhile(self, publisher, read_cache, make_order, make_agent):
        taken = make_agent(latitude=PICKUP_LAT + 0.001)
        fallback = make_agent(latitude=PICKUP_LAT + 0.002)
        service = _service(publisher, read_cache, FlakyAgentRepository([taken.id]))

        result = service.auto_assign(make_order(status="confirmed").id)

        assert result.delivery_agent_id == fallback.id

    def test_nobody_in_radius(self, service, make_order, make_agent):
        make_agent(latitude=PICKUP_LAT + 1.0)

        with pytest.raises(NoAgentAvailable):
            service.auto_assign(make_order(status="confirmed").id, radius_km=5)

    def test_zero_radius_is_not_replaced_by_default(self, service, make_order, make_agent):
        make_agent(latitude=PICKUP_LAT + 0.001)
        order = make_order(status="confirmed")

        with pytest.raises(NoAgentAvailable):
            service.auto_assign(order.id, radius_km=0)

        assert _reload(order).delivery_agent_id is None

    def test_restaurant_without_coordinates(self, service, make_order, restaurant, agent):
        Restaurant.objects.filter(id=restaurant.id).update(latitude=None, longitude=None)

        with pytest.raises(MissingPickupLocation):
            service.auto_assign(make_order(status="confirmed").id)

    def test_restaurant_assigns_own_order(self, service, actor_for, restaurant_user, make_order, agent):
        order = make_order(status="ready_for_pickup")

        result = service.assign_for_restaurant(actor_for(restaurant_user), order.id)

        assert result.delivery_agent_id == agent.id

    def test_restaurant_cannot_assign_foreign_order(self, service, actor_for, make_user, make_order, agent):
        owner = make_user("restaurant")
        Restaurant.objects.create(owner=owner, name="Rival", address="3 Road")

        with pytest.raises(OrderNotFound):
            service.assign_for_restaurant(actor_for(owner), make_order(status="confirmed").id, agent.id)

    def test_caller_without_restaurant(self, service, actor_for, customer, make_order):
        with pytest.raises(OrderActionForbidden):
            service.assign_for_restaurant(actor_for(customer), make_order(status="confirmed").id)


# ---------------------------------------------------------------------------
# Agent-side lifecycle
# ---------------------------------------------------------------------------


class TestDeliveryLifecycle:
    def test_full_lifecycle_delivers_order(self, service, assigned, rider, agent, publisher):
        service.accept_delivery(rider, assigned.id)
        Order.objects.filter(id=assigned.id).update(status="ready_for_pickup")

        for status in AGENT_LIFECYCLE:
            result = service.update_delivery_status(rider, assigned.id, status)

        order = _reload(assigned)
        agent = _reload(agent)
        assert result.status == "delivered"
        assert result.delivery_status == "delivered"
        assert order.accepted_at is not None
        assert order.picked_up_at is not None
        assert order.out_for_delivery_at is not None
        assert order.delivered_at is not None
        assert agent.is_on_delivery is False
        assert agent.total_deliveries == 1
        assert agent.total_earnings == Decimal("2.99")
        assert len(publisher.of_type(DeliveryStatusChanged)) == len(AGENT_LIFECYCLE) + 1

    def test_pickup_moves_ready_order_out_for_delivery(self, service, assigned, rider):
        Order.objects.filter(id=assigned.id).update(
            status="ready_for_pickup", delivery_status="arrived_at_restaurant"
        )

        result = service.update_delivery_status(rider, assigned.id, "picked_up")

        assert result.status == "out_for_delivery"

    def test_pickup_before_food_is_ready_keeps_order_status(self, service, assigned, rider):
        Order.objects.filter(id=assigned.id).update(delivery_status="arrived_at_restaurant")

        result = service.update_delivery_status(rider, assigned.id, "picked_up")

        assert result.status == "confirmed"
        assert result.delivery_status == "picked_up"

    def test_delivered_while_order_lags_credits_agent_only(self, service, assigned, rider, agent):
        Order.objects.filter(id=assigned.id).update(
            status="preparing", delivery_status="arrived_at_customer"
        )

        result = service.update_delivery_status(rider, assigned.id, "delivered")

        agent = _reload(agent)
        assert result.status == "preparing"
        assert result.delivery_status == "delivered"
        assert agent.is_on_delivery is False
        assert agent.total_deliveries == 1

    def test_restaurant_closing_lagging_order_does_not_credit_twice(
        self, service, make_order, agent, rider, actor_for, restaurant_user, publisher, read_cache
    ):
        first = make_order(status="preparing")
        service.assign_order(first.id, agent.id)
        service.accept_delivery(rider, first.id)
        for status in AGENT_LIFECYCLE:
            service.update_delivery_status(rider, first.id, status)
        second = make_order(status="confirmed")
        service.assign_order(second.id, agent.id)

        orders = OrderService(
            OrderDjangoRepository(),
            RestaurantDjangoRepository(),
            MenuItemDjangoRepository(),
            DeliveryAgentDjangoRepository(),
            publisher=publisher,
            cache=read_cache,
        )
        owner = actor_for(restaurant_user)
        for status in ("ready_for_pickup", "out_for_delivery", "delivered"):
            orders.update_status(owner, first.id, status)

        agent = _reload(agent)
        assert _reload(first).status == "delivered"
        assert agent.total_deliveries == 1
        assert agent.total_earnings == Decimal("2.99")
        assert agent.is_on_delivery is True
        assert _reload(second).delivery_agent_id == agent.id

    def test_cannot_skip_pickup(self, service, assigned, rider):
        service.accept_delivery(rider, assigned.id)

        with pytest.raises(InvalidTransition) as exc_info:
            service.update_delivery_status(rider, assigned.id, "en_route_to_customer")

        assert exc_info.value.machine == "delivery"
        assert _reload(assigned).delivery_status == "accepted"

    def test_reject_releases_agent_for_reassignment(
        self, service, assigned, rider, agent, make_agent, publisher
    ):
        result = service.reject_delivery(rider, assigned.id, reason="Flat tyre")

        assert result.delivery_agent_id is None
        assert result.delivery_status is None
        assert _reload(agent).is_on_delivery is False
        [event] = publisher.of_type(DeliveryRejected)
        assert event.reason == "Flat tyre"

        other = make_agent()
        reassigned = service.assign_order(assigned.id, other.id)
        assert reassigned.delivery_agent_id == other.id

    def test_agent_cancels_accepted_delivery(self, service, assigned, rider, agent):
        service.accept_delivery(rider, assigned.id)

        result = service.update_delivery_status(rider, assigned.id, "cancelled")

        assert result.delivery_agent_id is None
        assert result.status == "confirmed"
        assert _reload(agent).is_on_delivery is False

    def test_only_assignee_can_update(self, service, assigned, make_agent, actor_for):
        stranger = make_agent()

        with pytest.raises(NotAssignedAgent):
            service.accept_delivery(actor_for(stranger.user), assigned.id)

    def test_order_without_delivery(self, service, make_order, rider):
        with pytest.raises(DeliveryNotFound):
            service.accept_delivery(rider, make_order(status="confirmed").id)

    def test_caller_without_agent_profile(self, service, assigned, actor_for, customer):
        with pytest.raises(AgentNotFound):
            service.accept_delivery(actor_for(customer), assigned.id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestDeliveryQueries:
    def test_active_delivery(self, service, assigned, rider):
        active = service.active_delivery(rider)

        assert active.id == assigned.id

    def test_idle_agent_has_no_active_delivery(self, service, rider):
        assert service.active_delivery(rider) is None

    def test_history_filters_by_delivery_status(self, service, make_order, agent, rider):
        done = make_order(status="delivered", agent=agent, delivery_status="delivered")
        make_order(status="confirmed", agent=agent, delivery_status="accepted")

        everything = service.delivery_history(rider)
        delivered = service.delivery_history(rider, {"status": "delivered"})

        assert len(everything) == 2
        assert [o.id for o in delivered] == [done.id]
