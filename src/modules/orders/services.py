"""Order service layer (Use Cases).

Orchestrates order placement, the order status machine and the per-role
read models.  Every write follows the same shape:

1. Inside ``transaction.atomic()``: lock the order row, run the state
   machine, apply the cross-aggregate effects on the delivery agent and
   append the status history.
2. After the transaction: invalidate the affected cache keys and publish
   the domain events (both best-effort, never raised).

Cache keys owned here:

- ``order:{id}``                        detail, 2 min
- ``orders:{restaurant_id}:{filters}``  restaurant listing, 1 min
- ``pending_orders:{restaurant_id}``    pending queue, 30 s
- ``order_stats:{restaurant_id}:{filters}`` dashboard, 5 min
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.agents.constants import DELIVERY_EVENTS_TOPIC
from modules.agents.events import DeliveryStatusChanged
from modules.orders.constants import (
    DEFAULT_DELIVERY_FEE,
    ORDER_DETAIL_CACHE_TTL,
    ORDER_EVENTS_TOPIC,
    ORDER_STATS_CACHE_TTL,
    PENDING_ORDERS_CACHE_TTL,
    RESTAURANT_ORDERS_CACHE_TTL,
    TERMINAL_DELIVERY_STATES,
    DeliveryStatus,
    OrderStatus,
)
from modules.orders.dtos import OrderOutputDTO, OrderStatsDTO
from modules.orders.events import (
    OrderCancelled,
    OrderPlaced,
    OrderRejected,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    MenuItemUnavailable,
    OrderActionForbidden,
    OrderNotFound,
    RestaurantOffline,
)
from modules.orders.state_machine import InvalidTransition, transition, transition_delivery
from modules.restaurants.exceptions import RestaurantNotFound
from modules.users.constants import UserRole
from shared.infrastructure.bus import event_publisher
from shared.infrastructure.cache import (
    ReadThroughCache,
    build_key,
    log_degraded,
    read_through_cache,
)

if TYPE_CHECKING:
    from modules.agents.repositories.interfaces import IDeliveryAgentRepository
    from modules.core.authentication import AuthenticatedUser
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.restaurants.models import Restaurant
    from modules.restaurants.repositories.interfaces import (
        IMenuItemRepository,
        IRestaurantRepository,
    )
    from shared.domain.bus import IEventPublisher
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Shared write helpers (also used by the delivery service)
# ---------------------------------------------------------------------------


@dataclass
class StatusChange:
    """Outcome of one order-status transition, consumed after commit."""

    order: Order
    old_status: str
    new_status: str
    agent_id: Optional[UUID] = None
    closed_delivery_from: Optional[str] = None
    events: List[tuple[str, DomainEvent]] = field(default_factory=list)


def apply_status_change(
    order: Order,
    target: str,
    order_repository: IOrderRepository,
    agent_repository: IDeliveryAgentRepository,
    changed_by: Optional[UUID] = None,
    notes: str = "",
) -> StatusChange:
    """Transition a locked order and apply the agent-side effects.

    Must run inside the caller's transaction.

    - ``delivered`` with an open delivery: the delivery is closed and the
      agent's ``is_on_delivery`` flag is cleared with the delivery count
      and earnings bumped, in the same transaction.  A delivery the agent
      already closed was credited then and is left alone.
    - ``cancelled`` / ``rejected`` with an open delivery: the delivery is
      cancelled and the agent released.

    Raises:
        InvalidTransition: ``target`` is not allowed from the current status.
    """
    old_status = transition(order, target)
    agent_id = order.delivery_agent_id
    change = StatusChange(order=order, old_status=old_status, new_status=order.status, agent_id=agent_id)

    if agent_id is not None:
        delivery_open = (
            order.delivery_status is not None
            and order.delivery_status not in TERMINAL_DELIVERY_STATES
        )
        if order.status == OrderStatus.DELIVERED.value:
            if delivery_open:
                change.closed_delivery_from = order.delivery_status
                order.delivery_status = DeliveryStatus.DELIVERED.value
                agent_repository.record_completed_delivery(str(agent_id), order.delivery_fee)
        elif delivery_open and order.status in (
            OrderStatus.CANCELLED.value,
            OrderStatus.REJECTED.value,
        ):
            change.closed_delivery_from = transition_delivery(order, DeliveryStatus.CANCELLED.value)
            agent_repository.release(str(agent_id))

    order_repository.save(order)
    order_repository.add_history(
        order_id=order.id,
        new_status=order.status,
        old_status=old_status,
        changed_by=changed_by,
        notes=notes,
    )

    change.events.append(
        (
            ORDER_EVENTS_TOPIC,
            OrderStatusChanged(
                aggregate_id=order.id,
                restaurant_id=order.restaurant_id,
                user_id=order.user_id,
                old_status=old_status,
                new_status=order.status,
            ),
        )
    )
    if change.closed_delivery_from is not None:
        change.events.append(
            (
                DELIVERY_EVENTS_TOPIC,
                DeliveryStatusChanged(
                    aggregate_id=order.id,
                    agent_id=agent_id,
                    old_status=change.closed_delivery_from,
                    new_status=order.delivery_status,
                ),
            )
        )
    return change


def invalidate_order_caches(
    order_id: UUID | str,
    restaurant_id: UUID | str,
    agent_id: Optional[UUID | str] = None,
    cache: Optional[ReadThroughCache] = None,
) -> None:
    """Drop every cached view an order write can make stale."""
    cache = cache or read_through_cache
    results = [
        cache.invalidate(
            build_key("order", order_id),
            build_key("pending_orders", restaurant_id),
        ),
        cache.invalidate_prefix(f"{build_key('orders', restaurant_id)}:"),
        cache.invalidate_prefix(f"{build_key('order_stats', restaurant_id)}:"),
    ]
    if agent_id is not None:
        results.append(
            cache.invalidate(
                build_key("active_delivery", agent_id),
                build_key("agent", agent_id),
                build_key("agent_stats", agent_id),
            )
        )
        results.append(cache.invalidate_prefix(f"{build_key('delivery_history', agent_id)}:"))
    log_degraded(*results, order_id=str(order_id))


def publish_all(publisher: IEventPublisher, events: List[tuple[str, DomainEvent]]) -> None:
    for topic, event in events:
        log_degraded(publisher.publish(topic, event), topic=topic)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        restaurant_repository: IRestaurantRepository,
        menu_repository: IMenuItemRepository,
        agent_repository: IDeliveryAgentRepository,
        publisher: Optional[IEventPublisher] = None,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._order_repo = order_repository
        self._restaurant_repo = restaurant_repository
        self._menu_repo = menu_repository
        self._agent_repo = agent_repository
        self._publisher = publisher or event_publisher
        self._cache = cache or read_through_cache

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, actor: AuthenticatedUser, dto: PlaceOrderDTO) -> OrderOutputDTO:
        """Place a new order with snapshotted item prices.

        Raises:
            RestaurantNotFound: restaurant does not exist.
            RestaurantOffline: restaurant is not accepting orders.
            MenuItemUnavailable: an item is unknown, foreign or unavailable.
        """
        log = logger.bind(user_id=str(actor.user_id), restaurant_id=str(dto.restaurant_id))
        restaurant = self._restaurant_repo.get_by_id(str(dto.restaurant_id))
        if not restaurant:
            raise RestaurantNotFound()
        if not restaurant.is_online:
            log.warning("order.restaurant_offline")
            raise RestaurantOffline()

        requested = [item.menu_item_id for item in dto.items]
        menu_items = {
            item.id: item
            for item in self._menu_repo.get_many(str(restaurant.id), [str(i) for i in requested])
        }
        rejected = [
            str(item_id)
            for item_id in requested
            if item_id not in menu_items or not menu_items[item_id].is_available
        ]
        if rejected:
            log.warning("order.items_unavailable", menu_item_ids=rejected)
            raise MenuItemUnavailable(details={"menu_item_ids": rejected})

        with transaction.atomic():
            order = self._order_repo.create(
                {
                    "user_id": actor.user_id,
                    "restaurant_id": restaurant.id,
                    "delivery_address": dto.delivery_address,
                    "special_instructions": dto.special_instructions,
                    "delivery_fee": DEFAULT_DELIVERY_FEE,
                    "items": [
                        {
                            "menu_item_id": menu_items[line.menu_item_id].id,
                            "name": menu_items[line.menu_item_id].name,
                            "quantity": line.quantity,
                            "unit_price": menu_items[line.menu_item_id].price,
                        }
                        for line in dto.items
                    ],
                }
            )
            self._order_repo.add_history(
                order_id=order.id,
                new_status=OrderStatus.PENDING.value,
                changed_by=actor.user_id,
                notes="Order placed",
            )

        log.info("order.placed", order_id=str(order.id), total_amount=str(order.total_amount))
        invalidate_order_caches(order.id, restaurant.id, cache=self._cache)
        publish_all(
            self._publisher,
            [
                (
                    ORDER_EVENTS_TOPIC,
                    OrderPlaced(
                        aggregate_id=order.id,
                        user_id=order.user_id,
                        restaurant_id=order.restaurant_id,
                        total_amount=order.total_amount,
                        item_count=len(dto.items),
                    ),
                )
            ],
        )
        return OrderOutputDTO.from_entity(self._order_repo.get_by_id(str(order.id)) or order)

    def update_status(
        self,
        actor: AuthenticatedUser,
        order_id: UUID | str,
        new_status: str,
        notes: str = "",
    ) -> OrderOutputDTO:
        """Run the order state machine on behalf of the owning restaurant.

        Raises:
            OrderNotFound: order does not exist or belongs to another restaurant.
            InvalidTransition: ``new_status`` is not allowed.
        """
        restaurant = self._require_restaurant(actor)
        return self._change_status(
            order_id,
            new_status,
            actor,
            notes=notes,
            authorize=lambda order: self._ensure_restaurant_order(order, restaurant),
        )

    def accept(self, actor: AuthenticatedUser, order_id: UUID | str) -> OrderOutputDTO:
        return self.update_status(actor, order_id, OrderStatus.CONFIRMED.value, notes="Accepted")

    def reject(self, actor: AuthenticatedUser, order_id: UUID | str, reason: str = "") -> OrderOutputDTO:
        restaurant = self._require_restaurant(actor)

        def authorize(order: Order) -> None:
            self._ensure_restaurant_order(order, restaurant)
            order.rejection_reason = reason

        return self._change_status(
            order_id,
            OrderStatus.REJECTED.value,
            actor,
            notes=reason,
            authorize=authorize,
            extra_event=lambda order: OrderRejected(
                aggregate_id=order.id,
                restaurant_id=order.restaurant_id,
                user_id=order.user_id,
                reason=reason,
            ),
        )

    def cancel(self, actor: AuthenticatedUser, order_id: UUID | str, reason: str = "") -> OrderOutputDTO:
        """Cancel as the ordering customer or the owning restaurant.

        An assigned agent is released in the same transaction.
        """
        if actor.role == UserRole.RESTAURANT.value:
            restaurant = self._require_restaurant(actor)

            def authorize(order: Order) -> None:
                self._ensure_restaurant_order(order, restaurant)

        elif actor.role == UserRole.CUSTOMER.value:

            def authorize(order: Order) -> None:
                if order.user_id != actor.user_id:
                    raise OrderNotFound()

        else:
            raise OrderActionForbidden()

        return self._change_status(
            order_id,
            OrderStatus.CANCELLED.value,
            actor,
            notes=reason or "Order cancelled",
            authorize=authorize,
            extra_event=lambda order: OrderCancelled(
                aggregate_id=order.id,
                restaurant_id=order.restaurant_id,
                user_id=order.user_id,
                cancelled_by=actor.user_id,
                reason=reason,
            ),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, actor: AuthenticatedUser, order_id: UUID | str) -> OrderOutputDTO:
        """Return an order visible to the caller (cached for 2 minutes).

        Visible to the customer who placed it, the restaurant that received
        it and the agent assigned to it.

        Raises:
            OrderNotFound: unknown order, or not visible to the caller.
        """

        def load() -> OrderOutputDTO:
            order = self._order_repo.get_by_id(str(order_id))
            if not order:
                raise OrderNotFound()
            return OrderOutputDTO.from_entity(order)

        dto = self._cache.get_or_set(build_key("order", order_id), load, ORDER_DETAIL_CACHE_TTL)
        if not self._can_view(actor, dto):
            logger.warning("order.foreign_access", order_id=str(order_id), user_id=str(actor.user_id))
            raise OrderNotFound()
        return dto

    def list_orders(
        self, actor: AuthenticatedUser, filters: Optional[Dict[str, Any]] = None
    ) -> List[OrderOutputDTO]:
        """Customers see their own orders; restaurants see received orders (cached 1 min)."""
        filters = filters or {}
        if actor.role == UserRole.CUSTOMER.value:
            return [
                OrderOutputDTO.from_entity(order)
                for order in self._order_repo.list_for_user(str(actor.user_id), filters)
            ]
        if actor.role == UserRole.RESTAURANT.value:
            restaurant = self._require_restaurant(actor)
            return self._cache.get_or_set(
                build_key("orders", restaurant.id, filters=filters),
                lambda: [
                    OrderOutputDTO.from_entity(order)
                    for order in self._order_repo.list_for_restaurant(str(restaurant.id), filters)
                ],
                RESTAURANT_ORDERS_CACHE_TTL,
            )
        raise OrderActionForbidden("Only customers and restaurants can list orders.")

    def pending_orders(self, actor: AuthenticatedUser) -> List[OrderOutputDTO]:
        restaurant = self._require_restaurant(actor)
        return self._cache.get_or_set(
            build_key("pending_orders", restaurant.id),
            lambda: [
                OrderOutputDTO.from_entity(order)
                for order in self._order_repo.list_for_restaurant(
                    str(restaurant.id), {"status": OrderStatus.PENDING.value}
                )
            ],
            PENDING_ORDERS_CACHE_TTL,
        )

    def stats(self, actor: AuthenticatedUser, filters: Optional[Dict[str, Any]] = None) -> OrderStatsDTO:
        restaurant = self._require_restaurant(actor)
        filters = filters or {}
        return self._cache.get_or_set(
            build_key("order_stats", restaurant.id, filters=filters),
            lambda: OrderStatsDTO(
                **self._order_repo.stats_for_restaurant(str(restaurant.id), filters)
            ),
            ORDER_STATS_CACHE_TTL,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _change_status(
        self,
        order_id: UUID | str,
        target: str,
        actor: AuthenticatedUser,
        notes: str = "",
        authorize=None,
        extra_event=None,
    ) -> OrderOutputDTO:
        with transaction.atomic():
            order = self._order_repo.get_for_update(str(order_id))
            if not order:
                raise OrderNotFound()
            if authorize is not None:
                authorize(order)

            log = logger.bind(order_id=str(order.id), current_status=order.status, new_status=target)
            try:
                change = apply_status_change(
                    order,
                    target,
                    self._order_repo,
                    self._agent_repo,
                    changed_by=actor.user_id,
                    notes=notes,
                )
            except InvalidTransition:
                log.warning("order.invalid_transition")
                raise
            if extra_event is not None:
                change.events.append((ORDER_EVENTS_TOPIC, extra_event(order)))

        log.info("order.status_updated", agent_id=str(change.agent_id) if change.agent_id else None)
        invalidate_order_caches(order.id, order.restaurant_id, change.agent_id, cache=self._cache)
        publish_all(self._publisher, change.events)
        return OrderOutputDTO.from_entity(self._order_repo.get_by_id(str(order.id)) or order)

    def _require_restaurant(self, actor: AuthenticatedUser) -> Restaurant:
        if actor.role != UserRole.RESTAURANT.value:
            raise OrderActionForbidden()
        restaurant = self._restaurant_repo.get_by_owner(str(actor.user_id))
        if not restaurant:
            raise RestaurantNotFound("No restaurant profile for this account.")
        return restaurant

    @staticmethod
    def _ensure_restaurant_order(order: Order, restaurant: Restaurant) -> None:
        if order.restaurant_id != restaurant.id:
            raise OrderNotFound()

    def _can_view(self, actor: AuthenticatedUser, dto: OrderOutputDTO) -> bool:
        if dto.user_id == actor.user_id:
            return True
        if actor.role == UserRole.RESTAURANT.value:
            restaurant = self._restaurant_repo.get_by_owner(str(actor.user_id))
            return restaurant is not None and restaurant.id == dto.restaurant_id
        if actor.role == UserRole.DELIVERY_AGENT.value and dto.delivery_agent_id:
            agent = self._agent_repo.get_by_user(str(actor.user_id))
            return agent is not None and agent.id == dto.delivery_agent_id
        return False
