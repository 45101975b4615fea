"""Django ORM implementation of the Order repository.

All write operations run inside ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + history) is persisted atomically.

Status changes lock the row with ``select_for_update()``; agent
assignment is a conditional UPDATE whose WHERE clause re-checks that the
order is still unassigned and assignable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from modules.core.filters import apply_filterset
from modules.orders.constants import (
    ASSIGNABLE_ORDER_STATES,
    TERMINAL_DELIVERY_STATES,
    DeliveryStatus,
    OrderStatus,
)
from modules.orders.filters import DeliveryFilter, OrderFilter
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_ZERO = Decimal("0.00")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self):
        return Order.objects.prefetch_related("items")

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            restaurant_id=data["restaurant_id"],
            delivery_address=data["delivery_address"],
            special_instructions=data.get("special_instructions", ""),
            delivery_fee=data["delivery_fee"],
        )
        order.save()

        total = _ZERO
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                menu_item_id=item_data["menu_item_id"],
                name=item_data["name"],
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total_amount = total + order.delivery_fee
        order.save(update_fields=["total_amount"])

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_for_user(self, user_id: str, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._base_queryset().filter(user_id=user_id).order_by("-created_at", "-id")
        return list(apply_filterset(OrderFilter, filters, queryset))

    def list_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[Order]:
        queryset = (
            self._base_queryset()
            .filter(restaurant_id=restaurant_id)
            .order_by("-created_at", "-id")
        )
        return list(apply_filterset(OrderFilter, filters, queryset))

    def list_for_agent(self, agent_id: str, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = (
            self._base_queryset()
            .filter(delivery_agent_id=agent_id)
            .order_by("-assigned_at", "-id")
        )
        return list(apply_filterset(DeliveryFilter, filters, queryset))

    def active_delivery_for_agent(self, agent_id: str) -> Optional[Order]:
        return (
            self._base_queryset()
            .filter(delivery_agent_id=agent_id, delivery_status__isnull=False)
            .exclude(delivery_status__in=TERMINAL_DELIVERY_STATES)
            .order_by("-assigned_at")
            .first()
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def stats_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        queryset = apply_filterset(
            OrderFilter, filters, Order.objects.filter(restaurant_id=restaurant_id)
        )
        totals = queryset.aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("total_amount"),
            average_order_value=Avg("total_amount"),
        )
        breakdown = {status.value: 0 for status in OrderStatus}
        for row in queryset.order_by().values("status").annotate(count=Count("id")):
            breakdown[row["status"]] = row["count"]

        average = totals["average_order_value"] or _ZERO
        return {
            "total_orders": totals["total_orders"],
            "total_revenue": totals["total_revenue"] or _ZERO,
            "average_order_value": Decimal(average).quantize(Decimal("0.01")),
            "status_breakdown": breakdown,
        }

    def stats_for_agent(self, agent_id: str) -> Dict[str, Any]:
        delivered = Q(delivery_status=DeliveryStatus.DELIVERED.value)
        totals = Order.objects.filter(delivery_agent_id=agent_id).aggregate(
            total_deliveries=Count("id"),
            completed_deliveries=Count("id", filter=delivered),
            total_earnings=Sum("delivery_fee", filter=delivered),
        )
        totals["total_earnings"] = totals["total_earnings"] or _ZERO
        return totals

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def try_assign(self, order_id: str, agent_id: str) -> bool:
        updated = Order.objects.filter(
            id=order_id,
            delivery_agent__isnull=True,
            status__in=ASSIGNABLE_ORDER_STATES,
        ).update(
            delivery_agent_id=agent_id,
            delivery_status=DeliveryStatus.ASSIGNED.value,
            assigned_at=timezone.now(),
            accepted_at=None,
            picked_up_at=None,
            updated_at=timezone.now(),
        )
        logger.info(
            "order.assign_attempted",
            order_id=str(order_id),
            agent_id=str(agent_id),
            assigned=bool(updated),
        )
        return bool(updated)

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by: Optional[Any] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_by_id=changed_by,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history
