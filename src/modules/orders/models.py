"""Order, OrderItem, and OrderStatusHistory models.

- ``status`` follows the order state machine; ``delivery_status`` follows
  the delivery-assignment machine and is ``NULL`` until an agent is assigned.
- Status-specific timestamps are stamped by ``state_machine``.
- OrderItem snapshots the menu item name and price at creation time
  (``unit_price``); later menu changes never alter historical totals.
- OrderItem ``subtotal`` is always ``quantity * unit_price``.
- Every order-status change is appended to ``OrderStatusHistory``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    DEFAULT_DELIVERY_FEE,
    TERMINAL_DELIVERY_STATES,
    TERMINAL_ORDER_STATES,
    DeliveryStatus,
    OrderStatus,
)


class Order(BaseModel):
    """Order aggregate root (Order + OrderItems + status history)."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    restaurant = models.ForeignKey(
        "restaurants.Restaurant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    delivery_agent = models.ForeignKey(
        "agents.DeliveryAgent",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    delivery_status = models.CharField(
        max_length=30,
        choices=DeliveryStatus.choices,
        null=True,
        blank=True,
    )
    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    delivery_fee = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=DEFAULT_DELIVERY_FEE,
    )
    delivery_address = models.TextField()
    special_instructions = models.TextField(blank=True, default="")
    rejection_reason = models.TextField(blank=True, default="")

    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    out_for_delivery_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["restaurant", "status"], name="orders_rest_status_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
            models.Index(
                fields=["delivery_agent", "delivery_status"],
                name="orders_agent_dstatus_idx",
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATES

    @property
    def has_active_delivery(self) -> bool:
        return (
            self.delivery_agent_id is not None
            and self.delivery_status is not None
            and self.delivery_status not in TERMINAL_DELIVERY_STATES
        )

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"


class OrderItem(BaseModel):
    """Line item; ``name`` and ``unit_price`` are snapshots."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
    )
    menu_item = models.ForeignKey(
        "restaurants.MenuItem",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    name = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity} (${self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``changed_by`` is ``None`` when the change was made by the system
    (e.g. a delivery update moving the order forward).
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
