"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``PlaceOrderDTO``: input for order placement.
- ``OrderOutputDTO``: the full order, cached and rendered by the views.
- ``OrderStatsDTO``: restaurant dashboard figures.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PlaceOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item_id: UUID
    quantity: int = Field(ge=1)


class PlaceOrderDTO(BaseModel):
    """Validates:
    - at least one item;
    - no duplicated menu items (quantities must be merged by the client);
    - a non-blank delivery address.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    restaurant_id: UUID
    items: List[PlaceOrderItemDTO]
    delivery_address: str
    special_instructions: str = ""

    @field_validator("items")
    @classmethod
    def items_not_empty_and_unique(cls, v: List[PlaceOrderItemDTO]) -> List[PlaceOrderItemDTO]:
        if not v:
            raise ValueError("Order must contain at least one item.")
        ids = [item.menu_item_id for item in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate menu items are not allowed.")
        return v

    @field_validator("delivery_address")
    @classmethod
    def address_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Delivery address is required.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    menu_item_id: UUID
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @classmethod
    def from_entity(cls, item: OrderItem) -> OrderItemOutputDTO:
        return cls(
            id=item.id,
            menu_item_id=item.menu_item_id,
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
        )


class OrderOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    user_id: UUID
    restaurant_id: UUID
    delivery_agent_id: Optional[UUID]
    status: str
    delivery_status: Optional[str]
    total_amount: Decimal
    delivery_fee: Decimal
    delivery_address: str
    special_instructions: str
    rejection_reason: str
    items: List[OrderItemOutputDTO]
    confirmed_at: Optional[datetime]
    preparing_at: Optional[datetime]
    ready_at: Optional[datetime]
    out_for_delivery_at: Optional[datetime]
    delivered_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    rejected_at: Optional[datetime]
    assigned_at: Optional[datetime]
    accepted_at: Optional[datetime]
    picked_up_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        return cls(
            id=order.id,
            user_id=order.user_id,
            restaurant_id=order.restaurant_id,
            delivery_agent_id=order.delivery_agent_id,
            status=order.status,
            delivery_status=order.delivery_status,
            total_amount=order.total_amount,
            delivery_fee=order.delivery_fee,
            delivery_address=order.delivery_address,
            special_instructions=order.special_instructions,
            rejection_reason=order.rejection_reason,
            items=[OrderItemOutputDTO.from_entity(item) for item in order.items.all()],
            confirmed_at=order.confirmed_at,
            preparing_at=order.preparing_at,
            ready_at=order.ready_at,
            out_for_delivery_at=order.out_for_delivery_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            rejected_at=order.rejected_at,
            assigned_at=order.assigned_at,
            accepted_at=order.accepted_at,
            picked_up_at=order.picked_up_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    total_revenue: Decimal
    average_order_value: Decimal
    status_breakdown: Dict[str, int]
