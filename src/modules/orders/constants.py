"""Order domain constants.

Status choices and the allowed-transition tables for the order and the
delivery-assignment state machines.  Tables are keyed by the raw string
value so lookups work for both plain strings and ``TextChoices`` members.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PREPARING = "preparing", "Preparing"
    READY_FOR_PICKUP = "ready_for_pickup", "Ready for pickup"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REJECTED = "rejected", "Rejected"


class DeliveryStatus(models.TextChoices):
    ASSIGNED = "assigned", "Assigned"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    EN_ROUTE_TO_RESTAURANT = "en_route_to_restaurant", "En route to restaurant"
    ARRIVED_AT_RESTAURANT = "arrived_at_restaurant", "Arrived at restaurant"
    PICKED_UP = "picked_up", "Picked up"
    EN_ROUTE_TO_CUSTOMER = "en_route_to_customer", "En route to customer"
    ARRIVED_AT_CUSTOMER = "arrived_at_customer", "Arrived at customer"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


_O = OrderStatus
_D = DeliveryStatus

ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    _O.PENDING.value: frozenset(
        {_O.CONFIRMED.value, _O.CANCELLED.value, _O.REJECTED.value}
    ),
    _O.CONFIRMED.value: frozenset({_O.PREPARING.value, _O.CANCELLED.value}),
    _O.PREPARING.value: frozenset({_O.READY_FOR_PICKUP.value, _O.CANCELLED.value}),
    _O.READY_FOR_PICKUP.value: frozenset(
        {_O.OUT_FOR_DELIVERY.value, _O.CANCELLED.value}
    ),
    _O.OUT_FOR_DELIVERY.value: frozenset({_O.DELIVERED.value}),
    _O.DELIVERED.value: frozenset(),
    _O.CANCELLED.value: frozenset(),
    _O.REJECTED.value: frozenset(),
}

DELIVERY_TRANSITIONS: dict[str, frozenset[str]] = {
    _D.ASSIGNED.value: frozenset(
        {_D.ACCEPTED.value, _D.REJECTED.value, _D.CANCELLED.value}
    ),
    _D.ACCEPTED.value: frozenset(
        {_D.EN_ROUTE_TO_RESTAURANT.value, _D.CANCELLED.value}
    ),
    _D.EN_ROUTE_TO_RESTAURANT.value: frozenset(
        {_D.ARRIVED_AT_RESTAURANT.value, _D.CANCELLED.value}
    ),
    _D.ARRIVED_AT_RESTAURANT.value: frozenset({_D.PICKED_UP.value, _D.CANCELLED.value}),
    _D.PICKED_UP.value: frozenset({_D.EN_ROUTE_TO_CUSTOMER.value, _D.CANCELLED.value}),
    _D.EN_ROUTE_TO_CUSTOMER.value: frozenset(
        {_D.ARRIVED_AT_CUSTOMER.value, _D.CANCELLED.value}
    ),
    _D.ARRIVED_AT_CUSTOMER.value: frozenset({_D.DELIVERED.value, _D.CANCELLED.value}),
    _D.DELIVERED.value: frozenset(),
    _D.REJECTED.value: frozenset(),
    _D.CANCELLED.value: frozenset(),
}

TERMINAL_ORDER_STATES: frozenset[str] = frozenset(
    {_O.DELIVERED.value, _O.CANCELLED.value, _O.REJECTED.value}
)
TERMINAL_DELIVERY_STATES: frozenset[str] = frozenset(
    {_D.DELIVERED.value, _D.CANCELLED.value, _D.REJECTED.value}
)

# Order states in which an agent may be (re)assigned.
ASSIGNABLE_ORDER_STATES: frozenset[str] = frozenset(
    {_O.CONFIRMED.value, _O.PREPARING.value, _O.READY_FOR_PICKUP.value}
)

ORDER_TIMESTAMP_FIELDS: dict[str, str] = {
    _O.CONFIRMED.value: "confirmed_at",
    _O.PREPARING.value: "preparing_at",
    _O.READY_FOR_PICKUP.value: "ready_at",
    _O.OUT_FOR_DELIVERY.value: "out_for_delivery_at",
    _O.DELIVERED.value: "delivered_at",
    _O.CANCELLED.value: "cancelled_at",
    _O.REJECTED.value: "rejected_at",
}

DELIVERY_TIMESTAMP_FIELDS: dict[str, str] = {
    _D.ASSIGNED.value: "assigned_at",
    _D.ACCEPTED.value: "accepted_at",
    _D.PICKED_UP.value: "picked_up_at",
    _D.DELIVERED.value: "delivered_at",
}

DEFAULT_DELIVERY_FEE = Decimal("2.99")

# Cache TTLs (seconds)
PENDING_ORDERS_CACHE_TTL = 30
RESTAURANT_ORDERS_CACHE_TTL = 60
ORDER_DETAIL_CACHE_TTL = 120
ORDER_STATS_CACHE_TTL = 300

ORDER_EVENTS_TOPIC = "order-events"
