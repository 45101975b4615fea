"""Order and delivery-assignment state machines.

Both machines are a static adjacency table (see ``constants``).  A
successful transition sets the new status and stamps the timestamp field
mapped to it; persisting the change (under a row lock) is the caller's job.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from django.utils import timezone

from modules.core.exceptions import StateConflict
from modules.orders.constants import (
    DELIVERY_TIMESTAMP_FIELDS,
    DELIVERY_TRANSITIONS,
    ORDER_TIMESTAMP_FIELDS,
    ORDER_TRANSITIONS,
)

if TYPE_CHECKING:
    from modules.orders.models import Order


class InvalidTransition(StateConflict):
    """The target status is not reachable from the current one."""

    def __init__(self, from_status: Optional[str], to_status: str, machine: str = "order") -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.machine = machine
        super().__init__(
            f"Invalid {machine} status transition from '{from_status}' to '{to_status}'."
        )


def can_transition(current: str, target: str) -> bool:
    return str(target) in ORDER_TRANSITIONS.get(str(current), frozenset())


def can_transition_delivery(current: Optional[str], target: str) -> bool:
    if current is None:
        return False
    return str(target) in DELIVERY_TRANSITIONS.get(str(current), frozenset())


def transition(order: Order, target: str, now: Optional[datetime] = None) -> str:
    """Move ``order.status`` to ``target``.

    Returns the previous status.

    Raises:
        InvalidTransition: ``target`` is not allowed from the current status.
    """
    previous = str(order.status)
    target = str(target)
    if not can_transition(previous, target):
        raise InvalidTransition(previous, target)

    order.status = target
    field = ORDER_TIMESTAMP_FIELDS.get(target)
    if field:
        setattr(order, field, now or timezone.now())
    return previous


def transition_delivery(order: Order, target: str, now: Optional[datetime] = None) -> Optional[str]:
    """Move ``order.delivery_status`` to ``target``.

    Returns the previous delivery status.

    Raises:
        InvalidTransition: ``target`` is not allowed from the current
            delivery status (or the order has no delivery yet).
    """
    previous = order.delivery_status
    target = str(target)
    if not can_transition_delivery(previous, target):
        raise InvalidTransition(previous, target, machine="delivery")

    order.delivery_status = target
    field = DELIVERY_TIMESTAMP_FIELDS.get(target)
    if field:
        setattr(order, field, now or timezone.now())
    return previous
