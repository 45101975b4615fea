"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
translated into the error envelope by ``api_exception_handler``.
Invalid status transitions raise ``state_machine.InvalidTransition``.
"""

from __future__ import annotations

from modules.core.exceptions import Forbidden, NotFound, StateConflict, ValidationFailed


class OrderNotFound(NotFound):
    """The order does not exist or is not visible to the caller."""

    default_message = "Order not found."


class RestaurantOffline(StateConflict):
    default_message = "Restaurant is not accepting orders right now."


class MenuItemUnavailable(ValidationFailed):
    """A menu item does not belong to the restaurant or is unavailable."""

    default_message = "One or more menu items are not available."


class OrderActionForbidden(Forbidden):
    default_message = "You are not allowed to change this order."
