"""Restaurant domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, Forbidden, NotFound


class RestaurantNotFound(NotFound):
    default_message = "Restaurant not found."


class RestaurantAlreadyExists(Conflict):
    default_message = "This account already has a restaurant profile."


class MenuItemNotFound(NotFound):
    default_message = "Menu item not found."


class NotMenuItemOwner(Forbidden):
    default_message = "Menu item belongs to another restaurant."
