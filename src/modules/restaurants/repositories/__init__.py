"""Restaurant repositories package."""

from modules.restaurants.repositories.django_repository import (
    MenuItemDjangoRepository,
    RestaurantDjangoRepository,
)
from modules.restaurants.repositories.interfaces import (
    IMenuItemRepository,
    IRestaurantRepository,
)

__all__ = [
    "IMenuItemRepository",
    "IRestaurantRepository",
    "MenuItemDjangoRepository",
    "RestaurantDjangoRepository",
]
