"""Django ORM implementations of the restaurant / menu repositories.

Methods return ``None`` for missing rows; the Service Layer decides how to
translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.filters import apply_filterset
from modules.restaurants.filters import MenuItemFilter, RestaurantFilter
from modules.restaurants.models import MenuItem, Restaurant
from modules.restaurants.repositories.interfaces import (
    IMenuItemRepository,
    IRestaurantRepository,
)

logger = structlog.get_logger(__name__)


class RestaurantDjangoRepository(IRestaurantRepository):
    def get_by_id(self, id: str) -> Optional[Restaurant]:
        try:
            return Restaurant.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_owner(self, owner_id: str) -> Optional[Restaurant]:
        try:
            return Restaurant.objects.alive().filter(owner_id=owner_id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Restaurant]:
        queryset = Restaurant.objects.alive().order_by("name", "id")
        return list(apply_filterset(RestaurantFilter, filters, queryset))

    @transaction.atomic
    def save(self, entity: Restaurant) -> Restaurant:
        entity.save()
        logger.info("restaurant.saved", restaurant_id=str(entity.id))
        return entity


class MenuItemDjangoRepository(IMenuItemRepository):
    def get_by_id(self, id: str) -> Optional[MenuItem]:
        try:
            return MenuItem.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[MenuItem]:
        queryset = MenuItem.objects.alive().filter(restaurant_id=restaurant_id)
        return list(apply_filterset(MenuItemFilter, filters, queryset))

    def get_many(self, restaurant_id: str, ids: Iterable[str]) -> List[MenuItem]:
        return list(
            MenuItem.objects.alive().filter(restaurant_id=restaurant_id, id__in=list(ids))
        )

    def categories(self, restaurant_id: str) -> List[str]:
        return list(
            MenuItem.objects.alive()
            .filter(restaurant_id=restaurant_id)
            .order_by("category")
            .values_list("category", flat=True)
            .distinct()
        )

    @transaction.atomic
    def save(self, entity: MenuItem) -> MenuItem:
        entity.save()
        logger.info("menu_item.saved", menu_item_id=str(entity.id))
        return entity

    @transaction.atomic
    def disable(self, entity: MenuItem) -> MenuItem:
        entity.is_available = False
        entity.save(update_fields=["is_available"])
        entity.delete()
        logger.info("menu_item.disabled", menu_item_id=str(entity.id))
        return entity
