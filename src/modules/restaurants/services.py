"""Restaurant and menu service layer (Use Cases).

Catalog reads are read-through cached:

- ``restaurants:{filters}``       listing, 5 min
- ``restaurant:{id}``             detail, 5 min
- ``menu:{restaurant_id}:{filters}`` menu, 5 min
- ``menu_item:{id}``              single item, 10 min
- ``menu_categories:{restaurant_id}`` categories, 30 min

Every write commits first, then invalidates the keys it affects before
returning, so a concurrent read cannot re-cache the old row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.restaurants.constants import (
    MENU_CACHE_TTL,
    MENU_CATEGORIES_CACHE_TTL,
    MENU_ITEM_CACHE_TTL,
    RESTAURANT_DETAIL_CACHE_TTL,
    RESTAURANT_LIST_CACHE_TTL,
)
from modules.restaurants.dtos import MenuItemOutputDTO, RestaurantOutputDTO
from modules.restaurants.exceptions import (
    MenuItemNotFound,
    NotMenuItemOwner,
    RestaurantAlreadyExists,
    RestaurantNotFound,
)
from modules.restaurants.models import MenuItem, Restaurant
from shared.infrastructure.cache import (
    ReadThroughCache,
    build_key,
    log_degraded,
    read_through_cache,
)

if TYPE_CHECKING:
    from modules.restaurants.dtos import (
        CreateMenuItemDTO,
        RestaurantProfileDTO,
        UpdateMenuItemDTO,
        UpdateRestaurantDTO,
    )
    from modules.restaurants.repositories.interfaces import (
        IMenuItemRepository,
        IRestaurantRepository,
    )

logger = structlog.get_logger(__name__)

_RESTAURANT_FIELDS = (
    "name",
    "address",
    "description",
    "phone",
    "cuisine_type",
    "opening_time",
    "closing_time",
    "latitude",
    "longitude",
)
_MENU_ITEM_FIELDS = ("name", "price", "category", "description", "is_available", "image_url")


def restaurant_cache_key(restaurant_id: UUID | str) -> str:
    return build_key("restaurant", restaurant_id)


def invalidate_restaurant_cache(
    restaurant_id: UUID | str, cache: Optional[ReadThroughCache] = None
) -> None:
    """Drop the detail key and every cached listing."""
    cache = cache or read_through_cache
    log_degraded(
        cache.invalidate(restaurant_cache_key(restaurant_id)),
        cache.invalidate_prefix("restaurants:"),
        restaurant_id=str(restaurant_id),
    )


class RestaurantService:
    """Application service for the restaurant profile."""

    def __init__(
        self,
        repository: IRestaurantRepository,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._repo = repository
        self._cache = cache or read_through_cache

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_restaurant(self, owner_id: UUID, dto: RestaurantProfileDTO) -> RestaurantOutputDTO:
        """Create the caller's restaurant profile (one per user).

        Raises:
            RestaurantAlreadyExists: the user already owns a restaurant.
        """
        log = logger.bind(owner_id=str(owner_id))
        with transaction.atomic():
            if self._repo.get_by_owner(str(owner_id)):
                log.warning("restaurant.duplicate_profile")
                raise RestaurantAlreadyExists()

            restaurant = Restaurant(owner_id=owner_id, **dto.model_dump())
            restaurant = self._repo.save(restaurant)

        invalidate_restaurant_cache(restaurant.id, self._cache)
        log.info("restaurant.created", restaurant_id=str(restaurant.id))
        return RestaurantOutputDTO.from_entity(restaurant)

    def update_my_restaurant(self, owner_id: UUID, dto: UpdateRestaurantDTO) -> RestaurantOutputDTO:
        with transaction.atomic():
            restaurant = self.require_owned(owner_id)
            for field in _RESTAURANT_FIELDS:
                value = getattr(dto, field)
                if value is not None:
                    setattr(restaurant, field, value)
            restaurant = self._repo.save(restaurant)

        invalidate_restaurant_cache(restaurant.id, self._cache)
        logger.info("restaurant.updated", restaurant_id=str(restaurant.id))
        return RestaurantOutputDTO.from_entity(restaurant)

    def set_online(self, owner_id: UUID, is_online: bool) -> RestaurantOutputDTO:
        with transaction.atomic():
            restaurant = self.require_owned(owner_id)
            restaurant.is_online = is_online
            restaurant = self._repo.save(restaurant)

        invalidate_restaurant_cache(restaurant.id, self._cache)
        logger.info(
            "restaurant.status_changed",
            restaurant_id=str(restaurant.id),
            is_online=is_online,
        )
        return RestaurantOutputDTO.from_entity(restaurant)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_restaurants(self, filters: Optional[Dict[str, Any]] = None) -> List[RestaurantOutputDTO]:
        filters = filters or {}
        return self._cache.get_or_set(
            build_key("restaurants", filters=filters),
            lambda: [RestaurantOutputDTO.from_entity(r) for r in self._repo.list(filters)],
            RESTAURANT_LIST_CACHE_TTL,
        )

    def get_restaurant(self, restaurant_id: UUID | str) -> RestaurantOutputDTO:
        """Return one restaurant (cached for 5 minutes).

        Raises:
            RestaurantNotFound: unknown or deleted restaurant.
        """

        def load() -> RestaurantOutputDTO:
            restaurant = self._repo.get_by_id(str(restaurant_id))
            if not restaurant:
                raise RestaurantNotFound()
            return RestaurantOutputDTO.from_entity(restaurant)

        return self._cache.get_or_set(
            restaurant_cache_key(restaurant_id), load, RESTAURANT_DETAIL_CACHE_TTL
        )

    def get_my_restaurant(self, owner_id: UUID) -> RestaurantOutputDTO:
        return RestaurantOutputDTO.from_entity(self.require_owned(owner_id))

    def require_owned(self, owner_id: UUID) -> Restaurant:
        """Return the caller's restaurant or raise ``RestaurantNotFound``."""
        restaurant = self._repo.get_by_owner(str(owner_id))
        if not restaurant:
            raise RestaurantNotFound("No restaurant profile for this account.")
        return restaurant


class MenuService:
    """Application service for menu items."""

    def __init__(
        self,
        menu_repository: IMenuItemRepository,
        restaurant_repository: IRestaurantRepository,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._menu_repo = menu_repository
        self._restaurants = RestaurantService(restaurant_repository, cache)
        self._cache = cache or read_through_cache

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_menu_item(self, owner_id: UUID, dto: CreateMenuItemDTO) -> MenuItemOutputDTO:
        with transaction.atomic():
            restaurant = self._restaurants.require_owned(owner_id)
            item = MenuItem(restaurant_id=restaurant.id, **dto.model_dump())
            item = self._menu_repo.save(item)

        self._invalidate(restaurant.id, item.id)
        logger.info(
            "menu_item.created",
            menu_item_id=str(item.id),
            restaurant_id=str(restaurant.id),
        )
        return MenuItemOutputDTO.from_entity(item)

    def update_menu_item(
        self, owner_id: UUID, item_id: UUID | str, dto: UpdateMenuItemDTO
    ) -> MenuItemOutputDTO:
        with transaction.atomic():
            item = self._require_owned_item(owner_id, item_id)
            for field in _MENU_ITEM_FIELDS:
                value = getattr(dto, field)
                if value is not None:
                    setattr(item, field, value)
            item = self._menu_repo.save(item)

        self._invalidate(item.restaurant_id, item.id)
        logger.info("menu_item.updated", menu_item_id=str(item.id))
        return MenuItemOutputDTO.from_entity(item)

    def delete_menu_item(self, owner_id: UUID, item_id: UUID | str) -> None:
        """Soft-disable a menu item."""
        with transaction.atomic():
            item = self._require_owned_item(owner_id, item_id)
            self._menu_repo.disable(item)

        self._invalidate(item.restaurant_id, item.id)
        logger.info("menu_item.deleted", menu_item_id=str(item.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_menu(
        self, restaurant_id: UUID | str, filters: Optional[Dict[str, Any]] = None
    ) -> List[MenuItemOutputDTO]:
        self._restaurants.get_restaurant(restaurant_id)
        filters = filters or {}
        return self._cache.get_or_set(
            build_key("menu", restaurant_id, filters=filters),
            lambda: [
                MenuItemOutputDTO.from_entity(item)
                for item in self._menu_repo.list_for_restaurant(str(restaurant_id), filters)
            ],
            MENU_CACHE_TTL,
        )

    def get_categories(self, restaurant_id: UUID | str) -> List[str]:
        self._restaurants.get_restaurant(restaurant_id)
        return self._cache.get_or_set(
            build_key("menu_categories", restaurant_id),
            lambda: self._menu_repo.categories(str(restaurant_id)),
            MENU_CATEGORIES_CACHE_TTL,
        )

    def get_menu_item(self, item_id: UUID | str) -> MenuItemOutputDTO:
        def load() -> MenuItemOutputDTO:
            item = self._menu_repo.get_by_id(str(item_id))
            if not item:
                raise MenuItemNotFound()
            return MenuItemOutputDTO.from_entity(item)

        return self._cache.get_or_set(build_key("menu_item", item_id), load, MENU_ITEM_CACHE_TTL)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_owned_item(self, owner_id: UUID, item_id: UUID | str) -> MenuItem:
        restaurant = self._restaurants.require_owned(owner_id)
        item = self._menu_repo.get_by_id(str(item_id))
        if not item:
            raise MenuItemNotFound()
        if item.restaurant_id != restaurant.id:
            logger.warning(
                "menu_item.foreign_access",
                menu_item_id=str(item_id),
                restaurant_id=str(restaurant.id),
            )
            raise NotMenuItemOwner()
        return item

    def _invalidate(self, restaurant_id: UUID, item_id: UUID) -> None:
        log_degraded(
            self._cache.invalidate_prefix(f"{build_key('menu', restaurant_id)}:"),
            self._cache.invalidate(
                build_key("menu_categories", restaurant_id),
                build_key("menu_item", item_id),
            ),
            restaurant_id=str(restaurant_id),
        )
