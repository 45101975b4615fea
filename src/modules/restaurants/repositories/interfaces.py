"""Restaurant / menu repository interfaces."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.restaurants.models import MenuItem, Restaurant


class IRestaurantRepository(IRepository["Restaurant"]):
    @abstractmethod
    def get_by_owner(self, owner_id: str) -> Optional[Restaurant]:
        """Retrieve the restaurant profile owned by a user."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Restaurant]:
        """List live restaurants matching ``filters`` (cuisine, is_online, search)."""


class IMenuItemRepository(IRepository["MenuItem"]):
    @abstractmethod
    def list_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[MenuItem]:
        """List live menu items of a restaurant (category, available)."""

    @abstractmethod
    def get_many(self, restaurant_id: str, ids: Iterable[str]) -> List[MenuItem]:
        """Return the live items among ``ids`` that belong to the restaurant."""

    @abstractmethod
    def categories(self, restaurant_id: str) -> List[str]:
        """Distinct categories of the restaurant's live items, sorted."""

    @abstractmethod
    def disable(self, entity: MenuItem) -> MenuItem:
        """Mark unavailable and soft-delete."""
