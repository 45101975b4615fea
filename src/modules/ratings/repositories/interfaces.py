"""Rating repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.ratings.models import Rating


class IRatingRepository(IRepository["Rating"]):
    @abstractmethod
    def exists_for(self, user_id: str, order_id: str) -> bool:
        """Whether the user already rated anything on the order."""

    @abstractmethod
    def create_many(self, rows: List[Dict[str, Any]]) -> List[Rating]:
        """Insert the rating rows of one submission atomically."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[Rating]: ...

    @abstractmethod
    def list_for_order(self, order_id: str) -> List[Rating]: ...

    @abstractmethod
    def aggregate_for_restaurant(self, restaurant_id: str) -> Tuple[Decimal, int]:
        """Return ``(average score, count)`` of the restaurant's ratings."""

    @abstractmethod
    def aggregate_for_agent(self, agent_id: str) -> Tuple[Decimal, int]:
        """Return ``(average score, count)`` of the agent's ratings."""
