"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, row locking, status history, the conditional
agent assignment and the per-role listings.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``user_id``, ``restaurant_id``,
        ``delivery_address``, ``delivery_fee`` and ``items`` (dicts with
        ``menu_item_id``, ``name``, ``quantity``, ``unit_price``).
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order under a row-level lock."""

    @abstractmethod
    def list_for_user(self, user_id: str, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Orders placed by a customer."""

    @abstractmethod
    def list_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[Order]:
        """Orders received by a restaurant."""

    @abstractmethod
    def list_for_agent(self, agent_id: str, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Deliveries currently or previously assigned to an agent."""

    @abstractmethod
    def active_delivery_for_agent(self, agent_id: str) -> Optional[Order]:
        """The agent's non-terminal delivery, if any."""

    @abstractmethod
    def stats_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Totals, revenue, average value and status breakdown."""

    @abstractmethod
    def stats_for_agent(self, agent_id: str) -> Dict[str, Any]:
        """Total / completed deliveries and earnings."""

    @abstractmethod
    def try_assign(self, order_id: str, agent_id: str) -> bool:
        """Conditionally attach an agent to an unassigned, assignable order."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by: Optional[Any] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
