"""Delivery-agent repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.agents.matching import NearbyAgent
    from modules.agents.models import DeliveryAgent, LocationUpdate


class IDeliveryAgentRepository(IRepository["DeliveryAgent"]):
    @abstractmethod
    def get_by_user(self, user_id: str) -> Optional[DeliveryAgent]:
        """Retrieve the agent profile owned by a user."""

    @abstractmethod
    def find_available_near(
        self, lat: float, lng: float, radius_km: float, limit: int = 10
    ) -> List[NearbyAgent]:
        """Active, available, idle agents within ``radius_km``, nearest first."""

    @abstractmethod
    def try_reserve(self, agent_id: str) -> bool:
        """Conditionally mark an idle agent as on delivery.

        Returns ``False`` when the agent is inactive, unavailable or busy.
        """

    @abstractmethod
    def release(self, agent_id: str) -> bool:
        """Clear ``is_on_delivery``."""

    @abstractmethod
    def record_completed_delivery(self, agent_id: str, delivery_fee: Decimal) -> bool:
        """Clear ``is_on_delivery`` and bump the delivery count and earnings."""

    @abstractmethod
    def add_location(
        self,
        agent: DeliveryAgent,
        latitude: float,
        longitude: float,
        speed: Optional[float] = None,
        bearing: Optional[float] = None,
    ) -> LocationUpdate:
        """Store the current position and append it to the trail."""

    @abstractmethod
    def reconcile_delivery_flags(self) -> Dict[str, int]:
        """Make ``is_on_delivery`` match the open deliveries.

        Returns the number of agents set busy and released.
        """
