"""In-memory test doubles for the service unit tests.

The repositories keep unsaved model instances in dicts and stamp the
timestamps a real ``save()`` would set.  ``DictCacheBackend`` mimics the
subset of the django-redis API the read-through cache uses.
"""

from __future__ import annotations

import fnmatch
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.utils import timezone

from modules.agents.matching import NearbyAgent, haversine_m
from modules.agents.models import DeliveryAgent, LocationUpdate
from modules.agents.repositories.interfaces import IDeliveryAgentRepository
from modules.restaurants.models import MenuItem, Restaurant
from modules.restaurants.repositories.interfaces import (
    IMenuItemRepository,
    IRestaurantRepository,
)
from modules.users.models import User
from modules.users.repositories.interfaces import IUserRepository
from shared.domain.events import DomainEvent
from shared.domain.results import SideEffectResult


def _touch(entity: Any) -> None:
    now = timezone.now()
    if entity.created_at is None:
        entity.created_at = now
    entity.updated_at = now


# ---------------------------------------------------------------------------
# Side effects
# ---------------------------------------------------------------------------


class RecordingPublisher:
    """Collects published events; ``fail=True`` simulates a broker outage."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.published: List[Tuple[str, DomainEvent]] = []

    def publish(self, topic: str, event: DomainEvent) -> SideEffectResult:
        if self.fail:
            return SideEffectResult.degraded(f"publish:{topic}", "broker unreachable")
        self.published.append((topic, event))
        return SideEffectResult.ok(f"publish:{topic}")

    def names(self) -> List[str]:
        return [event.event_name for _, event in self.published]

    def of_type(self, event_class: type) -> List[DomainEvent]:
        return [event for _, event in self.published if isinstance(event, event_class)]


class DictCacheBackend:
    def __init__(self) -> None:
        self.store: Dict[str, Any] = {}
        self.ttls: Dict[str, int] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key: str, value: Any, timeout: int) -> None:
        self.store[key] = value
        self.ttls[key] = timeout

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.store.pop(key, None)

    def delete_pattern(self, pattern: str) -> None:
        for key in fnmatch.filter(list(self.store), pattern):
            del self.store[key]


class BrokenCacheBackend:
    """Every operation fails like an unreachable Redis."""

    def _fail(self, *args: Any, **kwargs: Any) -> Any:
        raise ConnectionError("redis unavailable")

    get = set = delete_many = delete_pattern = _fail


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class InMemoryUserRepository(IUserRepository):
    def __init__(self) -> None:
        self.users: Dict[str, User] = {}

    def get_by_id(self, id: str) -> Optional[User]:
        return self.users.get(str(id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email.lower()), None)

    def create(self, dto) -> User:
        user = User(
            email=dto.email,
            name=dto.name,
            phone=dto.phone,
            address=dto.address,
            role=dto.role,
        )
        user.set_password(dto.password)
        return self.save(user)

    def save(self, entity: User) -> User:
        _touch(entity)
        self.users[str(entity.id)] = entity
        return entity


class InMemoryRestaurantRepository(IRestaurantRepository):
    def __init__(self) -> None:
        self.restaurants: Dict[str, Restaurant] = {}

    def get_by_id(self, id: str) -> Optional[Restaurant]:
        return self.restaurants.get(str(id))

    def get_by_owner(self, owner_id: str) -> Optional[Restaurant]:
        return next(
            (r for r in self.restaurants.values() if str(r.owner_id) == str(owner_id)),
            None,
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Restaurant]:
        filters = filters or {}
        result = list(self.restaurants.values())
        if "cuisine" in filters:
            result = [r for r in result if r.cuisine_type.lower() == filters["cuisine"].lower()]
        return result

    def save(self, entity: Restaurant) -> Restaurant:
        _touch(entity)
        self.restaurants[str(entity.id)] = entity
        return entity


class InMemoryMenuItemRepository(IMenuItemRepository):
    def __init__(self) -> None:
        self.items: Dict[str, MenuItem] = {}

    def get_by_id(self, id: str) -> Optional[MenuItem]:
        item = self.items.get(str(id))
        return item if item is not None and item.deleted_at is None else None

    def _alive(self, restaurant_id: str) -> List[MenuItem]:
        return [
            item
            for item in self.items.values()
            if str(item.restaurant_id) == str(restaurant_id) and item.deleted_at is None
        ]

    def list_for_restaurant(
        self, restaurant_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[MenuItem]:
        filters = filters or {}
        result = self._alive(restaurant_id)
        if "category" in filters:
            result = [i for i in result if i.category.lower() == filters["category"].lower()]
        return result

    def get_many(self, restaurant_id: str, ids: Iterable[str]) -> List[MenuItem]:
        wanted = {str(i) for i in ids}
        return [item for item in self._alive(restaurant_id) if str(item.id) in wanted]

    def categories(self, restaurant_id: str) -> List[str]:
        return sorted({item.category for item in self._alive(restaurant_id)})

    def save(self, entity: MenuItem) -> MenuItem:
        _touch(entity)
        self.items[str(entity.id)] = entity
        return entity

    def disable(self, entity: MenuItem) -> MenuItem:
        entity.is_available = False
        entity.deleted_at = timezone.now()
        return self.save(entity)


class InMemoryDeliveryAgentRepository(IDeliveryAgentRepository):
    def __init__(self) -> None:
        self.agents: Dict[str, DeliveryAgent] = {}
        self.locations: List[LocationUpdate] = []

    def get_by_id(self, id: str) -> Optional[DeliveryAgent]:
        return self.agents.get(str(id))

    def get_by_user(self, user_id: str) -> Optional[DeliveryAgent]:
        return next(
            (a for a in self.agents.values() if str(a.user_id) == str(user_id)),
            None,
        )

    def find_available_near(
        self, lat: float, lng: float, radius_km: float, limit: int = 10
    ) -> List[NearbyAgent]:
        candidates = []
        for agent in self.agents.values():
            if not (agent.is_active and agent.is_available and not agent.is_on_delivery):
                continue
            if agent.current_latitude is None or agent.current_longitude is None:
                continue
            distance = haversine_m(lat, lng, agent.current_latitude, agent.current_longitude)
            if distance <= radius_km * 1000:
                candidates.append(
                    NearbyAgent(
                        agent_id=str(agent.id),
                        latitude=agent.current_latitude,
                        longitude=agent.current_longitude,
                        rating=float(agent.rating),
                        distance_m=distance,
                    )
                )
        candidates.sort(key=lambda c: (c.distance_m, c.agent_id))
        return candidates[:limit]

    def try_reserve(self, agent_id: str) -> bool:
        agent = self.agents.get(str(agent_id))
        if not agent or not (agent.is_active and agent.is_available and not agent.is_on_delivery):
            return False
        agent.is_on_delivery = True
        return True

    def release(self, agent_id: str) -> bool:
        agent = self.agents.get(str(agent_id))
        if not agent or not agent.is_on_delivery:
            return False
        agent.is_on_delivery = False
        return True

    def record_completed_delivery(self, agent_id: str, delivery_fee: Decimal) -> bool:
        agent = self.agents.get(str(agent_id))
        if not agent:
            return False
        agent.is_on_delivery = False
        agent.total_deliveries += 1
        agent.total_earnings += delivery_fee
        return True

    def add_location(
        self,
        agent: DeliveryAgent,
        latitude: float,
        longitude: float,
        speed: Optional[float] = None,
        bearing: Optional[float] = None,
    ) -> LocationUpdate:
        now = timezone.now()
        agent.current_latitude = latitude
        agent.current_longitude = longitude
        agent.location_updated_at = now
        self.save(agent)
        update = LocationUpdate(
            agent=agent,
            latitude=latitude,
            longitude=longitude,
            speed=speed,
            bearing=bearing,
            recorded_at=now,
        )
        self.locations.append(update)
        return update

    def reconcile_delivery_flags(self) -> Dict[str, int]:
        return {"marked_busy": 0, "released": 0}

    def save(self, entity: DeliveryAgent) -> DeliveryAgent:
        _touch(entity)
        self.agents[str(entity.id)] = entity
        return entity
