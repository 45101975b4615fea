"""Django ORM implementation of the delivery-agent repository.

Assignment-related writes are conditional UPDATEs (compare-and-swap): the
WHERE clause re-checks the state the caller expects, and the affected row
count tells whether the swap happened.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.agents.constants import NEARBY_DEFAULT_LIMIT
from modules.agents.matching import NearbyAgent, bounding_box, haversine_m
from modules.agents.models import DeliveryAgent, LocationUpdate
from modules.agents.repositories.interfaces import IDeliveryAgentRepository

logger = structlog.get_logger(__name__)


class DeliveryAgentDjangoRepository(IDeliveryAgentRepository):
    def get_by_id(self, id: str) -> Optional[DeliveryAgent]:
        try:
            return DeliveryAgent.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_user(self, user_id: str) -> Optional[DeliveryAgent]:
        try:
            return DeliveryAgent.objects.filter(user_id=user_id).first()
        except (ValueError, ValidationError):
            return None

    def find_available_near(
        self,
        lat: float,
        lng: float,
        radius_km: float,
        limit: int = NEARBY_DEFAULT_LIMIT,
    ) -> List[NearbyAgent]:
        """Bounding box in SQL, exact haversine check in Python."""
        min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_km)
        queryset = DeliveryAgent.objects.filter(
            is_active=True,
            is_available=True,
            is_on_delivery=False,
            current_latitude__isnull=False,
            current_longitude__isnull=False,
            current_latitude__range=(min_lat, max_lat),
        )
        if min_lng is not None:
            queryset = queryset.filter(current_longitude__range=(min_lng, max_lng))

        radius_m = radius_km * 1000
        candidates = []
        rows = queryset.values_list("id", "current_latitude", "current_longitude", "rating")
        for agent_id, agent_lat, agent_lng, rating in rows:
            distance = haversine_m(lat, lng, agent_lat, agent_lng)
            if distance <= radius_m:
                candidates.append(
                    NearbyAgent(
                        agent_id=str(agent_id),
                        latitude=agent_lat,
                        longitude=agent_lng,
                        rating=float(rating),
                        distance_m=distance,
                    )
                )

        candidates.sort(key=lambda c: (c.distance_m, c.agent_id))
        return candidates[:limit]

    def try_reserve(self, agent_id: str) -> bool:
        updated = DeliveryAgent.objects.filter(
            id=agent_id,
            is_active=True,
            is_available=True,
            is_on_delivery=False,
        ).update(is_on_delivery=True, updated_at=timezone.now())
        logger.info("agent.reserve_attempted", agent_id=str(agent_id), reserved=bool(updated))
        return bool(updated)

    def release(self, agent_id: str) -> bool:
        updated = DeliveryAgent.objects.filter(id=agent_id, is_on_delivery=True).update(
            is_on_delivery=False, updated_at=timezone.now()
        )
        logger.info("agent.released", agent_id=str(agent_id), changed=bool(updated))
        return bool(updated)

    def record_completed_delivery(self, agent_id: str, delivery_fee: Decimal) -> bool:
        updated = DeliveryAgent.objects.filter(id=agent_id).update(
            is_on_delivery=False,
            total_deliveries=F("total_deliveries") + 1,
            total_earnings=F("total_earnings") + delivery_fee,
            updated_at=timezone.now(),
        )
        logger.info("agent.delivery_recorded", agent_id=str(agent_id), fee=str(delivery_fee))
        return bool(updated)

    @transaction.atomic
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
        agent.save(
            update_fields=["current_latitude", "current_longitude", "location_updated_at"]
        )
        return LocationUpdate.objects.create(
            agent=agent,
            latitude=latitude,
            longitude=longitude,
            speed=speed,
            bearing=bearing,
            recorded_at=now,
        )

    @transaction.atomic
    def save(self, entity: DeliveryAgent) -> DeliveryAgent:
        entity.save()
        logger.info("agent.saved", agent_id=str(entity.id))
        return entity

    @transaction.atomic
    def reconcile_delivery_flags(self) -> Dict[str, int]:
        from modules.orders.constants import TERMINAL_DELIVERY_STATES
        from modules.orders.models import Order

        busy_ids = (
            Order.objects.filter(delivery_agent__isnull=False, delivery_status__isnull=False)
            .exclude(delivery_status__in=TERMINAL_DELIVERY_STATES)
            .values("delivery_agent_id")
        )
        now = timezone.now()
        marked = DeliveryAgent.objects.filter(id__in=busy_ids, is_on_delivery=False).update(
            is_on_delivery=True, updated_at=now
        )
        released = (
            DeliveryAgent.objects.filter(is_on_delivery=True)
            .exclude(id__in=busy_ids)
            .update(is_on_delivery=False, updated_at=now)
        )
        if marked or released:
            logger.warning("agent.flags_reconciled", marked_busy=marked, released=released)
        return {"marked_busy": marked, "released": released}
