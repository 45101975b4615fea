"""Django ORM implementation of the Rating repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count

from modules.ratings.constants import RatingTarget
from modules.ratings.models import Rating
from modules.ratings.repositories.interfaces import IRatingRepository

logger = structlog.get_logger(__name__)

_CENT = Decimal("0.01")


def _aggregate(queryset) -> Tuple[Decimal, int]:
    totals = queryset.aggregate(average=Avg("score"), count=Count("id"))
    average = Decimal(str(totals["average"] or 0)).quantize(_CENT)
    return average, totals["count"]


class RatingDjangoRepository(IRatingRepository):
    def get_by_id(self, id: str) -> Optional[Rating]:
        try:
            return Rating.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Rating) -> Rating:
        entity.save()
        return entity

    def exists_for(self, user_id: str, order_id: str) -> bool:
        return Rating.objects.filter(user_id=user_id, order_id=order_id).exists()

    @transaction.atomic
    def create_many(self, rows: List[Dict[str, Any]]) -> List[Rating]:
        ratings = [Rating.objects.create(**row) for row in rows]
        logger.info(
            "rating.persisted",
            order_id=str(ratings[0].order_id) if ratings else None,
            count=len(ratings),
        )
        return ratings

    def list_for_user(self, user_id: str) -> List[Rating]:
        return list(Rating.objects.filter(user_id=user_id).order_by("-created_at", "-id"))

    def list_for_order(self, order_id: str) -> List[Rating]:
        try:
            return list(Rating.objects.filter(order_id=order_id).order_by("target_type"))
        except (ValueError, ValidationError):
            return []

    def aggregate_for_restaurant(self, restaurant_id: str) -> Tuple[Decimal, int]:
        return _aggregate(
            Rating.objects.filter(
                restaurant_id=restaurant_id, target_type=RatingTarget.RESTAURANT.value
            )
        )

    def aggregate_for_agent(self, agent_id: str) -> Tuple[Decimal, int]:
        return _aggregate(
            Rating.objects.filter(delivery_agent_id=agent_id, target_type=RatingTarget.AGENT.value)
        )
