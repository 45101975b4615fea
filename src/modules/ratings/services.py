"""Rating service layer (Use Cases).

A submission writes one row per rated target in a single transaction and
recalculates each target's aggregate ``rating`` / ``total_ratings`` from
the stored rows.  Cached restaurant and agent profiles are invalidated
afterwards and one ``RatingSubmitted`` event is published per row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

import structlog
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound
from modules.ratings.constants import RATING_EVENTS_TOPIC, RatingTarget
from modules.ratings.dtos import CanRateDTO, RatingOutputDTO
from modules.ratings.events import RatingSubmitted
from modules.ratings.exceptions import AlreadyRated, NoAgentToRate, OrderNotDelivered
from modules.restaurants.services import invalidate_restaurant_cache
from shared.infrastructure.bus import event_publisher
from shared.infrastructure.cache import (
    ReadThroughCache,
    build_key,
    log_degraded,
    read_through_cache,
)

if TYPE_CHECKING:
    from modules.agents.repositories.interfaces import IDeliveryAgentRepository
    from modules.core.authentication import AuthenticatedUser
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.ratings.dtos import SubmitRatingDTO
    from modules.ratings.repositories.interfaces import IRatingRepository
    from modules.restaurants.repositories.interfaces import IRestaurantRepository
    from shared.domain.bus import IEventPublisher

logger = structlog.get_logger(__name__)


class RatingService:
    def __init__(
        self,
        rating_repository: IRatingRepository,
        order_repository: IOrderRepository,
        restaurant_repository: IRestaurantRepository,
        agent_repository: IDeliveryAgentRepository,
        publisher: Optional[IEventPublisher] = None,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._repo = rating_repository
        self._order_repo = order_repository
        self._restaurant_repo = restaurant_repository
        self._agent_repo = agent_repository
        self._publisher = publisher or event_publisher
        self._cache = cache or read_through_cache

    def submit(self, actor: AuthenticatedUser, dto: SubmitRatingDTO) -> List[RatingOutputDTO]:
        """Rate the restaurant and/or the agent of a delivered order.

        Raises:
            OrderNotFound: unknown order, or not placed by the caller.
            OrderNotDelivered: the order is not ``delivered``.
            AlreadyRated: the caller already rated this order.
            NoAgentToRate: an agent rating for an order without an agent.
        """
        order = self._own_order(actor, dto.order_id)
        if order.status != OrderStatus.DELIVERED.value:
            raise OrderNotDelivered()
        if self._repo.exists_for(str(actor.user_id), str(order.id)):
            raise AlreadyRated()
        if dto.agent_rating is not None and order.delivery_agent_id is None:
            raise NoAgentToRate()

        rows = []
        if dto.restaurant_rating is not None:
            rows.append(
                {
                    "user_id": actor.user_id,
                    "order_id": order.id,
                    "target_type": RatingTarget.RESTAURANT.value,
                    "restaurant_id": order.restaurant_id,
                    "score": dto.restaurant_rating,
                    "comment": dto.restaurant_comment,
                }
            )
        if dto.agent_rating is not None:
            rows.append(
                {
                    "user_id": actor.user_id,
                    "order_id": order.id,
                    "target_type": RatingTarget.AGENT.value,
                    "delivery_agent_id": order.delivery_agent_id,
                    "score": dto.agent_rating,
                    "comment": dto.agent_comment,
                }
            )

        try:
            with transaction.atomic():
                ratings = self._repo.create_many(rows)
                if dto.restaurant_rating is not None:
                    self._refresh_restaurant(order.restaurant_id)
                if dto.agent_rating is not None:
                    self._refresh_agent(order.delivery_agent_id)
        except IntegrityError as exc:
            raise AlreadyRated() from exc

        logger.info("rating.submitted", order_id=str(order.id), targets=[r["target_type"] for r in rows])
        self._invalidate(order, agent_rated=dto.agent_rating is not None)
        for rating in ratings:
            log_degraded(
                self._publisher.publish(
                    RATING_EVENTS_TOPIC,
                    RatingSubmitted(
                        aggregate_id=rating.id,
                        order_id=rating.order_id,
                        user_id=rating.user_id,
                        target_type=rating.target_type,
                        target_id=rating.target_id,
                        score=rating.score,
                    ),
                ),
                topic=RATING_EVENTS_TOPIC,
            )
        return [RatingOutputDTO.from_entity(rating) for rating in ratings]

    def can_rate(self, actor: AuthenticatedUser, order_id: UUID | str) -> CanRateDTO:
        order = self._order_repo.get_by_id(str(order_id))
        if not order or order.user_id != actor.user_id:
            return CanRateDTO(can_rate=False, reason="Order not found.")
        if order.status != OrderStatus.DELIVERED.value:
            return CanRateDTO(can_rate=False, reason="Order has not been delivered yet.")
        if self._repo.exists_for(str(actor.user_id), str(order.id)):
            return CanRateDTO(can_rate=False, reason="Order already rated.")
        return CanRateDTO(can_rate=True)

    def list_mine(self, actor: AuthenticatedUser) -> List[RatingOutputDTO]:
        return [RatingOutputDTO.from_entity(r) for r in self._repo.list_for_user(str(actor.user_id))]

    def list_for_order(self, actor: AuthenticatedUser, order_id: UUID | str) -> List[RatingOutputDTO]:
        order = self._own_order(actor, order_id)
        return [RatingOutputDTO.from_entity(r) for r in self._repo.list_for_order(str(order.id))]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _own_order(self, actor: AuthenticatedUser, order_id: UUID | str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order or order.user_id != actor.user_id:
            raise OrderNotFound()
        return order

    def _refresh_restaurant(self, restaurant_id: UUID) -> None:
        restaurant = self._restaurant_repo.get_by_id(str(restaurant_id))
        if not restaurant:
            return
        restaurant.rating, restaurant.total_ratings = self._repo.aggregate_for_restaurant(
            str(restaurant_id)
        )
        self._restaurant_repo.save(restaurant)

    def _refresh_agent(self, agent_id: UUID) -> None:
        agent = self._agent_repo.get_by_id(str(agent_id))
        if not agent:
            return
        agent.rating, agent.total_ratings = self._repo.aggregate_for_agent(str(agent_id))
        self._agent_repo.save(agent)

    def _invalidate(self, order: Order, agent_rated: bool) -> None:
        invalidate_restaurant_cache(order.restaurant_id, cache=self._cache)
        if agent_rated:
            log_degraded(
                self._cache.invalidate(
                    build_key("agent", order.delivery_agent_id),
                    build_key("agent_stats", order.delivery_agent_id),
                ),
                agent_id=str(order.delivery_agent_id),
            )
