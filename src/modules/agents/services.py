"""Delivery-agent and delivery service layer (Use Cases).

``AgentService`` manages the agent profile, location and availability.
``DeliveryService`` owns the assignment workflow and the delivery state
machine as seen by the agent:

- **Assignment** is match-then-assign: candidates are picked best-first
  with ``matching.select_best_agent`` and each is tried with two conditional
  UPDATEs (order, then agent) in one transaction.  A zero-row update rolls the
  transaction back with an ``AssignmentConflict`` (409).
- **Delivery updates** lock the order row and keep the order status in
  step: ``picked_up`` moves a ``ready_for_pickup`` order out for delivery,
  ``delivered`` delivers it, ``rejected``/``cancelled`` free the agent and
  unassign the order so it can be matched again.

Cache keys owned here:

- ``agent:{id}``                    profile, 5 min
- ``agent_stats:{id}``              stats, 10 min
- ``agent_location:{id}``           last reported position, 5 min
- ``active_delivery:{id}``          current delivery, 1 min
- ``delivery_history:{id}:{filters}`` history, 2 min
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction

from modules.agents.constants import (
    ACTIVE_DELIVERY_CACHE_TTL,
    AGENT_EVENTS_TOPIC,
    AGENT_LOCATION_CACHE_TTL,
    AGENT_PROFILE_CACHE_TTL,
    AGENT_STATS_CACHE_TTL,
    DELIVERY_EVENTS_TOPIC,
    DELIVERY_HISTORY_CACHE_TTL,
    NEARBY_DEFAULT_LIMIT,
)
from modules.agents.dtos import (
    AgentLocationDTO,
    AgentOutputDTO,
    AgentStatsDTO,
    NearbyAgentDTO,
)
from modules.agents.events import (
    AgentAvailabilityChanged,
    AgentLocationUpdated,
    DeliveryAssigned,
    DeliveryRejected,
    DeliveryStatusChanged,
)
from modules.agents.exceptions import (
    AgentAlreadyExists,
    AgentInactive,
    AgentNotFound,
    AgentUnavailable,
    DeliveryNotFound,
    MissingPickupLocation,
    NoAgentAvailable,
    NotAssignedAgent,
    OrderNotAssignable,
)
from modules.agents.matching import select_best_agent
from modules.agents.models import DeliveryAgent
from modules.orders.constants import DeliveryStatus, OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.exceptions import OrderActionForbidden, OrderNotFound
from modules.orders.services import (
    apply_status_change,
    invalidate_order_caches,
    publish_all,
)
from modules.orders.state_machine import can_transition, transition_delivery
from modules.restaurants.exceptions import RestaurantNotFound
from shared.infrastructure.bus import event_publisher
from shared.infrastructure.cache import (
    ReadThroughCache,
    build_key,
    log_degraded,
    read_through_cache,
)

if TYPE_CHECKING:
    from modules.agents.dtos import LocationDTO, RegisterAgentDTO, UpdateAgentDTO
    from modules.agents.repositories.interfaces import IDeliveryAgentRepository
    from modules.core.authentication import AuthenticatedUser
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.restaurants.repositories.interfaces import IRestaurantRepository
    from shared.domain.bus import IEventPublisher
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


def agent_cache_key(agent_id: UUID | str) -> str:
    return build_key("agent", agent_id)


def _require_agent(repository: IDeliveryAgentRepository, user_id: UUID | str) -> DeliveryAgent:
    agent = repository.get_by_user(str(user_id))
    if not agent:
        raise AgentNotFound("No delivery agent profile for this account.")
    return agent


class AgentService:
    def __init__(
        self,
        agent_repository: IDeliveryAgentRepository,
        order_repository: IOrderRepository,
        publisher: Optional[IEventPublisher] = None,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._repo = agent_repository
        self._order_repo = order_repository
        self._publisher = publisher or event_publisher
        self._cache = cache or read_through_cache

    def register(self, user_id: UUID, dto: RegisterAgentDTO) -> AgentOutputDTO:
        """Create the caller's agent profile (one per user).

        New agents start unavailable until they switch availability on.
        """
        if self._repo.get_by_user(str(user_id)):
            raise AgentAlreadyExists()

        agent = DeliveryAgent(
            user_id=user_id,
            vehicle_type=dto.vehicle_type.value,
            license_number=dto.license_number,
        )
        try:
            self._repo.save(agent)
        except IntegrityError as exc:
            raise AgentAlreadyExists() from exc

        logger.info("agent.registered", agent_id=str(agent.id), user_id=str(user_id))
        return AgentOutputDTO.from_entity(agent)

    def get_profile(self, user_id: UUID) -> AgentOutputDTO:
        agent_id = _require_agent(self._repo, user_id).id
        return self._cache.get_or_set(
            agent_cache_key(agent_id),
            lambda: self._load_profile(agent_id),
            AGENT_PROFILE_CACHE_TTL,
        )

    def get_agent(self, agent_id: UUID | str) -> AgentOutputDTO:
        return self._cache.get_or_set(
            agent_cache_key(agent_id),
            lambda: self._load_profile(agent_id),
            AGENT_PROFILE_CACHE_TTL,
        )

    def update_profile(self, user_id: UUID, dto: UpdateAgentDTO) -> AgentOutputDTO:
        agent = _require_agent(self._repo, user_id)
        changes = dto.model_dump(exclude_none=True)
        if "vehicle_type" in changes:
            changes["vehicle_type"] = dto.vehicle_type.value
        for field, value in changes.items():
            setattr(agent, field, value)
        self._repo.save(agent)

        log_degraded(self._cache.invalidate(agent_cache_key(agent.id)), agent_id=str(agent.id))
        logger.info("agent.profile_updated", agent_id=str(agent.id), fields=sorted(changes))
        return AgentOutputDTO.from_entity(agent)

    def update_location(self, user_id: UUID, dto: LocationDTO) -> AgentLocationDTO:
        """Record a position report.

        The position is stored on the agent, appended to the location
        trail and cached as ``agent_location:{id}``.
        """
        agent = _require_agent(self._repo, user_id)
        update = self._repo.add_location(
            agent, dto.latitude, dto.longitude, speed=dto.speed, bearing=dto.bearing
        )
        location = AgentLocationDTO(
            agent_id=agent.id,
            latitude=update.latitude,
            longitude=update.longitude,
            recorded_at=update.recorded_at,
        )

        log_degraded(
            self._cache.set(build_key("agent_location", agent.id), location, AGENT_LOCATION_CACHE_TTL),
            self._cache.invalidate(agent_cache_key(agent.id)),
            agent_id=str(agent.id),
        )
        log_degraded(
            self._publisher.publish(
                AGENT_EVENTS_TOPIC,
                AgentLocationUpdated(
                    aggregate_id=agent.id,
                    latitude=dto.latitude,
                    longitude=dto.longitude,
                ),
            ),
            topic=AGENT_EVENTS_TOPIC,
        )
        logger.debug("agent.location_updated", agent_id=str(agent.id))
        return location

    def get_location(self, agent_id: UUID | str) -> Optional[AgentLocationDTO]:
        """Last known position, served from the cache when fresh."""

        def load() -> Optional[AgentLocationDTO]:
            agent = self._repo.get_by_id(str(agent_id))
            if not agent:
                raise AgentNotFound()
            if agent.current_latitude is None or agent.current_longitude is None:
                return None
            return AgentLocationDTO(
                agent_id=agent.id,
                latitude=agent.current_latitude,
                longitude=agent.current_longitude,
                recorded_at=agent.location_updated_at or agent.updated_at,
            )

        return self._cache.get_or_set(
            build_key("agent_location", agent_id), load, AGENT_LOCATION_CACHE_TTL
        )

    def set_availability(self, user_id: UUID, is_available: bool) -> AgentOutputDTO:
        agent = _require_agent(self._repo, user_id)
        if is_available and not agent.is_active:
            raise AgentInactive()

        agent.is_available = is_available
        self._repo.save(agent)

        log_degraded(
            self._cache.invalidate(agent_cache_key(agent.id), build_key("agent_stats", agent.id)),
            agent_id=str(agent.id),
        )
        log_degraded(
            self._publisher.publish(
                AGENT_EVENTS_TOPIC,
                AgentAvailabilityChanged(aggregate_id=agent.id, is_available=is_available),
            ),
            topic=AGENT_EVENTS_TOPIC,
        )
        logger.info("agent.availability_changed", agent_id=str(agent.id), is_available=is_available)
        return AgentOutputDTO.from_entity(agent)

    def stats(self, user_id: UUID) -> AgentStatsDTO:
        """Delivery totals, earnings, rating and completion rate (percent)."""
        agent = _require_agent(self._repo, user_id)

        def load() -> AgentStatsDTO:
            totals = self._order_repo.stats_for_agent(str(agent.id))
            total = totals["total_deliveries"]
            completed = totals["completed_deliveries"]
            return AgentStatsDTO(
                total_deliveries=total,
                completed_deliveries=completed,
                total_earnings=totals["total_earnings"],
                rating=agent.rating,
                completion_rate=round(completed / total * 100, 2) if total else 0.0,
            )

        return self._cache.get_or_set(build_key("agent_stats", agent.id), load, AGENT_STATS_CACHE_TTL)

    def nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: Optional[float] = None,
        limit: int = NEARBY_DEFAULT_LIMIT,
    ) -> List[NearbyAgentDTO]:
        """Available agents around a point, nearest first."""
        if radius_km is None:
            radius_km = settings.AGENT_SEARCH_RADIUS_KM
        candidates = self._repo.find_available_near(latitude, longitude, radius_km, limit=limit)
        return [NearbyAgentDTO.from_candidate(candidate) for candidate in candidates]

    def _load_profile(self, agent_id: UUID | str) -> AgentOutputDTO:
        agent = self._repo.get_by_id(str(agent_id))
        if not agent:
            raise AgentNotFound()
        return AgentOutputDTO.from_entity(agent)


class DeliveryService:
    def __init__(
        self,
        order_repository: IOrderRepository,
        agent_repository: IDeliveryAgentRepository,
        restaurant_repository: IRestaurantRepository,
        publisher: Optional[IEventPublisher] = None,
        cache: Optional[ReadThroughCache] = None,
    ) -> None:
        self._order_repo = order_repository
        self._agent_repo = agent_repository
        self._restaurant_repo = restaurant_repository
        self._publisher = publisher or event_publisher
        self._cache = cache or read_through_cache

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_order(self, order_id: UUID | str, agent_id: UUID | str) -> OrderOutputDTO:
        """Assign ``agent_id`` to the order with two conditional UPDATEs.

        Raises:
            OrderNotFound: unknown order.
            OrderNotAssignable: order already has an agent or is not in
                ``confirmed`` / ``preparing`` / ``ready_for_pickup``.
            AgentUnavailable: agent is inactive, unavailable or busy.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound()

        log = logger.bind(order_id=str(order_id), agent_id=str(agent_id))
        with transaction.atomic():
            if not self._order_repo.try_assign(str(order_id), str(agent_id)):
                log.info("delivery.assign_conflict", reason="order")
                raise OrderNotAssignable()
            if not self._agent_repo.try_reserve(str(agent_id)):
                log.info("delivery.assign_conflict", reason="agent")
                raise AgentUnavailable()

        log.info("delivery.assigned")
        invalidate_order_caches(order.id, order.restaurant_id, agent_id, cache=self._cache)
        publish_all(
            self._publisher,
            [
                (
                    DELIVERY_EVENTS_TOPIC,
                    DeliveryAssigned(
                        aggregate_id=order.id,
                        agent_id=UUID(str(agent_id)),
                        restaurant_id=order.restaurant_id,
                    ),
                )
            ],
        )
        return OrderOutputDTO.from_entity(self._order_repo.get_by_id(str(order.id)))

    def auto_assign(self, order_id: UUID | str, radius_km: Optional[float] = None) -> OrderOutputDTO:
        """Match the best agent around the restaurant and assign it.

        Candidates are tried best-first; one that was taken in the meantime
        is skipped.  An order that can no longer be assigned stops the loop.

        Raises:
            MissingPickupLocation: the restaurant has no coordinates.
            NoAgentAvailable: nobody is available within ``radius_km``.
            OrderNotAssignable: see ``assign_order``.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound()
        restaurant = self._restaurant_repo.get_by_id(str(order.restaurant_id))
        if not restaurant:
            raise RestaurantNotFound()
        if restaurant.latitude is None or restaurant.longitude is None:
            raise MissingPickupLocation()

        if radius_km is None:
            radius_km = settings.AGENT_SEARCH_RADIUS_KM
        candidates = self._agent_repo.find_available_near(
            restaurant.latitude, restaurant.longitude, radius_km
        )
        logger.info(
            "delivery.match_candidates",
            order_id=str(order.id),
            radius_km=radius_km,
            count=len(candidates),
        )
        while candidates:
            best = select_best_agent(candidates)
            try:
                return self.assign_order(order.id, best.agent_id)
            except AgentUnavailable:
                candidates = [c for c in candidates if c.agent_id != best.agent_id]
        raise NoAgentAvailable()

    def assign_for_restaurant(
        self,
        actor: AuthenticatedUser,
        order_id: UUID | str,
        agent_id: Optional[UUID | str] = None,
        radius_km: Optional[float] = None,
    ) -> OrderOutputDTO:
        """Restaurant-initiated assignment: explicit agent or automatic match."""
        restaurant = self._restaurant_repo.get_by_owner(str(actor.user_id))
        if not restaurant:
            raise OrderActionForbidden()
        order = self._order_repo.get_by_id(str(order_id))
        if not order or order.restaurant_id != restaurant.id:
            raise OrderNotFound()

        if agent_id:
            return self.assign_order(order.id, agent_id)
        return self.auto_assign(order.id, radius_km)

    # ------------------------------------------------------------------
    # Agent-side delivery lifecycle
    # ------------------------------------------------------------------

    def accept_delivery(self, actor: AuthenticatedUser, order_id: UUID | str) -> OrderOutputDTO:
        return self.update_delivery_status(actor, order_id, DeliveryStatus.ACCEPTED.value)

    def reject_delivery(
        self, actor: AuthenticatedUser, order_id: UUID | str, reason: str = ""
    ) -> OrderOutputDTO:
        return self.update_delivery_status(actor, order_id, DeliveryStatus.REJECTED.value, reason=reason)

    def update_delivery_status(
        self,
        actor: AuthenticatedUser,
        order_id: UUID | str,
        new_status: str,
        reason: str = "",
    ) -> OrderOutputDTO:
        """Advance the delivery machine as the assigned agent.

        Raises:
            DeliveryNotFound: unknown order or no delivery on it.
            NotAssignedAgent: the caller is not the assignee.
            InvalidTransition: ``new_status`` is not allowed.
        """
        agent = _require_agent(self._agent_repo, actor.user_id)
        events: List[tuple[str, DomainEvent]] = []

        with transaction.atomic():
            order = self._order_repo.get_for_update(str(order_id))
            if not order or order.delivery_agent_id is None:
                raise DeliveryNotFound()
            if order.delivery_agent_id != agent.id:
                logger.warning(
                    "delivery.foreign_agent",
                    order_id=str(order_id),
                    agent_id=str(agent.id),
                )
                raise NotAssignedAgent()

            log = logger.bind(order_id=str(order.id), agent_id=str(agent.id))
            previous = transition_delivery(order, new_status)
            events.append(
                (
                    DELIVERY_EVENTS_TOPIC,
                    DeliveryStatusChanged(
                        aggregate_id=order.id,
                        agent_id=agent.id,
                        old_status=previous,
                        new_status=order.delivery_status,
                    ),
                )
            )
            events.extend(self._sync_order(order, agent, reason, log))
            restaurant_id = order.restaurant_id

        log.info("delivery.status_updated", old_status=previous, new_status=new_status)
        invalidate_order_caches(order.id, restaurant_id, agent.id, cache=self._cache)
        publish_all(self._publisher, events)
        return OrderOutputDTO.from_entity(self._order_repo.get_by_id(str(order.id)))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def delivery_history(
        self, actor: AuthenticatedUser, filters: Optional[Dict[str, Any]] = None
    ) -> List[OrderOutputDTO]:
        agent = _require_agent(self._agent_repo, actor.user_id)
        filters = filters or {}
        return self._cache.get_or_set(
            build_key("delivery_history", agent.id, filters=filters),
            lambda: [
                OrderOutputDTO.from_entity(order)
                for order in self._order_repo.list_for_agent(str(agent.id), filters)
            ],
            DELIVERY_HISTORY_CACHE_TTL,
        )

    def active_delivery(self, actor: AuthenticatedUser) -> Optional[OrderOutputDTO]:
        """The agent's open delivery, or ``None`` when idle."""
        agent = _require_agent(self._agent_repo, actor.user_id)

        def load() -> Optional[OrderOutputDTO]:
            order = self._order_repo.active_delivery_for_agent(str(agent.id))
            return OrderOutputDTO.from_entity(order) if order else None

        return self._cache.get_or_set(
            build_key("active_delivery", agent.id), load, ACTIVE_DELIVERY_CACHE_TTL
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _sync_order(
        self, order: Order, agent: DeliveryAgent, reason: str, log: Any
    ) -> List[tuple[str, DomainEvent]]:
        """Apply the order-side effect of the delivery status just set.

        Runs inside the caller's transaction with the order row locked.
        """
        status = order.delivery_status
        events: List[tuple[str, DomainEvent]] = []

        if status in (DeliveryStatus.REJECTED.value, DeliveryStatus.CANCELLED.value):
            self._agent_repo.release(str(agent.id))
            order.delivery_agent = None
            order.delivery_status = None
            self._order_repo.save(order)
            if status == DeliveryStatus.REJECTED.value:
                events.append(
                    (
                        DELIVERY_EVENTS_TOPIC,
                        DeliveryRejected(aggregate_id=order.id, agent_id=agent.id, reason=reason),
                    )
                )
            log.info("delivery.unassigned", delivery_status=status)
            return events

        if status == DeliveryStatus.PICKED_UP.value and order.status == OrderStatus.READY_FOR_PICKUP.value:
            change = apply_status_change(
                order,
                OrderStatus.OUT_FOR_DELIVERY.value,
                self._order_repo,
                self._agent_repo,
                notes="Picked up by delivery agent",
            )
            return change.events

        if status == DeliveryStatus.DELIVERED.value:
            self._agent_repo.record_completed_delivery(str(agent.id), order.delivery_fee)
            if can_transition(order.status, OrderStatus.DELIVERED.value):
                change = apply_status_change(
                    order,
                    OrderStatus.DELIVERED.value,
                    self._order_repo,
                    self._agent_repo,
                    notes="Delivered by delivery agent",
                )
                return change.events
            log.warning("delivery.order_sync_skipped", order_status=order.status)

        self._order_repo.save(order)
        return events
