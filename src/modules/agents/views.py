"""Delivery-agent and delivery API views.

Agent profile endpoints act on the caller's own profile; delivery
endpoints act on orders assigned to the caller.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.agents.dtos import LocationDTO, RegisterAgentDTO, UpdateAgentDTO
from modules.agents.repositories import DeliveryAgentDjangoRepository
from modules.agents.serializers import (
    AvailabilitySerializer,
    DeliveryStatusSerializer,
    LocationSerializer,
    NearbyQuerySerializer,
    RegisterAgentSerializer,
    RejectDeliverySerializer,
    UpdateAgentSerializer,
)
from modules.agents.services import AgentService, DeliveryService
from modules.core.filters import query_filters
from modules.core.pagination import paginate
from modules.core.permissions import IsDeliveryAgent
from modules.core.responses import created, success
from modules.orders.repositories import OrderDjangoRepository
from modules.restaurants.repositories import RestaurantDjangoRepository

_ANY_ROLE_ACTIONS = {"retrieve", "nearby", "last_location"}


class AgentViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        agent_repository = DeliveryAgentDjangoRepository()
        self._service = AgentService(agent_repository, order_repository)
        self._delivery_service = DeliveryService(
            order_repository, agent_repository, RestaurantDjangoRepository()
        )

    def get_permissions(self):
        if self.action in _ANY_ROLE_ACTIONS:
            return [IsAuthenticated()]
        return [IsDeliveryAgent()]

    def create(self, request: Request) -> Response:
        """POST /api/v1/agents/"""
        serializer = RegisterAgentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = self._service.register(
            request.user.user_id, RegisterAgentDTO(**serializer.validated_data)
        )
        return created(agent.model_dump(mode="json"), message="Delivery agent registered.")

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/agents/{pk}/"""
        return success(self._service.get_agent(pk).model_dump(mode="json"))

    @action(detail=False, methods=["get", "put"])
    def me(self, request: Request) -> Response:
        """GET/PUT /api/v1/agents/me/"""
        user_id = request.user.user_id
        if request.method == "GET":
            return success(self._service.get_profile(user_id).model_dump(mode="json"))

        serializer = UpdateAgentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = self._service.update_profile(user_id, UpdateAgentDTO(**serializer.validated_data))
        return success(agent.model_dump(mode="json"))

    @action(detail=False, methods=["put"])
    def location(self, request: Request) -> Response:
        """PUT /api/v1/agents/location/"""
        serializer = LocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        location = self._service.update_location(
            request.user.user_id, LocationDTO(**serializer.validated_data)
        )
        return success(location.model_dump(mode="json"), message="Location updated.")

    @action(detail=True, methods=["get"], url_path="location", url_name="last-location")
    def last_location(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/agents/{pk}/location/"""
        location = self._service.get_location(pk)
        return success(location.model_dump(mode="json") if location else None)

    @action(detail=False, methods=["put"])
    def availability(self, request: Request) -> Response:
        """PUT /api/v1/agents/availability/"""
        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = self._service.set_availability(
            request.user.user_id, serializer.validated_data["is_available"]
        )
        return success(agent.model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path="active-delivery")
    def active_delivery(self, request: Request) -> Response:
        """GET /api/v1/agents/active-delivery/"""
        order = self._delivery_service.active_delivery(request.user)
        return success(order.model_dump(mode="json") if order else None)

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/agents/stats/"""
        return success(self._service.stats(request.user.user_id).model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def nearby(self, request: Request) -> Response:
        """GET /api/v1/agents/nearby/?lat=&lng=&radius_km=&limit="""
        serializer = NearbyQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        agents = self._service.nearby(
            data["lat"], data["lng"], radius_km=data.get("radius_km"), limit=data["limit"]
        )
        return success([agent.model_dump(mode="json") for agent in agents])


class DeliveryViewSet(ViewSet):
    """The caller's deliveries (orders assigned to them)."""

    permission_classes = [IsDeliveryAgent]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DeliveryService(
            OrderDjangoRepository(),
            DeliveryAgentDjangoRepository(),
            RestaurantDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/deliveries/?status=&start_date=&end_date="""
        filters = query_filters(request, "status", "start_date", "end_date")
        return paginate(request, self._service.delivery_history(request.user, filters), view=self)

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/accept/"""
        order = self._service.accept_delivery(request.user, pk)
        return success(order.model_dump(mode="json"), message="Delivery accepted.")

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/deliveries/{pk}/reject/"""
        serializer = RejectDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.reject_delivery(request.user, pk, serializer.validated_data["reason"])
        return success(order.model_dump(mode="json"), message="Delivery rejected.")

    @action(detail=True, methods=["put"], url_path="status")
    def status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/deliveries/{pk}/status/"""
        serializer = DeliveryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_delivery_status(
            request.user,
            pk,
            serializer.validated_data["status"],
            reason=serializer.validated_data["reason"],
        )
        return success(order.model_dump(mode="json"), message="Delivery status updated.")
