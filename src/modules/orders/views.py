"""Order API views.

Exposes ``OrderService`` (and the restaurant side of ``DeliveryService``)
via HTTP using a DRF ViewSet.  Domain exceptions propagate to
``api_exception_handler``; the view never catches them itself.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.agents.repositories import DeliveryAgentDjangoRepository
from modules.agents.services import DeliveryService
from modules.core.filters import query_filters
from modules.core.pagination import paginate
from modules.core.permissions import IsCustomer, IsCustomerOrRestaurant, IsRestaurant
from modules.core.responses import created, success
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderItemDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    AssignOrderSerializer,
    OrderStatusSerializer,
    PlaceOrderSerializer,
    ReasonSerializer,
)
from modules.orders.services import OrderService
from modules.restaurants.repositories import (
    MenuItemDjangoRepository,
    RestaurantDjangoRepository,
)

_RESTAURANT_ACTIONS = {"pending", "stats", "status", "accept", "reject", "assign"}


class OrderViewSet(ViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        restaurant_repository = RestaurantDjangoRepository()
        agent_repository = DeliveryAgentDjangoRepository()
        self._service = OrderService(
            order_repository=order_repository,
            restaurant_repository=restaurant_repository,
            menu_repository=MenuItemDjangoRepository(),
            agent_repository=agent_repository,
        )
        self._delivery_service = DeliveryService(
            order_repository=order_repository,
            agent_repository=agent_repository,
            restaurant_repository=restaurant_repository,
        )

    def get_permissions(self):
        if self.action == "create":
            return [IsCustomer()]
        if self.action in _RESTAURANT_ACTIONS:
            return [IsRestaurant()]
        if self.action in {"list", "cancel"}:
            return [IsCustomerOrRestaurant()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        dto = PlaceOrderDTO(
            restaurant_id=data["restaurant_id"],
            items=[
                PlaceOrderItemDTO(menu_item_id=item["menu_item_id"], quantity=item["quantity"])
                for item in data["items"]
            ],
            delivery_address=data["delivery_address"],
            special_instructions=data.get("special_instructions", ""),
        )
        order = self._service.place_order(request.user, dto)
        return created(order.model_dump(mode="json"), message="Order placed successfully.")

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?status=&start_date=&end_date="""
        filters = query_filters(request, "status", "start_date", "end_date")
        return paginate(request, self._service.list_orders(request.user, filters), view=self)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        return success(self._service.get_order(request.user, pk).model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def pending(self, request: Request) -> Response:
        """GET /api/v1/orders/pending/"""
        orders = self._service.pending_orders(request.user)
        return success([order.model_dump(mode="json") for order in orders])

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/?start_date=&end_date="""
        filters = query_filters(request, "start_date", "end_date")
        return success(self._service.stats(request.user, filters).model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    @action(detail=True, methods=["put"], url_path="status")
    def status(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/status/"""
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            request.user,
            pk,
            serializer.validated_data["status"],
            notes=serializer.validated_data["notes"],
        )
        return success(order.model_dump(mode="json"), message="Order status updated.")

    @action(detail=True, methods=["put"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/accept/"""
        order = self._service.accept(request.user, pk)
        return success(order.model_dump(mode="json"), message="Order accepted.")

    @action(detail=True, methods=["put"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/reject/"""
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.reject(request.user, pk, serializer.validated_data["reason"])
        return success(order.model_dump(mode="json"), message="Order rejected.")

    @action(detail=True, methods=["put"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/cancel/

        Cancels the order and frees the assigned agent, if any.
        """
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.cancel(request.user, pk, serializer.validated_data["reason"])
        return success(order.model_dump(mode="json"), message="Order cancelled.")

    # ------------------------------------------------------------------
    # Delivery assignment
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign/

        With ``agent_id`` the given agent is assigned; otherwise the best
        available agent around the restaurant is matched.
        """
        serializer = AssignOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = self._delivery_service.assign_for_restaurant(
            request.user,
            pk,
            agent_id=data.get("agent_id"),
            radius_km=data.get("radius_km"),
        )
        return success(order.model_dump(mode="json"), message="Delivery agent assigned.")
