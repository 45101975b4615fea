"""Rating API views (customers only)."""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.agents.repositories import DeliveryAgentDjangoRepository
from modules.core.pagination import paginate
from modules.core.permissions import IsCustomer
from modules.core.responses import created, success
from modules.orders.repositories import OrderDjangoRepository
from modules.ratings.dtos import SubmitRatingDTO
from modules.ratings.repositories import RatingDjangoRepository
from modules.ratings.serializers import SubmitRatingSerializer
from modules.ratings.services import RatingService
from modules.restaurants.repositories import RestaurantDjangoRepository


class RatingViewSet(ViewSet):
    permission_classes = [IsCustomer]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = RatingService(
            RatingDjangoRepository(),
            OrderDjangoRepository(),
            RestaurantDjangoRepository(),
            DeliveryAgentDjangoRepository(),
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/ratings/"""
        serializer = SubmitRatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ratings = self._service.submit(request.user, SubmitRatingDTO(**serializer.validated_data))
        return created(
            [rating.model_dump(mode="json") for rating in ratings],
            message="Thanks for your rating.",
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/ratings/"""
        return paginate(request, self._service.list_mine(request.user), view=self)

    @action(detail=False, methods=["get"], url_path=r"can-rate/(?P<order_id>[^/.]+)")
    def can_rate(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/ratings/can-rate/{order_id}/"""
        return success(self._service.can_rate(request.user, order_id).model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path=r"order/(?P<order_id>[^/.]+)")
    def order(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/ratings/order/{order_id}/"""
        ratings = self._service.list_for_order(request.user, order_id)
        return success([rating.model_dump(mode="json") for rating in ratings])
