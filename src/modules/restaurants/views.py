"""Restaurant and menu API views.

Catalog reads are public; profile and menu writes require the
``restaurant`` role and act on the caller's own restaurant.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.filters import query_filters
from modules.core.pagination import paginate
from modules.core.permissions import IsRestaurant
from modules.core.responses import created, success
from modules.restaurants.dtos import (
    CreateMenuItemDTO,
    RestaurantProfileDTO,
    UpdateMenuItemDTO,
    UpdateRestaurantDTO,
)
from modules.restaurants.repositories import (
    MenuItemDjangoRepository,
    RestaurantDjangoRepository,
)
from modules.restaurants.serializers import (
    MenuItemSerializer,
    RestaurantProfileSerializer,
    RestaurantStatusSerializer,
)
from modules.restaurants.services import MenuService, RestaurantService

_PUBLIC_ACTIONS = {"list", "retrieve", "menu", "menu_categories"}


class RestaurantViewSet(ViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        restaurant_repository = RestaurantDjangoRepository()
        self._service = RestaurantService(restaurant_repository)
        self._menu_service = MenuService(MenuItemDjangoRepository(), restaurant_repository)

    def get_permissions(self):
        if self.action in _PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsRestaurant()]

    # ------------------------------------------------------------------
    # Public catalog
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/restaurants/?cuisine=&is_online=&search="""
        filters = query_filters(request, "cuisine", "is_online", "search")
        return paginate(request, self._service.list_restaurants(filters), view=self)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/restaurants/{pk}/"""
        return success(self._service.get_restaurant(pk).model_dump(mode="json"))

    @action(detail=True, methods=["get"])
    def menu(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/restaurants/{pk}/menu/?category=&available="""
        filters = query_filters(request, "category", "available")
        return paginate(request, self._menu_service.get_menu(pk, filters), view=self)

    @action(detail=True, methods=["get"], url_path="menu/categories")
    def menu_categories(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/restaurants/{pk}/menu/categories/"""
        return success(self._menu_service.get_categories(pk))

    # ------------------------------------------------------------------
    # Owner profile
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/restaurants/"""
        serializer = RestaurantProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        restaurant = self._service.create_restaurant(
            request.user.user_id, RestaurantProfileDTO(**serializer.validated_data)
        )
        return created(restaurant.model_dump(mode="json"))

    @action(detail=False, methods=["get", "put"])
    def me(self, request: Request) -> Response:
        """GET/PUT /api/v1/restaurants/me/"""
        owner_id = request.user.user_id
        if request.method == "GET":
            return success(self._service.get_my_restaurant(owner_id).model_dump(mode="json"))

        serializer = RestaurantProfileSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        restaurant = self._service.update_my_restaurant(
            owner_id, UpdateRestaurantDTO(**serializer.validated_data)
        )
        return success(restaurant.model_dump(mode="json"))

    @action(detail=False, methods=["put"], url_path="me/status")
    def me_status(self, request: Request) -> Response:
        """PUT /api/v1/restaurants/me/status/"""
        serializer = RestaurantStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        restaurant = self._service.set_online(
            request.user.user_id, serializer.validated_data["is_online"]
        )
        return success(restaurant.model_dump(mode="json"))


class MenuItemViewSet(ViewSet):
    """Menu item management for the owning restaurant."""

    permission_classes = [IsRestaurant]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = MenuService(MenuItemDjangoRepository(), RestaurantDjangoRepository())

    def get_permissions(self):
        if self.action == "retrieve":
            return [AllowAny()]
        return super().get_permissions()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/menu-items/{pk}/"""
        return success(self._service.get_menu_item(pk).model_dump(mode="json"))

    def create(self, request: Request) -> Response:
        """POST /api/v1/menu-items/"""
        serializer = MenuItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = self._service.create_menu_item(
            request.user.user_id, CreateMenuItemDTO(**serializer.validated_data)
        )
        return created(item.model_dump(mode="json"))

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/menu-items/{pk}/ (partial payloads accepted)"""
        serializer = MenuItemSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        item = self._service.update_menu_item(
            request.user.user_id, pk, UpdateMenuItemDTO(**serializer.validated_data)
        )
        return success(item.model_dump(mode="json"))

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/menu-items/{pk}/ (soft disable)"""
        self._service.delete_menu_item(request.user.user_id, pk)
        return success(message="Menu item deleted.")
