"""Restaurant / menu URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.restaurants.views import MenuItemViewSet, RestaurantViewSet

router = DefaultRouter(trailing_slash=True)
router.register("restaurants", RestaurantViewSet, basename="restaurant")
router.register("menu-items", MenuItemViewSet, basename="menu-item")

urlpatterns = router.urls
