"""Ratings URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.ratings.views import RatingViewSet

router = DefaultRouter(trailing_slash=True)
router.register("ratings", RatingViewSet, basename="rating")

urlpatterns = router.urls
