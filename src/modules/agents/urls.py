"""Delivery-agent URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.agents.views import AgentViewSet, DeliveryViewSet

router = DefaultRouter(trailing_slash=True)
router.register("agents", AgentViewSet, basename="agent")
router.register("deliveries", DeliveryViewSet, basename="delivery")

urlpatterns = router.urls
