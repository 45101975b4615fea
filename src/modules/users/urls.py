"""Auth URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from modules.users.views import AuthViewSet

router = DefaultRouter(trailing_slash=True)
router.register("auth", AuthViewSet, basename="auth")

urlpatterns = [
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    *router.urls,
]
