"""Auth / profile API views.

Domain exceptions propagate to ``api_exception_handler``; views only parse
input, build DTOs and shape the success envelope.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.core.responses import created, success
from modules.users.dtos import LoginDTO, RegisterUserDTO, UpdateProfileDTO
from modules.users.repositories import UserDjangoRepository
from modules.users.serializers import (
    LoginSerializer,
    RegisterSerializer,
    UpdateProfileSerializer,
)
from modules.users.services import AuthService


class AuthViewSet(ViewSet):
    """Registration, login and the caller's own profile."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AuthService(repository=UserDjangoRepository())

    def get_permissions(self):
        if self.action in {"register", "login"}:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "auth" if self.action in {"register", "login"} else None
        return super().get_throttles()

    @action(detail=False, methods=["post"])
    def register(self, request: Request) -> Response:
        """POST /api/v1/auth/register/"""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self._service.register(RegisterUserDTO(**serializer.validated_data))
        return created(
            result.model_dump(mode="json"),
            message="User registered successfully.",
        )

    @action(detail=False, methods=["post"])
    def login(self, request: Request) -> Response:
        """POST /api/v1/auth/login/"""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self._service.login(LoginDTO(**serializer.validated_data))
        return success(result.model_dump(mode="json"))

    @action(detail=False, methods=["get", "put"])
    def profile(self, request: Request) -> Response:
        """GET/PUT /api/v1/auth/profile/"""
        user_id = request.user.user_id
        if request.method == "GET":
            return success(self._service.get_profile(user_id).model_dump(mode="json"))

        serializer = UpdateProfileSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        profile = self._service.update_profile(
            user_id, UpdateProfileDTO(**serializer.validated_data)
        )
        return success(profile.model_dump(mode="json"))
