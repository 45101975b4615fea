"""User DRF serializers (request parsing only).

Business validation happens in the Pydantic DTOs; these serializers
reject malformed payloads at the HTTP boundary.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.users.constants import PASSWORD_MIN_LENGTH, UserRole


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=PASSWORD_MIN_LENGTH, write_only=True)
    phone = serializers.CharField(required=False, default="", allow_blank=True, max_length=20)
    address = serializers.CharField(required=False, default="", allow_blank=True)
    role = serializers.ChoiceField(
        choices=[
            UserRole.CUSTOMER.value,
            UserRole.RESTAURANT.value,
            UserRole.DELIVERY_AGENT.value,
        ],
        required=False,
        default=UserRole.CUSTOMER.value,
    )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class UpdateProfileSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, max_length=100)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    address = serializers.CharField(required=False, allow_blank=True)
