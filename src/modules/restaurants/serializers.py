"""Restaurant / menu DRF serializers (request parsing only)."""

from __future__ import annotations

from rest_framework import serializers


class RestaurantProfileSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    address = serializers.CharField()
    description = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    cuisine_type = serializers.CharField(required=False, allow_blank=True, max_length=50)
    opening_time = serializers.TimeField(required=False, allow_null=True)
    closing_time = serializers.TimeField(required=False, allow_null=True)
    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(
        required=False, allow_null=True, min_value=-180, max_value=180
    )


class RestaurantStatusSerializer(serializers.Serializer):
    is_online = serializers.BooleanField()


class MenuItemSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    category = serializers.CharField(max_length=50, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    is_available = serializers.BooleanField(required=False)
    image_url = serializers.URLField(required=False, allow_blank=True, max_length=255)
