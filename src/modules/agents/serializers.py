"""Delivery-agent DRF serializers (request parsing only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.agents.constants import VehicleType
from modules.orders.constants import DeliveryStatus


class RegisterAgentSerializer(serializers.Serializer):
    vehicle_type = serializers.ChoiceField(choices=VehicleType.choices)
    license_number = serializers.CharField(required=False, default="", allow_blank=True, max_length=50)


class UpdateAgentSerializer(serializers.Serializer):
    vehicle_type = serializers.ChoiceField(choices=VehicleType.choices, required=False)
    license_number = serializers.CharField(required=False, allow_blank=True, max_length=50)


class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    speed = serializers.FloatField(required=False, allow_null=True, min_value=0)
    bearing = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=360)


class AvailabilitySerializer(serializers.Serializer):
    is_available = serializers.BooleanField()


class NearbyQuerySerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0.1, max_value=100)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=50, default=10)


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DeliveryStatus.choices)
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class RejectDeliverySerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)
