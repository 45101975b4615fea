"""Order DRF serializers for API input.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Responses are rendered from the
output DTOs, so there are no read serializers here.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus


class PlaceOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order placement request."""

    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the order placement request payload."""

    restaurant_id = serializers.UUIDField()
    items = PlaceOrderItemSerializer(many=True, allow_empty=False)
    delivery_address = serializers.CharField()
    special_instructions = serializers.CharField(required=False, default="", allow_blank=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class AssignOrderSerializer(serializers.Serializer):
    """``agent_id`` picks an agent explicitly; without it the nearest match is used."""

    agent_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    radius_km = serializers.FloatField(required=False, min_value=0.1, max_value=100)
