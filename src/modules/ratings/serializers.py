"""Rating DRF serializers (request parsing only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.ratings.constants import MAX_SCORE, MIN_SCORE


class SubmitRatingSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    restaurant_rating = serializers.IntegerField(
        required=False, allow_null=True, min_value=MIN_SCORE, max_value=MAX_SCORE
    )
    restaurant_comment = serializers.CharField(required=False, default="", allow_blank=True)
    agent_rating = serializers.IntegerField(
        required=False, allow_null=True, min_value=MIN_SCORE, max_value=MAX_SCORE
    )
    agent_comment = serializers.CharField(required=False, default="", allow_blank=True)
