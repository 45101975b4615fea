"""Ratings constants."""

from django.db import models


class RatingTarget(models.TextChoices):
    RESTAURANT = "restaurant", "Restaurant"
    AGENT = "agent", "Delivery agent"


MIN_SCORE = 1
MAX_SCORE = 5

RATING_EVENTS_TOPIC = "rating-events"
