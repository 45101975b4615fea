"""Delivery-agent constants."""

from django.db import models


class VehicleType(models.TextChoices):
    BICYCLE = "bicycle", "Bicycle"
    MOTORCYCLE = "motorcycle", "Motorcycle"
    CAR = "car", "Car"
    SCOOTER = "scooter", "Scooter"


class AgentState(models.TextChoices):
    """Read-only view over ``is_active`` / ``is_available`` / ``is_on_delivery``."""

    OFFLINE = "offline", "Offline"
    IDLE = "idle", "Idle"
    BUSY = "busy", "Busy"


EARTH_RADIUS_KM = 6371.0

# score = DISTANCE_WEIGHT * distance_score + RATING_WEIGHT * rating_score
DISTANCE_WEIGHT = 0.6
RATING_WEIGHT = 0.4
DISTANCE_CUTOFF_M = 10_000
MAX_RATING = 5

NEARBY_DEFAULT_LIMIT = 10

# Cache TTLs (seconds)
AGENT_PROFILE_CACHE_TTL = 300
AGENT_STATS_CACHE_TTL = 600
DELIVERY_HISTORY_CACHE_TTL = 120
ACTIVE_DELIVERY_CACHE_TTL = 60
AGENT_LOCATION_CACHE_TTL = 300

AGENT_EVENTS_TOPIC = "agent-events"
DELIVERY_EVENTS_TOPIC = "delivery-events"
