"""Delivery-agent matching: haversine distance and weighted scoring.

``score = 0.6 * distance_score + 0.4 * rating_score`` where
``distance_score = max(0, 10000 - distance_m) / 10000`` and
``rating_score = rating / 5``.  Equal scores are broken by the lowest
agent id, so the result never depends on candidate order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from modules.agents.constants import (
    DISTANCE_CUTOFF_M,
    DISTANCE_WEIGHT,
    EARTH_RADIUS_KM,
    MAX_RATING,
    RATING_WEIGHT,
)


@dataclass(frozen=True)
class NearbyAgent:
    """An available agent inside the search radius."""

    agent_id: str
    latitude: float
    longitude: float
    rating: float
    distance_m: float

    @property
    def score(self) -> float:
        return score_agent(self.distance_m, self.rating)


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * 1000 * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(
    lat: float, lng: float, radius_km: float
) -> Tuple[float, float, Optional[float], Optional[float]]:
    """Return ``(min_lat, max_lat, min_lng, max_lng)`` enclosing the circle.

    The longitude bounds are ``None`` when the box touches a pole or wraps
    the antimeridian; callers then filter on latitude only.
    """
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    min_lat, max_lat = lat - d_lat, lat + d_lat
    if min_lat <= -90 or max_lat >= 90:
        return max(min_lat, -90.0), min(max_lat, 90.0), None, None

    d_lng = math.degrees(radius_km / EARTH_RADIUS_KM / math.cos(math.radians(lat)))
    min_lng, max_lng = lng - d_lng, lng + d_lng
    if min_lng < -180 or max_lng > 180:
        return min_lat, max_lat, None, None
    return min_lat, max_lat, min_lng, max_lng


def distance_score(distance_m: float) -> float:
    return max(0.0, DISTANCE_CUTOFF_M - distance_m) / DISTANCE_CUTOFF_M


def rating_score(rating: float) -> float:
    return float(rating) / MAX_RATING


def score_agent(distance_m: float, rating: float) -> float:
    return DISTANCE_WEIGHT * distance_score(distance_m) + RATING_WEIGHT * rating_score(rating)


def rank_agents(candidates: Iterable[NearbyAgent]) -> List[NearbyAgent]:
    """Best first; equal scores ordered by ascending agent id."""
    return sorted(candidates, key=lambda c: (-c.score, c.agent_id))


def select_best_agent(candidates: Iterable[NearbyAgent]) -> Optional[NearbyAgent]:
    """Return the highest-scoring candidate, or ``None`` if there are none."""
    ranked = rank_agents(candidates)
    return ranked[0] if ranked else None
