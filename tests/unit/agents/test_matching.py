"""Unit tests for agent matching: distance, scoring and ranking."""

from __future__ import annotations

import pytest

from modules.agents.matching import (
    NearbyAgent,
    bounding_box,
    haversine_m,
    rank_agents,
    score_agent,
    select_best_agent,
)

pytestmark = pytest.mark.unit


def _candidate(agent_id: str, distance_m: float, rating: float) -> NearbyAgent:
    return NearbyAgent(
        agent_id=agent_id,
        latitude=0.0,
        longitude=0.0,
        rating=rating,
        distance_m=distance_m,
    )


# ---------------------------------------------------------------------------
# Distance
# ---------------------------------------------------------------------------


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_m(40.7128, -74.0060, 40.7128, -74.0060) == 0

    def test_one_degree_of_latitude(self):
        assert haversine_m(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)

    def test_symmetric(self):
        forward = haversine_m(40.7128, -74.0060, 40.7306, -73.9352)
        backward = haversine_m(40.7306, -73.9352, 40.7128, -74.0060)
        assert forward == pytest.approx(backward)


class TestBoundingBox:
    def test_box_contains_the_circle(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(40.7128, -74.0060, 5)

        assert min_lat < 40.7128 < max_lat
        assert min_lng < -74.0060 < max_lng
        # 5 km north / east of the centre stays inside.
        assert haversine_m(40.7128, -74.0060, max_lat, -74.0060) == pytest.approx(5000, rel=1e-3)

    def test_near_pole_drops_longitude_bounds(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(89.99, 0, 10)
        assert max_lat == 90.0
        assert min_lng is None and max_lng is None

    def test_antimeridian_drops_longitude_bounds(self):
        _, _, min_lng, max_lng = bounding_box(0, 179.99, 10)
        assert min_lng is None and max_lng is None


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestScoring:
    def test_perfect_score_at_pickup_point_with_top_rating(self):
        assert score_agent(0, 5) == pytest.approx(1.0)

    def test_zero_score_at_cutoff_with_no_rating(self):
        assert score_agent(10_000, 0) == pytest.approx(0.0)

    def test_distance_beyond_cutoff_keeps_rating_component(self):
        assert score_agent(25_000, 5) == pytest.approx(0.4)

    def test_weighted_mix(self):
        # 0.6 * 0.5 + 0.4 * 0.5
        assert score_agent(5_000, 2.5) == pytest.approx(0.5)

    def test_candidate_score_property(self):
        assert _candidate("a", 1_000, 3).score == pytest.approx(0.6 * 0.9 + 0.4 * 0.6)


class TestRanking:
    def test_closer_agent_can_beat_better_rated_agent(self):
        near = _candidate("b", 1_000, 3.0)  # 0.78
        far = _candidate("a", 4_000, 5.0)  # 0.76

        assert select_best_agent([far, near]) is near

    def test_ties_break_on_lowest_agent_id(self):
        first = _candidate("0190-aaaa", 2_000, 4.0)
        second = _candidate("0190-bbbb", 2_000, 4.0)

        assert rank_agents([second, first]) == [first, second]
        assert select_best_agent([second, first]) is first

    def test_ranking_is_independent_of_input_order(self):
        candidates = [
            _candidate("c", 500, 2.0),
            _candidate("a", 9_000, 5.0),
            _candidate("b", 3_000, 4.5),
        ]

        assert rank_agents(candidates) == rank_agents(list(reversed(candidates)))

    def test_no_candidates(self):
        assert select_best_agent([]) is None
        assert rank_agents([]) == []
