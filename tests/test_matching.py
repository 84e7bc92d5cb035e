"""Tests for wellness.matching."""

import pytest

from wellness.matching import (
    activity_levels_compatible,
    age_ranges_compatible,
    behavioral_similarity,
    calculate_compatibility,
    categorize_activity_level,
    get_shared_interests,
    parse_age_range,
    suggested_interaction_type,
)
from wellness.models import ActivityLevel, InteractionType, PeerProfile


class TestAgeRanges:
    def test_parse(self) -> None:
        assert parse_age_range("26-35") == (26, 35)
        assert parse_age_range("56+") == (56, 100)
        assert parse_age_range("unknown") is None
        assert parse_age_range(None) is None

    def test_overlap(self) -> None:
        assert age_ranges_compatible("26-35", "30-40")
        assert age_ranges_compatible("18-25", "25-30")
        assert not age_ranges_compatible("18-25", "26-35")
        assert not age_ranges_compatible("18-25", None)


class TestCompatibility:
    def test_close_peer(self, user_profile: PeerProfile, close_peer: PeerProfile) -> None:
        assert calculate_compatibility(user_profile, close_peer) == pytest.approx(0.8)

    def test_distant_peer(self, user_profile: PeerProfile, distant_peer: PeerProfile) -> None:
        assert calculate_compatibility(user_profile, distant_peer) == pytest.approx(0.0)

    def test_identical_profiles_capped_at_one(self, user_profile: PeerProfile) -> None:
        assert calculate_compatibility(user_profile, user_profile) == pytest.approx(1.0)

    def test_shared_interests(self, user_profile: PeerProfile, close_peer: PeerProfile) -> None:
        assert get_shared_interests(user_profile, close_peer) == ["anxiety"]

    def test_missing_style_never_matches(self) -> None:
        a = PeerProfile(id="a")
        b = PeerProfile(id="b")
        assert calculate_compatibility(a, b) == 0.0


class TestBehavioralSimilarity:
    def test_identical_direction(self) -> None:
        assert behavioral_similarity({"a": 2, "b": 4}, {"a": 1, "b": 2}) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        assert behavioral_similarity({"a": 3}, {"b": 5}) == pytest.approx(0.0)

    def test_no_activity_is_neutral(self) -> None:
        assert behavioral_similarity({}, {"a": 1}) == 0.5
        assert behavioral_similarity({}, {}) == 0.5


class TestInteractionType:
    @pytest.mark.parametrize(
        "profile,behavior,expected",
        [
            (0.9, 0.9, InteractionType.COLLABORATIVE_SUPPORT),
            (0.8, 0.5, InteractionType.PEER_MENTORING),
            (0.5, 0.5, InteractionType.ACTIVITY_PARTNERSHIP),
            (0.2, 0.3, InteractionType.GENERAL_CONNECTION),
        ],
    )
    def test_thresholds(self, profile: float, behavior: float, expected: InteractionType) -> None:
        assert suggested_interaction_type(profile, behavior) == expected


class TestActivityLevels:
    def test_categorize(self) -> None:
        assert categorize_activity_level(40, 6) == ActivityLevel.HIGH
        assert categorize_activity_level(20, 3) == ActivityLevel.MEDIUM
        assert categorize_activity_level(40, 1) == ActivityLevel.LOW

    def test_compatible(self) -> None:
        assert activity_levels_compatible(ActivityLevel.LOW, ActivityLevel.MEDIUM)
        assert not activity_levels_compatible(ActivityLevel.LOW, ActivityLevel.HIGH)
        assert activity_levels_compatible(ActivityLevel.UNKNOWN, ActivityLevel.HIGH)
