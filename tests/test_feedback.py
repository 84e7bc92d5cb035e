"""Tests for wellness.feedback."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from wellness.feedback import ENGAGEMENT_EVENT, FeedbackLoop, calculate_learning_rate
from wellness.models import Engagement, RecommendationAction
from wellness.sources.memory import InMemoryInteractionLog

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestCalculateLearningRate:
    def test_no_feedback_default(self) -> None:
        assert calculate_learning_rate(None, now=TS) == pytest.approx(0.1)

    def test_fresh_full_rating_hits_ceiling(self) -> None:
        rate = calculate_learning_rate(Engagement(rating=1.0, timestamp=TS), now=TS)
        assert rate == pytest.approx(0.5)

    def test_two_days_old_decays(self) -> None:
        rate = calculate_learning_rate(
            Engagement(rating=1.0, timestamp=TS - timedelta(hours=48)), now=TS
        )
        assert rate == pytest.approx(math.exp(-2))
        assert rate < 0.15

    def test_recency_floor(self) -> None:
        rate = calculate_learning_rate(
            Engagement(rating=0.8, timestamp=TS - timedelta(days=10)), now=TS
        )
        assert rate == pytest.approx(0.08)

    def test_missing_rating_uses_half(self) -> None:
        rate = calculate_learning_rate(Engagement(timestamp=TS - timedelta(hours=24)), now=TS)
        assert rate == pytest.approx(0.5 * math.exp(-1))

    def test_lower_clamp(self) -> None:
        rate = calculate_learning_rate(
            Engagement(rating=0.05, timestamp=TS - timedelta(days=30)), now=TS
        )
        assert rate == pytest.approx(0.01)

    def test_missing_timestamp_means_no_decay(self) -> None:
        assert calculate_learning_rate(Engagement(rating=0.3), now=TS) == pytest.approx(0.3)


class TestFeedbackLoopRecording:
    def test_records_engagement_event(self, interaction_log: InMemoryInteractionLog) -> None:
        loop = FeedbackLoop(interaction_log)
        event = loop.record_action("u1", "rec-1", "accepted", category="content", rating=0.9, now=TS)

        assert event.type == ENGAGEMENT_EVENT
        assert event.action is RecommendationAction.ACCEPTED
        assert interaction_log.recent(1) == [event]

    def test_category_defaults_to_general(self, interaction_log: InMemoryInteractionLog) -> None:
        event = FeedbackLoop(interaction_log).record_action("u1", "rec-1", "shown", now=TS)
        assert event.category == "general"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"user_id": "", "recommendation_id": "r", "action": "shown"},
            {"user_id": "u1", "recommendation_id": "", "action": "shown"},
            {"user_id": "u1", "recommendation_id": "r", "action": "liked"},
            {"user_id": "u1", "recommendation_id": "r", "action": "shown", "category": "movies"},
            {"user_id": "u1", "recommendation_id": "r", "action": "shown", "rating": 4},
        ],
    )
    def test_invalid_input_raises(self, interaction_log: InMemoryInteractionLog, kwargs) -> None:
        with pytest.raises(ValueError):
            FeedbackLoop(interaction_log).record_action(**kwargs)
        assert len(interaction_log) == 0

    def test_record_engagement_defaults_to_feedback(self, interaction_log: InMemoryInteractionLog) -> None:
        event = FeedbackLoop(interaction_log).record_engagement(
            "u1", Engagement(recommendation_id="rec-9", rating=0.4, timestamp=TS)
        )
        assert event.action is RecommendationAction.FEEDBACK
        assert event.timestamp == TS


class TestEffectiveness:
    def test_counters(self, interaction_log: InMemoryInteractionLog) -> None:
        loop = FeedbackLoop(interaction_log)
        loop.record_action("u1", "a", "accepted", "content", 0.9, now=TS)
        loop.record_action("u1", "b", "completed", "exercise", 0.5, now=TS)
        loop.record_action("u1", "c", "dismissed", "content", now=TS)
        loop.record_action("u2", "d", "accepted", "content", 1.0, now=TS)

        summary = loop.effectiveness("u1")
        assert summary.total == 3
        assert summary.accepted == 2
        assert summary.effective == 1
        assert summary.acceptance_rate == pytest.approx(2 / 3)
        assert summary.categories["content"].total == 2
        assert summary.categories["exercise"].accepted == 1

    def test_unknown_user_is_empty(self, interaction_log: InMemoryInteractionLog) -> None:
        summary = FeedbackLoop(interaction_log).effectiveness("nobody")
        assert summary.total == 0
        assert summary.categories == {}

    def test_snapshot_is_detached(self, interaction_log: InMemoryInteractionLog) -> None:
        loop = FeedbackLoop(interaction_log)
        loop.record_action("u1", "a", "accepted", "content", now=TS)
        summary = loop.effectiveness("u1")
        loop.record_action("u1", "b", "accepted", "content", now=TS)
        assert summary.categories["content"].total == 1


class TestCategoryWeights:
    def test_needs_three_samples(self, interaction_log: InMemoryInteractionLog) -> None:
        loop = FeedbackLoop(interaction_log)
        loop.record_action("u1", "a", "accepted", "content", 1.0, now=TS)
        loop.record_action("u1", "b", "accepted", "content", 1.0, now=TS)
        assert loop.category_weights("u1") == {}

    def test_weights_follow_effectiveness(self, interaction_log: InMemoryInteractionLog) -> None:
        loop = FeedbackLoop(interaction_log)
        for rec in ("a", "b", "c"):
            loop.record_action("u1", rec, "completed", "exercise", 0.9, now=TS)
            loop.record_action("u1", rec, "dismissed", "content", 0.1, now=TS)
        weights = loop.category_weights("u1")
        assert weights["exercise"] == pytest.approx(1.25)
        assert weights["content"] == pytest.approx(0.75)
