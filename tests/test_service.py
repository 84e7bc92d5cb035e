"""Tests for RecommendationService (the UI-facing boundary)."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from wellness.engine import RecommendationEngine
from wellness.models import (
    Context,
    Engagement,
    PeerOptions,
    RecommendationAction,
)
from wellness.service import (
    RecommendationService,
    parse_context,
    parse_engagement,
    parse_peer_options,
)

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_service(engine_raises: Exception | None = None) -> RecommendationService:
    """Return a service over a mock engine whose every call raises *engine_raises*."""
    engine = MagicMock()
    for name in (
        "generate_contextual_recommendations",
        "generate_peer_recommendations",
        "generate_wellness_task_recommendations",
        "get_adaptive_recommendations",
        "analyze_mood_patterns",
        "generate_insights",
    ):
        getattr(engine, name).side_effect = engine_raises
    engine.feedback.record_action.side_effect = engine_raises
    return RecommendationService(engine)


@pytest.fixture
def service(history_store, interaction_log, peer_directory):
    engine = RecommendationEngine(history_store, interaction_log, peer_directory)
    yield RecommendationService(engine)
    engine.close()


# ---------------------------------------------------------------------------
# End-to-end over the real engine
# ---------------------------------------------------------------------------


class TestContextualRecommendations:
    def test_returns_camel_case_json(self, service) -> None:
        result = service.generate_contextual_recommendations(
            "u1", {"mood": {"rating": 3, "emotion": "anxious"}, "trigger": "work"}
        )
        assert result["userId"] == "u1"
        assert result["source"] == "rule_based"
        assert result["context"]["timeOfDay"] in {"morning", "afternoon", "evening", "night"}
        assert "aiEnhanced" in result["content"][0]
        json.dumps(result)

    def test_empty_user_id_gets_fallback(self, service) -> None:
        result = service.generate_contextual_recommendations("")
        assert result["source"] == "fallback"
        assert len(result["preventive"]) == 2

    def test_bad_mood_rating_gets_fallback(self, service) -> None:
        result = service.generate_contextual_recommendations("u1", {"mood": 42})
        assert result["source"] == "fallback"


class TestOtherEntryPoints:
    def test_peers(self, service) -> None:
        result = service.generate_peer_recommendations("u1", {"limit": 5, "includeAi": False})
        assert result["supportPartners"][0]["id"] == "p_close"
        assert result["supportPartners"][0]["compatibilityScore"] == pytest.approx(0.8)

    def test_tasks(self, service) -> None:
        result = service.generate_wellness_task_recommendations("u1", {"mood": 2, "trigger": "work"})
        assert result["source"] == "rule_based"
        assert result["immediateTasks"]

    def test_adaptive(self, service) -> None:
        result = service.get_adaptive_recommendations(
            "u1", {"recommendationId": "r1", "action": "accepted", "category": "content", "rating": 0.9}
        )
        assert result["adapted"] is False
        assert result["effectiveness"]["accepted"] == 1
        assert result["recommendations"]["userId"] == "u1"

    def test_mood_patterns(self, service) -> None:
        result = service.analyze_mood_patterns("u1")
        assert result["trend"]["trend"] == "insufficient_data"
        assert result["insights"]

    def test_record_feedback(self, service) -> None:
        assert service.record_feedback("u1", "r1", "completed", "exercise", 0.8) == {"recorded": True}

    def test_record_feedback_rejects_bad_input(self, service) -> None:
        result = service.record_feedback("u1", "r1", "loved")
        assert result["recorded"] is False
        assert "loved" in result["error"]

    def test_insights(self, service) -> None:
        service.record_feedback("u1", "r1", "dismissed", "content")
        result = service.generate_insights("u1", time_range_days=1)
        assert result["overview"]["totalInteractions"] == 1
        assert result["categories"]["content"]["totalInteractions"] == 1

    def test_naive_engagement_timestamp_keeps_log_usable(self, service) -> None:
        result = service.get_adaptive_recommendations(
            "u1", {"recommendationId": "r1", "action": "accepted", "rating": 0.9, "timestamp": "2024-06-01T12:00:00"}
        )
        assert result["recommendations"]["source"] != "fallback"
        assert result["effectiveness"]["accepted"] == 1

        service.record_feedback("u1", "r2", "dismissed", "content")
        insights = service.generate_insights("u1", time_range_days=1)
        assert insights["overview"]["totalInteractions"] == 1


# ---------------------------------------------------------------------------
# Never raises
# ---------------------------------------------------------------------------


class TestNeverRaises:
    @pytest.mark.parametrize("error", [RuntimeError("crash"), ValueError("bad input")])
    def test_every_entry_point_returns_default(self, error: Exception) -> None:
        service = _make_service(engine_raises=error)
        assert service.generate_contextual_recommendations("u1")["source"] == "fallback"
        assert service.generate_peer_recommendations("u1")["supportPartners"] == []
        assert service.generate_wellness_task_recommendations("u1")["source"] == "default"
        adaptive = service.get_adaptive_recommendations("u1")
        assert adaptive["learningRate"] == pytest.approx(0.1)
        assert adaptive["recommendations"]["source"] == "fallback"
        assert service.analyze_mood_patterns("u1")["forecast"]["prediction"] == "insufficient_data"
        assert service.generate_insights("u1")["overview"]["trend"] == "insufficient_data"
        assert service.record_feedback("u1", "r1", "shown")["recorded"] is False

    def test_runtime_error_logged_with_traceback(self) -> None:
        service = _make_service(engine_raises=RuntimeError("crash"))
        with patch("wellness.service.logger") as mock_logger:
            service.generate_contextual_recommendations("u1")
            mock_logger.exception.assert_called_once()

    def test_slow_response_logs_warning(self) -> None:
        service = _make_service()
        service._engine.analyze_mood_patterns.return_value = {"trend": "stable"}
        with patch("wellness.service.config.SLOW_REQUEST_WARN_MS", -1):
            with patch("wellness.service.logger") as mock_logger:
                service.analyze_mood_patterns("u1")
                mock_logger.warning.assert_called_once()

    def test_calls_engine_with_parsed_context(self) -> None:
        service = _make_service()
        service._engine.generate_contextual_recommendations.return_value = {}
        service.generate_contextual_recommendations("u42", {"trigger": "family"}, 5)
        args = service._engine.generate_contextual_recommendations.call_args[0]
        assert args[0] == "u42"
        assert args[1].trigger == "family"
        assert args[2] == 5


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


class TestParseContext:
    def test_full_dict(self) -> None:
        ctx = parse_context(
            {
                "mood": {"rating": 4, "emotion": "sad"},
                "trigger": "family",
                "anxietyLevel": 6,
                "stress_level": 3,
                "timestamp": "2024-06-01T12:00:00+00:00",
            }
        )
        assert ctx.mood.rating == 4
        assert ctx.mood.emotion == "sad"
        assert ctx.anxiety_level == 6
        assert ctx.stress_level == 3
        assert ctx.timestamp == TS

    def test_epoch_millis_timestamp(self) -> None:
        assert parse_context({"timestamp": TS.timestamp() * 1000}).timestamp == TS

    def test_naive_iso_timestamp_is_utc(self) -> None:
        assert parse_context({"timestamp": "2024-06-01T12:00:00"}).timestamp == TS

    def test_naive_datetime_is_utc(self) -> None:
        naive = datetime(2024, 6, 1, 12, 0, 0)
        assert parse_context({"timestamp": naive}).timestamp == TS

    def test_offset_iso_timestamp_kept(self) -> None:
        ctx = parse_context({"timestamp": "2024-06-01T14:00:00+02:00"})
        assert ctx.timestamp == TS

    def test_passthrough(self) -> None:
        ctx = Context(trigger="x")
        assert parse_context(ctx) is ctx
        assert parse_context(None) is None

    def test_invalid_rating_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_context({"mood": {"rating": 0}})


class TestParseEngagement:
    def test_camel_and_snake_keys(self) -> None:
        camel = parse_engagement({"recommendationId": "r1", "action": "saved"})
        snake = parse_engagement({"recommendation_id": "r1", "action": "saved"})
        assert camel == snake
        assert camel.action is RecommendationAction.SAVED

    def test_naive_timestamp_is_utc(self) -> None:
        engagement = parse_engagement({"recommendationId": "r1", "timestamp": "2024-06-01T12:00:00"})
        assert engagement.timestamp == TS
        assert engagement.timestamp.tzinfo is not None

    def test_passthrough(self) -> None:
        engagement = Engagement(recommendation_id="r1")
        assert parse_engagement(engagement) is engagement


class TestParsePeerOptions:
    def test_defaults(self) -> None:
        assert parse_peer_options({}) == PeerOptions()

    def test_values(self) -> None:
        assert parse_peer_options({"limit": "3", "include_ai": 0}) == PeerOptions(limit=3, include_ai=False)
