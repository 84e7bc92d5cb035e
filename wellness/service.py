"""Service boundary: the entry points called by the UI layer.

Every method accepts plain values (dicts with camelCase keys, as sent by the
app) or the typed models, and returns a JSON-compatible dict.  No method
raises: failures are logged and converted to the same safe default bundles
the engine uses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import config
from wellness.analytics import DEFAULT_TIME_RANGE
from wellness.engine import RecommendationEngine, default_task_bundle, fallback_bundle
from wellness.models import (
    AdaptiveBundle,
    Context,
    EffectivenessSummary,
    Engagement,
    InsightReport,
    MoodSnapshot,
    PeerBundle,
    PeerOptions,
    PerformanceOverview,
    RecommendationAction,
)
from wellness.patterns import default_mood_report
from wellness.serialization import to_json

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecommendationService:
    """JSON-in, JSON-out facade over :class:`~wellness.engine.RecommendationEngine`.

    Each call is timed; calls slower than ``config.SLOW_REQUEST_WARN_MS``
    are logged at WARNING, others at DEBUG.

    Args:
        engine: The :class:`~wellness.engine.RecommendationEngine`.
    """

    def __init__(self, engine: RecommendationEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Recommendation requests
    # ------------------------------------------------------------------

    def generate_contextual_recommendations(
        self,
        user_id: str,
        context: Context | dict[str, Any] | None = None,
        max_recommendations: int | None = None,
    ) -> dict[str, Any]:
        """Return a contextual bundle, or the two-item fallback bundle on error."""
        return self._call(
            "generate_contextual_recommendations",
            user_id,
            lambda: self._engine.generate_contextual_recommendations(
                user_id, parse_context(context), max_recommendations
            ),
            lambda: fallback_bundle(user_id or ""),
        )

    def generate_peer_recommendations(
        self, user_id: str, options: PeerOptions | dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return self._call(
            "generate_peer_recommendations",
            user_id,
            lambda: self._engine.generate_peer_recommendations(user_id, parse_peer_options(options)),
            PeerBundle,
        )

    def generate_wellness_task_recommendations(
        self, user_id: str, context: Context | dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return self._call(
            "generate_wellness_task_recommendations",
            user_id,
            lambda: self._engine.generate_wellness_task_recommendations(user_id, parse_context(context)),
            default_task_bundle,
        )

    def get_adaptive_recommendations(
        self, user_id: str, engagement: Engagement | dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return self._call(
            "get_adaptive_recommendations",
            user_id,
            lambda: self._engine.get_adaptive_recommendations(user_id, parse_engagement(engagement)),
            lambda: AdaptiveBundle(
                recommendations=fallback_bundle(user_id or ""),
                learning_rate=0.1,
                effectiveness=EffectivenessSummary(),
            ),
        )

    # ------------------------------------------------------------------
    # Patterns, feedback and insights
    # ------------------------------------------------------------------

    def analyze_mood_patterns(self, user_id: str) -> dict[str, Any]:
        return self._call(
            "analyze_mood_patterns",
            user_id,
            lambda: self._engine.analyze_mood_patterns(user_id),
            default_mood_report,
        )

    def record_feedback(
        self,
        user_id: str,
        recommendation_id: str,
        action: RecommendationAction | str,
        category: str | None = None,
        rating: float | None = None,
    ) -> dict[str, Any]:
        """Record a user action; returns ``{"recorded": bool}`` plus an error on bad input."""
        try:
            self._engine.feedback.record_action(user_id, recommendation_id, action, category, rating)
        except ValueError as exc:
            logger.warning("Rejected feedback for user=%r: %s", user_id, exc)
            return {"recorded": False, "error": str(exc)}
        except Exception:
            logger.exception("Error recording feedback for user=%r rec=%r", user_id, recommendation_id)
            return {"recorded": False, "error": "Internal error recording feedback."}
        return {"recorded": True}

    def generate_insights(self, user_id: str, time_range_days: float | None = None) -> dict[str, Any]:
        time_range = timedelta(days=time_range_days) if time_range_days else DEFAULT_TIME_RANGE
        return self._call(
            "generate_insights",
            user_id,
            lambda: self._engine.generate_insights(user_id, time_range=time_range),
            lambda: InsightReport(overview=PerformanceOverview(trend="insufficient_data")),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call(
        self,
        name: str,
        user_id: str,
        produce: Callable[[], T],
        fallback: Callable[[], T],
    ) -> dict[str, Any]:
        start_ms = time.monotonic() * 1000
        try:
            result = produce()
        except ValueError as exc:
            logger.warning("%s rejected for user=%r: %s", name, user_id, exc)
            result = fallback()
        except Exception:
            logger.exception("Unexpected error in %s for user=%r", name, user_id)
            result = fallback()
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > config.SLOW_REQUEST_WARN_MS:
                logger.warning("%s for user=%r took %.1fms", name, user_id, elapsed_ms)
            else:
                logger.debug("%s for user=%r took %.1fms", name, user_id, elapsed_ms)
        return to_json(result)


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


def _parse_datetime(value: Any) -> datetime | None:
    """Parse a request timestamp; naive values are taken to be UTC."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as sent by the app.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _pick(data: dict[str, Any], camel: str, snake: str) -> Any:
    return data.get(camel, data.get(snake))


def parse_context(data: Context | dict[str, Any] | None) -> Context | None:
    """Build a :class:`~wellness.models.Context` from a request dict.

    Only caller-supplied fields are read: ``timestamp``, ``mood``
    (``{"rating", "emotion"}``), ``trigger``, ``anxietyLevel`` and
    ``stressLevel``.  Derived fields are left to the enricher.

    Raises:
        ValueError: If a field is malformed (e.g. mood rating out of range).
    """
    if data is None or isinstance(data, Context):
        return data
    mood = data.get("mood")
    if isinstance(mood, dict):
        mood = MoodSnapshot(rating=int(mood["rating"]), emotion=mood.get("emotion"))
    elif isinstance(mood, (int, float)):
        mood = MoodSnapshot(rating=int(mood))
    return Context(
        timestamp=_parse_datetime(data.get("timestamp")),
        mood=mood,
        trigger=data.get("trigger"),
        anxiety_level=_pick(data, "anxietyLevel", "anxiety_level"),
        stress_level=_pick(data, "stressLevel", "stress_level"),
    )


def parse_engagement(data: Engagement | dict[str, Any] | None) -> Engagement | None:
    if data is None or isinstance(data, Engagement):
        return data
    action = data.get("action")
    return Engagement(
        recommendation_id=_pick(data, "recommendationId", "recommendation_id"),
        action=RecommendationAction(action) if action else None,
        category=data.get("category"),
        rating=data.get("rating"),
        timestamp=_parse_datetime(data.get("timestamp")),
    )


def parse_peer_options(data: PeerOptions | dict[str, Any] | None) -> PeerOptions | None:
    if data is None or isinstance(data, PeerOptions):
        return data
    include_ai = _pick(data, "includeAi", "include_ai")
    return PeerOptions(
        limit=int(data.get("limit", PeerOptions.limit)),
        include_ai=True if include_ai is None else bool(include_ai),
    )
