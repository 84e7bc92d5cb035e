"""Pattern learning over mood history, journal text and interaction logs.

The four mood analyses (trend, triggers, weekly cycle, forecast) are
independent pure functions.  Each returns a structured "insufficient data"
result instead of raising when the history is too short.
:class:`PatternLearner` runs them together and never raises.

The window sizes and thresholds below are behavioral constants of the
product and are kept exactly as tuned.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import TypeVar

import config
from wellness.context import categorize_time_of_day, day_of_week
from wellness.matching import categorize_activity_level
from wellness.models import (
    ActivityPreference,
    BehaviorPatterns,
    InteractionEvent,
    JournalEntry,
    MoodEntry,
    MoodForecast,
    MoodPatternReport,
    MoodTrend,
    RecommendationAction,
    TrendDirection,
    TriggerCount,
    WeeklyCycle,
)
from wellness.numeric import clamp, linear_regression, mean
from wellness.sources.base import HistoryStore, InteractionLog

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TREND_WINDOW = 7
_TREND_DELTA = 0.5
_CYCLE_MIN_POINTS = 14
_FORECAST_WINDOW = 14
_SLOPE_THRESHOLD = 0.1
_MAX_FORECAST_CONFIDENCE = 0.8
_LOW_MOOD_THRESHOLD = 4
_TOP_TRIGGERS = 5

TRIGGER_KEYWORDS = (
    "work",
    "stress",
    "family",
    "relationship",
    "money",
    "health",
    "social",
    "anxiety",
    "pressure",
    "deadline",
    "conflict",
    "change",
)
_TRIGGER_PATTERNS = {kw: re.compile(rf"\b{kw}") for kw in TRIGGER_KEYWORDS}

DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_SESSION_GAP = timedelta(minutes=30)
_PEAK_HOURS = 3
_ENGAGEMENT_EVENT = "recommendation_engagement"

_DEFAULT_INSIGHTS = [
    "Keep logging your mood daily to unlock personal trend insights.",
    "Short journal entries on harder days help reveal what affects your mood.",
]


# ---------------------------------------------------------------------------
# Mood analyses
# ---------------------------------------------------------------------------


def _mood_values(history: Sequence[MoodEntry | float]) -> list[float]:
    """Mood values oldest first; :class:`MoodEntry` lists are ordered by timestamp."""
    if history and all(isinstance(e, MoodEntry) for e in history):
        return [float(e.mood) for e in sorted(history, key=lambda e: e.timestamp)]
    return [float(e.mood) if isinstance(e, MoodEntry) else float(e) for e in history]


def identify_mood_trends(history: Sequence[MoodEntry | float]) -> MoodTrend:
    """Compare the mean of the latest 7 moods against the preceding 7.

    With 7 to 13 points there is no earlier window.  The baseline is then
    the mean of the older half of the latest window (its first 3 points)
    rather than the recent mean itself, which would always read as
    stable; a steadily rising week such as ``[3, 3, 4, 4, 5, 5, 6]``
    therefore reads as improving.

    Args:
        history: Mood entries (or raw values), oldest first.

    Returns:
        A :class:`~wellness.models.MoodTrend`; ``trend`` is
        ``insufficient_data`` for fewer than 7 points.
    """
    moods = _mood_values(history)
    if len(moods) < _TREND_WINDOW:
        return MoodTrend(trend=TrendDirection.INSUFFICIENT_DATA)

    recent = moods[-_TREND_WINDOW:]
    previous = moods[-2 * _TREND_WINDOW:-_TREND_WINDOW]
    recent_avg = mean(recent)
    previous_avg = mean(previous) if previous else mean(recent[: _TREND_WINDOW // 2])
    change = recent_avg - previous_avg

    if change > _TREND_DELTA:
        trend = TrendDirection.IMPROVING
    elif change < -_TREND_DELTA:
        trend = TrendDirection.DECLINING
    else:
        trend = TrendDirection.STABLE

    return MoodTrend(
        trend=trend,
        recent_average=recent_avg,
        previous_average=previous_avg,
        change=change,
    )


def identify_common_triggers(entries: Sequence[JournalEntry]) -> list[TriggerCount]:
    """Count trigger keywords in low-mood (< 4) journal entries.

    Each keyword counts at most once per entry.  Returns the top 5 by
    frequency; ties keep keyword-list order.
    """
    counts: dict[str, int] = {}
    for entry in entries:
        if entry.mood is None or entry.mood >= _LOW_MOOD_THRESHOLD:
            continue
        text = (entry.content or "").lower()
        for keyword, pattern in _TRIGGER_PATTERNS.items():
            if pattern.search(text):
                counts[keyword] = counts.get(keyword, 0) + 1

    ranked = sorted(
        (kw for kw in TRIGGER_KEYWORDS if kw in counts),
        key=lambda kw: counts[kw],
        reverse=True,
    )
    return [TriggerCount(trigger=kw, frequency=counts[kw]) for kw in ranked[:_TOP_TRIGGERS]]


def detect_weekly_cycle(history: Sequence[MoodEntry]) -> WeeklyCycle:
    """Average mood per weekday and report the best and worst day.

    Needs at least 14 dated entries.
    """
    if len(history) < _CYCLE_MIN_POINTS:
        return WeeklyCycle(pattern="insufficient_data")

    by_day: dict[int, list[float]] = {}
    for entry in history:
        by_day.setdefault(day_of_week(entry.timestamp), []).append(float(entry.mood))

    averages = {day: mean(values) for day, values in sorted(by_day.items())}
    best = max(averages, key=lambda d: averages[d])
    worst = min(averages, key=lambda d: averages[d])
    return WeeklyCycle(
        pattern="weekly",
        best_day=DAY_NAMES[best],
        worst_day=DAY_NAMES[worst],
        day_averages={DAY_NAMES[d]: avg for d, avg in averages.items()},
    )


def predict_mood_trends(history: Sequence[MoodEntry | float]) -> MoodForecast:
    """Least-squares forecast over the most recent 14 moods.

    ``next_mood_estimate`` is the fitted value one step past the window,
    clamped to [1, 10] and rounded half up.  ``confidence`` is
    ``min(0.8, |slope| * 2)``.
    """
    moods = _mood_values(history)
    if len(moods) < _FORECAST_WINDOW:
        return MoodForecast(prediction="insufficient_data")

    window = moods[-_FORECAST_WINDOW:]
    slope, intercept = linear_regression(window)
    projected = intercept + slope * len(window)

    if slope > _SLOPE_THRESHOLD:
        trend = TrendDirection.IMPROVING
    elif slope < -_SLOPE_THRESHOLD:
        trend = TrendDirection.DECLINING
    else:
        trend = TrendDirection.STABLE

    return MoodForecast(
        prediction="available",
        trend=trend,
        next_mood_estimate=math.floor(clamp(projected, 1.0, 10.0) + 0.5),
        confidence=min(_MAX_FORECAST_CONFIDENCE, abs(slope) * 2),
        slope=slope,
    )


def default_mood_report() -> MoodPatternReport:
    """Safe report used when analysis cannot run at all."""
    return MoodPatternReport(
        trend=MoodTrend(trend=TrendDirection.INSUFFICIENT_DATA),
        triggers=[],
        weekly_cycle=WeeklyCycle(pattern="insufficient_data"),
        forecast=MoodForecast(prediction="insufficient_data"),
        insights=list(_DEFAULT_INSIGHTS),
    )


def _build_insights(
    trend: MoodTrend,
    triggers: list[TriggerCount],
    cycle: WeeklyCycle,
    forecast: MoodForecast,
) -> list[str]:
    insights: list[str] = []
    if trend.trend == TrendDirection.IMPROVING:
        insights.append("Your mood has been improving over the past week.")
    elif trend.trend == TrendDirection.DECLINING:
        insights.append(
            "Your mood has dipped recently. A breathing exercise or a chat "
            "with a peer may help."
        )
    elif trend.trend == TrendDirection.STABLE:
        insights.append("Your mood has been steady over the past week.")

    if triggers:
        insights.append(f'"{triggers[0].trigger}" comes up most often on low-mood days.')

    if cycle.pattern == "weekly" and cycle.best_day != cycle.worst_day:
        insights.append(
            f"You tend to feel best on {cycle.best_day.title()} "
            f"and lowest on {cycle.worst_day.title()}."
        )

    if forecast.prediction == "available":
        insights.append(
            f"Your mood looks {forecast.trend.value} with a next estimate "
            f"of {forecast.next_mood_estimate}/10."
        )

    return insights or list(_DEFAULT_INSIGHTS)


def _run_analysis(name: str, analysis: Callable[[], T], fallback: T) -> T:
    try:
        return analysis()
    except Exception:
        logger.warning("Mood analysis %r failed; using fallback.", name, exc_info=True)
        return fallback


class PatternLearner:
    """Runs the mood analyses for a user against a :class:`HistoryStore`.

    Args:
        history_store: Source of mood and journal history.
    """

    def __init__(self, history_store: HistoryStore) -> None:
        self._store = history_store

    def analyze_mood_patterns(self, user_id: str) -> MoodPatternReport:
        """Return trend, triggers, weekly cycle and forecast for *user_id*.

        Never raises: each analysis degrades on its own, and a failure to
        read history yields :func:`default_mood_report`.
        """
        try:
            history = self._store.get_mood_history(user_id, config.MOOD_HISTORY_LIMIT)
            journal = self._store.get_journal_entries(user_id, config.JOURNAL_HISTORY_LIMIT)
        except Exception:
            logger.warning("Could not read history for user=%r.", user_id, exc_info=True)
            return default_mood_report()

        trend = _run_analysis(
            "trend",
            lambda: identify_mood_trends(history),
            MoodTrend(trend=TrendDirection.INSUFFICIENT_DATA),
        )
        triggers = _run_analysis("triggers", lambda: identify_common_triggers(journal), [])
        cycle = _run_analysis(
            "weekly_cycle",
            lambda: detect_weekly_cycle(history),
            WeeklyCycle(pattern="insufficient_data"),
        )
        forecast = _run_analysis(
            "forecast",
            lambda: predict_mood_trends(history),
            MoodForecast(prediction="insufficient_data"),
        )

        try:
            insights = _build_insights(trend, triggers, cycle, forecast)
        except Exception:
            logger.exception("Failed to build mood insights for user=%r.", user_id)
            return default_mood_report()

        return MoodPatternReport(
            trend=trend,
            triggers=triggers,
            weekly_cycle=cycle,
            forecast=forecast,
            insights=insights,
            data_points=len(history),
        )


# ---------------------------------------------------------------------------
# Behavior learning
# ---------------------------------------------------------------------------


class BehaviorAnalyzer:
    """Learns time, activity and session habits from the interaction log.

    Args:
        interaction_log: The append-only interaction log.
    """

    def __init__(self, interaction_log: InteractionLog) -> None:
        self._log = interaction_log

    def learn_user_patterns(self, user_id: str, limit: int | None = None) -> BehaviorPatterns:
        """Analyse up to *limit* recent events of *user_id*.

        Args:
            user_id: The user.
            limit: Number of events to read; defaults to
                ``config.INTERACTION_WINDOW``.
        """
        events = self._log.recent(limit or config.INTERACTION_WINDOW, user_id=user_id)
        return analyze_behavior(events)


def analyze_behavior(events: Sequence[InteractionEvent]) -> BehaviorPatterns:
    """Build :class:`~wellness.models.BehaviorPatterns` from raw events."""
    if not events:
        return BehaviorPatterns()

    ordered = sorted(events, key=lambda e: e.timestamp)

    time_prefs: dict[str, dict[str, int]] = {}
    hour_counts: dict[int, int] = {}
    for event in ordered:
        bucket = time_prefs.setdefault(categorize_time_of_day(event.timestamp.hour), {})
        bucket[event.type] = bucket.get(event.type, 0) + 1
        hour_counts[event.timestamp.hour] = hour_counts.get(event.timestamp.hour, 0) + 1

    sessions = _group_sessions(ordered)
    lengths = [(s[-1].timestamp - s[0].timestamp).total_seconds() / 60 for s in sessions]
    average_minutes = mean(lengths) if lengths else 0.0
    sessions_by_day: dict[str, int] = {}
    for session in sessions:
        name = DAY_NAMES[day_of_week(session[0].timestamp)]
        sessions_by_day[name] = sessions_by_day.get(name, 0) + 1

    peak_hours = sorted(hour_counts, key=lambda h: hour_counts[h], reverse=True)[:_PEAK_HOURS]

    return BehaviorPatterns(
        time_preferences=time_prefs,
        activity_preferences=_activity_preferences(ordered),
        session_count=len(sessions),
        average_session_minutes=average_minutes,
        sessions_by_day=sessions_by_day,
        peak_hours=peak_hours,
        activity_level=categorize_activity_level(average_minutes, len(sessions)),
        total_interactions=len(ordered),
    )


def _group_sessions(ordered: Sequence[InteractionEvent]) -> list[list[InteractionEvent]]:
    """Split time-ordered events wherever the gap exceeds 30 minutes."""
    sessions: list[list[InteractionEvent]] = []
    for event in ordered:
        if sessions and event.timestamp - sessions[-1][-1].timestamp <= _SESSION_GAP:
            sessions[-1].append(event)
        else:
            sessions.append([event])
    return sessions


def _activity_preferences(events: Sequence[InteractionEvent]) -> dict[str, ActivityPreference]:
    grouped: dict[str, list[InteractionEvent]] = {}
    for event in events:
        grouped.setdefault(event.type, []).append(event)

    prefs: dict[str, ActivityPreference] = {}
    for activity, items in grouped.items():
        completed = sum(1 for e in items if e.action == RecommendationAction.COMPLETED)
        ratings = [e.rating for e in items if e.rating is not None]
        completion_rate = completed / len(items)
        average_rating = mean(ratings) if ratings else 0.0
        prefs[activity] = ActivityPreference(
            frequency=len(items),
            completion_rate=completion_rate,
            average_rating=average_rating,
            engagement_score=completion_rate * 0.7 + average_rating * 0.3,
        )
    return prefs


def suggest_activities(patterns: BehaviorPatterns, limit: int = 3) -> list[tuple[str, float, str]]:
    """Rank the user's own activity types by how well they have worked.

    Score is ``frequency*0.3 + completion*0.4 + engagement*0.2 + rating*0.1``
    with frequency normalised by the most frequent type.

    Returns:
        Up to *limit* ``(activity_type, score, reason)`` tuples, best first.
    """
    prefs = {
        k: v for k, v in patterns.activity_preferences.items() if k != _ENGAGEMENT_EVENT
    }
    if not prefs:
        return []

    top_frequency = max(p.frequency for p in prefs.values())
    scored = []
    for activity, pref in prefs.items():
        score = (
            pref.frequency / top_frequency * 0.3
            + pref.completion_rate * 0.4
            + pref.engagement_score * 0.2
            + pref.average_rating * 0.1
        )
        scored.append((activity, score, _suggestion_reason(score)))

    scored.sort(key=lambda s: s[1], reverse=True)
    return scored[:limit]


def _suggestion_reason(score: float) -> str:
    if score > 0.8:
        return "Highly effective based on your history"
    if score > 0.6:
        return "Well-suited to your preferences"
    if score > 0.4:
        return "Moderately engaging for you"
    return "Worth exploring based on your activity patterns"
