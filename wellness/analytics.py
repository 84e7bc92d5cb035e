"""Recommendation analytics over recorded engagement events.

Works purely from the ``recommendation_engagement`` events that
:class:`~wellness.feedback.FeedbackLoop` appends to the interaction log, so
it needs no storage of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone

from wellness.feedback import ENGAGEMENT_EVENT, GENERAL_CATEGORY
from wellness.models import (
    Adjustment,
    Category,
    CategoryAnalytics,
    InsightReport,
    InteractionEvent,
    PerformanceOverview,
    RecommendationAction,
    RecommendationPerformance,
)
from wellness.numeric import mean
from wellness.sources.base import InteractionLog

logger = logging.getLogger(__name__)

DEFAULT_TIME_RANGE = timedelta(days=7)
DEFAULT_CATEGORIES = tuple(c.value for c in Category) + (GENERAL_CATEGORY,)

_HISTORY_LIMIT = 1000
_TOP_RECOMMENDATIONS = 5
_TREND_DELTA = 0.1
_LOW_ACCEPT_RATE = 0.2
# Ratings are on a 0-1 scale; 0.6 corresponds to 3 of 5 stars.
_LOW_RATING = 0.6

# Performance score weights
_WEIGHT_ACCEPT = 0.3
_WEIGHT_COMPLETION = 0.3
_WEIGHT_ENGAGEMENT = 0.2
_WEIGHT_RATING = 0.2

_ACCEPTS = {RecommendationAction.ACCEPTED}
_COMPLETES = {RecommendationAction.COMPLETED}


def performance_score(
    accept_rate: float, completion_rate: float, engagement_rate: float, average_rating: float
) -> float:
    return (
        accept_rate * _WEIGHT_ACCEPT
        + completion_rate * _WEIGHT_COMPLETION
        + engagement_rate * _WEIGHT_ENGAGEMENT
        + average_rating * _WEIGHT_RATING
    )


def _ratings(events: Iterable[InteractionEvent]) -> list[float]:
    return [
        e.rating
        for e in events
        if e.rating and e.action in (RecommendationAction.COMPLETED, RecommendationAction.FEEDBACK)
    ]


def _count(events: Iterable[InteractionEvent], actions: set[RecommendationAction]) -> int:
    return sum(1 for e in events if e.action in actions)


def summarize_recommendation(
    recommendation_id: str, events: Sequence[InteractionEvent]
) -> RecommendationPerformance:
    """Aggregate the events of one recommendation into its performance.

    Impressions are the ``shown`` events, or every event when the UI never
    reported one.
    """
    shown = _count(events, {RecommendationAction.SHOWN})
    impressions = shown or len(events)
    accepts = _count(events, _ACCEPTS | _COMPLETES)
    completions = _count(events, _COMPLETES)
    ratings = _ratings(events)

    accept_rate = min(1.0, accepts / impressions) if impressions else 0.0
    completion_rate = completions / accepts if accepts else 0.0
    engagement_rate = min(1.0, (accepts + completions + len(ratings)) / impressions) if impressions else 0.0
    average_rating = mean(ratings) if ratings else 0.0

    return RecommendationPerformance(
        recommendation_id=recommendation_id,
        category=(events[0].category if events else None) or GENERAL_CATEGORY,
        impressions=impressions,
        accepts=accepts,
        dismisses=_count(events, {RecommendationAction.DISMISSED}),
        completions=completions,
        feedback_count=len(ratings),
        accept_rate=accept_rate,
        completion_rate=completion_rate,
        engagement_rate=engagement_rate,
        average_rating=average_rating,
        score=performance_score(accept_rate, completion_rate, engagement_rate, average_rating),
    )


def _period_score(events: Sequence[InteractionEvent]) -> float | None:
    if not events:
        return None
    accepts = _count(events, _ACCEPTS | _COMPLETES)
    completions = _count(events, _COMPLETES)
    return accepts / len(events) + (completions / accepts if accepts else 0.0)


def category_trend(events: Sequence[InteractionEvent], start: datetime, now: datetime) -> str:
    """Compare engagement in the newer half of ``[start, now]`` with the older half."""
    midpoint = start + (now - start) / 2
    recent = [e for e in events if e.timestamp > midpoint]
    older = [e for e in events if start < e.timestamp <= midpoint]

    older_score = _period_score(older)
    if older_score is None:
        return "new"
    difference = (_period_score(recent) or 0.0) - older_score
    if difference > _TREND_DELTA:
        return "improving"
    if difference < -_TREND_DELTA:
        return "declining"
    return "stable"


def suggest_adjustments(categories: dict[str, CategoryAnalytics]) -> list[Adjustment]:
    """Turn per-category analytics into concrete tuning suggestions.

    =====================  =======================================
    Adjustment             When
    =====================  =======================================
    ``reduce_frequency``   trend is declining
    ``improve_quality``    accept rate below 20%
    ``quality_review``     average rating above 0 and below 0.6
    =====================  =======================================

    Categories without any interactions are skipped.
    """
    adjustments: list[Adjustment] = []
    for name, analysis in categories.items():
        if analysis.total_interactions == 0:
            continue
        if analysis.trend == "declining":
            adjustments.append(
                Adjustment(
                    type="reduce_frequency",
                    category=name,
                    reason=f"Declining engagement in {name} recommendations",
                    suggested_action=f"Reduce frequency of {name} recommendations by 30%",
                )
            )
        if analysis.accept_rate < _LOW_ACCEPT_RATE:
            adjustments.append(
                Adjustment(
                    type="improve_quality",
                    category=name,
                    reason=f"Low accept rate ({analysis.accept_rate * 100:.1f}%) in {name}",
                    suggested_action=f"Improve {name} recommendation quality or reduce frequency",
                )
            )
        if 0 < analysis.average_rating < _LOW_RATING:
            adjustments.append(
                Adjustment(
                    type="quality_review",
                    category=name,
                    reason=f"Low average rating ({analysis.average_rating:.2f}) in {name}",
                    suggested_action=f"Review {name} recommendations for relevance",
                )
            )
    return adjustments


class RecommendationAnalytics:
    """Per-user engagement analytics read from the interaction log.

    Args:
        interaction_log: Log holding ``recommendation_engagement`` events.
    """

    def __init__(self, interaction_log: InteractionLog) -> None:
        self._log = interaction_log

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def recommendation_performance(
        self, user_id: str, recommendation_id: str
    ) -> RecommendationPerformance | None:
        """Return the performance of one recommendation, or ``None`` if never recorded."""
        events = [e for e in self._engagement(user_id) if e.recommendation_id == recommendation_id]
        if not events:
            return None
        return summarize_recommendation(recommendation_id, events)

    def category_analytics(
        self,
        user_id: str,
        category: str,
        time_range: timedelta = DEFAULT_TIME_RANGE,
        now: datetime | None = None,
    ) -> CategoryAnalytics:
        now = now or datetime.now(timezone.utc)
        start = now - time_range
        events = [
            e
            for e in self._engagement(user_id)
            if (e.category or GENERAL_CATEGORY) == category and e.timestamp > start
        ]
        if not events:
            return CategoryAnalytics(category=category)

        by_recommendation: dict[str, list[InteractionEvent]] = {}
        for event in events:
            by_recommendation.setdefault(event.recommendation_id or "", []).append(event)

        performances = [summarize_recommendation(rid, evs) for rid, evs in by_recommendation.items()]
        performances.sort(key=lambda p: p.score, reverse=True)

        accepts = _count(events, _ACCEPTS | _COMPLETES)
        completions = _count(events, _COMPLETES)
        ratings = _ratings(events)
        return CategoryAnalytics(
            category=category,
            total_interactions=len(events),
            unique_recommendations=len(by_recommendation),
            accept_rate=min(1.0, accepts / len(by_recommendation)),
            completion_rate=completions / accepts if accepts else 0.0,
            average_rating=mean(ratings) if ratings else 0.0,
            top_recommendations=performances[:_TOP_RECOMMENDATIONS],
            trend=category_trend(events, start, now),
        )

    def performance_overview(
        self,
        user_id: str,
        time_range: timedelta = DEFAULT_TIME_RANGE,
        now: datetime | None = None,
    ) -> PerformanceOverview:
        now = now or datetime.now(timezone.utc)
        events = [e for e in self._engagement(user_id) if e.timestamp > now - time_range]
        if not events:
            return PerformanceOverview(trend="insufficient_data")

        unique = {e.recommendation_id for e in events}
        accepts = _count(events, _ACCEPTS | _COMPLETES)
        completions = _count(events, _COMPLETES)
        return PerformanceOverview(
            total_interactions=len(events),
            unique_recommendations=len(unique),
            total_accepts=accepts,
            total_completions=completions,
            average_accept_rate=min(1.0, accepts / len(unique)),
            average_completion_rate=completions / accepts if accepts else 0.0,
            overall_engagement=(accepts + completions) / len(events),
        )

    def generate_insights(
        self,
        user_id: str,
        time_range: timedelta = DEFAULT_TIME_RANGE,
        categories: Sequence[str] = DEFAULT_CATEGORIES,
        now: datetime | None = None,
    ) -> InsightReport:
        """Overview, per-category analytics and suggested adjustments for *user_id*."""
        now = now or datetime.now(timezone.utc)
        analyses = {c: self.category_analytics(user_id, c, time_range, now) for c in categories}
        report = InsightReport(
            overview=self.performance_overview(user_id, time_range, now),
            categories=analyses,
            adjustments=suggest_adjustments(analyses),
        )
        logger.debug(
            "Insights for user %r: %d interactions, %d adjustments",
            user_id,
            report.overview.total_interactions,
            len(report.adjustments),
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _engagement(self, user_id: str) -> list[InteractionEvent]:
        return [
            e for e in self._log.recent(_HISTORY_LIMIT, user_id=user_id) if e.type == ENGAGEMENT_EVENT
        ]
