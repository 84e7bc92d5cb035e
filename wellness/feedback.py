"""Adaptive feedback loop: engagement recording, effectiveness and learning rate."""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timedelta, timezone

from wellness.models import (
    Category,
    CategoryStats,
    EffectivenessSummary,
    Engagement,
    InteractionEvent,
    RecommendationAction,
)
from wellness.numeric import clamp
from wellness.sources.base import InteractionLog

logger = logging.getLogger(__name__)

ENGAGEMENT_EVENT = "recommendation_engagement"
GENERAL_CATEGORY = "general"

_EFFECTIVE_RATING = 0.7
_ACCEPTED_ACTIONS = {RecommendationAction.ACCEPTED, RecommendationAction.COMPLETED}
_KNOWN_CATEGORIES = {c.value for c in Category} | {GENERAL_CATEGORY}

# Learning rate
_DEFAULT_LEARNING_RATE = 0.1
_DEFAULT_FEEDBACK_SCORE = 0.5
_DECAY_PERIOD = timedelta(hours=24)
_MIN_RECENCY_WEIGHT = 0.1
_MIN_LEARNING_RATE = 0.01
_MAX_LEARNING_RATE = 0.5

# Category weights
_MIN_SAMPLES_FOR_WEIGHT = 3
_WEIGHT_SPREAD = 0.5


def calculate_learning_rate(feedback: Engagement | None, now: datetime | None = None) -> float:
    """Weighting hint for the next adaptive AI call.

    ``rating`` (0.5 when missing or zero) times an exponential recency decay
    over 24 hours, floored at 0.1, with the product clamped to
    ``[0.01, 0.5]``.

    Args:
        feedback: The latest engagement, or ``None``.
        now: Current time; defaults to UTC now.

    Returns:
        0.1 when *feedback* is ``None``, else the clamped rate.
    """
    if feedback is None:
        return _DEFAULT_LEARNING_RATE

    now = now or datetime.now(timezone.utc)
    score = feedback.rating or _DEFAULT_FEEDBACK_SCORE
    elapsed = (now - feedback.timestamp) if feedback.timestamp else timedelta(0)
    recency = max(_MIN_RECENCY_WEIGHT, math.exp(-elapsed / _DECAY_PERIOD))
    return clamp(score * recency, _MIN_LEARNING_RATE, _MAX_LEARNING_RATE)


class FeedbackLoop:
    """Thread-safe store of per-user recommendation engagement counters.

    Every recorded action is also appended to the interaction log as a
    ``recommendation_engagement`` event so that behavior learning sees it.

    Counters per user, overall and per category:

    ==========  ===========================================
    Counter     Incremented when
    ==========  ===========================================
    total       any action is recorded
    accepted    action is ``accepted`` or ``completed``
    effective   rating is 0.7 or higher
    ==========  ===========================================

    Args:
        interaction_log: Log that receives the engagement events.
    """

    def __init__(self, interaction_log: InteractionLog) -> None:
        self._log = interaction_log
        self._lock = threading.RLock()
        self._overall: dict[str, CategoryStats] = {}
        self._by_category: dict[str, dict[str, CategoryStats]] = {}

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def record_action(
        self,
        user_id: str,
        recommendation_id: str,
        action: RecommendationAction | str,
        category: str | None = None,
        rating: float | None = None,
        now: datetime | None = None,
    ) -> InteractionEvent:
        """Record *action* on a shown recommendation and update the counters.

        Args:
            user_id: The acting user.  Must be non-empty.
            recommendation_id: The recommendation acted upon.  Must be non-empty.
            action: A :class:`~wellness.models.RecommendationAction` or its value.
            category: Recommendation category; ``"general"`` when omitted.
            rating: Optional feedback rating in ``[0, 1]``.
            now: Event time; defaults to UTC now.

        Returns:
            The recorded :class:`~wellness.models.InteractionEvent`.

        Raises:
            ValueError: If any argument is malformed.
        """
        if not user_id:
            raise ValueError("user_id must be non-empty")
        if not recommendation_id:
            raise ValueError("recommendation_id must be non-empty")
        action = RecommendationAction(action)
        category = category or GENERAL_CATEGORY
        if category not in _KNOWN_CATEGORIES:
            raise ValueError(f"Unknown recommendation category {category!r}")
        if rating is not None and not 0.0 <= rating <= 1.0:
            raise ValueError(f"rating must be between 0 and 1, got {rating!r}")

        event = InteractionEvent(
            type=ENGAGEMENT_EVENT,
            timestamp=now or datetime.now(timezone.utc),
            user_id=user_id,
            recommendation_id=str(recommendation_id),
            action=action,
            category=category,
            rating=rating,
        )
        self._log.record(event)

        accepted = action in _ACCEPTED_ACTIONS
        effective = rating is not None and rating >= _EFFECTIVE_RATING
        with self._lock:
            overall = self._overall.setdefault(user_id, CategoryStats())
            per_category = self._by_category.setdefault(user_id, {}).setdefault(
                category, CategoryStats()
            )
            for stats in (overall, per_category):
                stats.total += 1
                stats.accepted += int(accepted)
                stats.effective += int(effective)

        logger.debug(
            "Recorded %s on %r for user %r (category=%s, rating=%s)",
            action.value,
            recommendation_id,
            user_id,
            category,
            rating,
        )
        return event

    def record_engagement(self, user_id: str, engagement: Engagement) -> InteractionEvent:
        """Convenience wrapper around :meth:`record_action` for an :class:`Engagement`."""
        return self.record_action(
            user_id,
            engagement.recommendation_id,
            engagement.action or RecommendationAction.FEEDBACK,
            category=engagement.category,
            rating=engagement.rating,
            now=engagement.timestamp,
        )

    def effectiveness(self, user_id: str) -> EffectivenessSummary:
        """Return a snapshot of *user_id*'s counters and derived rates."""
        with self._lock:
            overall = self._overall.get(user_id, CategoryStats())
            categories = {
                name: CategoryStats(s.total, s.accepted, s.effective)
                for name, s in self._by_category.get(user_id, {}).items()
            }
            return EffectivenessSummary(
                total=overall.total,
                accepted=overall.accepted,
                effective=overall.effective,
                acceptance_rate=overall.acceptance_rate,
                effectiveness_rate=overall.effectiveness_rate,
                categories=categories,
            )

    def category_weights(self, user_id: str) -> dict[str, float]:
        """Score multipliers per category, centred on 1.0.

        Categories with at least 3 recorded actions get
        ``1 + (effectiveness_rate - 0.5) * 0.5``, i.e. a multiplier in
        ``[0.75, 1.25]``.  Others are absent (treated as 1.0).
        """
        summary = self.effectiveness(user_id)
        return {
            name: 1.0 + (stats.effectiveness_rate - 0.5) * _WEIGHT_SPREAD
            for name, stats in summary.categories.items()
            if stats.total >= _MIN_SAMPLES_FOR_WEIGHT
        }
