"""Real-time content adaptation to mood, stress and time of day.

Each adapter takes a list of :class:`~wellness.models.RecommendationItem`
and returns a new list; inputs are never mutated.  Every score change is
recorded in the item's ``boosts``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from wellness.context import mood_category, normalize_mood
from wellness.library import CRISIS_SUPPORT
from wellness.models import Context, MoodSnapshot, RecommendationItem
from wellness.numeric import mean

_MOOD_BOOST = 0.2
_TIME_BOOST = 0.15
_STRESS_BOOST = 0.2

_MOOD_HELPFUL_TYPES = {
    "anxious": {"breathing_exercise", "meditation", "intervention"},
    "sad": {"social_activity", "gratitude_journal", "physical_exercise"},
    "stressed": {"breathing_exercise", "meditation", "physical_exercise"},
    "happy": {"social_activity", "learning", "gratitude_journal"},
    "neutral": {"learning", "article"},
}

_TIME_SUITED_TYPES = {
    "morning": {"physical_exercise", "outdoor", "learning"},
    "afternoon": {"social_activity", "learning", "article"},
    "evening": {"meditation", "gratitude_journal", "journal_entry", "relaxation"},
    "night": {"breathing_exercise", "meditation", "relaxation"},
}

CRISIS_TYPES = frozenset({"breathing_exercise", "crisis_support", "emergency_contact"})
_CALMING_TYPES = {"breathing_exercise", "meditation", "relaxation", "intervention"}


def _boost(item: RecommendationItem, amount: float, tag: str) -> RecommendationItem:
    boosts = item.boosts if tag in item.boosts else [*item.boosts, tag]
    return dataclasses.replace(item, score=item.score + amount, boosts=boosts)


def filter_content_by_mood(
    items: Sequence[RecommendationItem], mood: MoodSnapshot | str | None
) -> list[RecommendationItem]:
    """Boost item types that help with the user's current mood by 0.2.

    Args:
        items: Candidate items.
        mood: A mood snapshot or a free emotion label.
    """
    if isinstance(mood, MoodSnapshot):
        category = mood_category(Context(mood=mood))
    else:
        category = normalize_mood(mood)
    helpful = _MOOD_HELPFUL_TYPES.get(category, set())
    return [_boost(i, _MOOD_BOOST, "mood") if i.type in helpful else i for i in items]


def stress_level(context: Context | None) -> str:
    """Bucket the mean of the self-reported anxiety and stress ratings.

    Returns:
        ``"critical"`` (mean 7+), ``"high"`` (5+), ``"moderate"`` (3+),
        ``"low"`` otherwise, or ``"unknown"`` when neither rating is set.
    """
    if context is None:
        return "unknown"
    ratings = [r for r in (context.anxiety_level, context.stress_level) if r is not None]
    if not ratings:
        return "unknown"
    level = mean(ratings)
    if level >= 7:
        return "critical"
    if level >= 5:
        return "high"
    if level >= 3:
        return "moderate"
    return "low"


def apply_stress_adaptations(
    items: Sequence[RecommendationItem], context: Context | None
) -> list[RecommendationItem]:
    """Adapt *items* to the user's stress level.

    At ``critical`` only crisis-appropriate types are kept and a crisis
    support item is injected when none remain.  At ``high`` calming types
    are boosted by 0.2.  Other levels leave the list as is.
    """
    level = stress_level(context)
    if level == "critical":
        kept = [_boost(i, 0.0, "stress") for i in items if i.type in CRISIS_TYPES]
        if not kept:
            kept.append(
                dataclasses.replace(
                    CRISIS_SUPPORT.to_item(1.0, "You reported very high stress. Support is available now."),
                    boosts=["stress"],
                )
            )
        return kept
    if level == "high":
        return [_boost(i, _STRESS_BOOST, "stress") if i.type in _CALMING_TYPES else i for i in items]
    return list(items)


def prioritize_by_time(
    items: Sequence[RecommendationItem], time_of_day: str | None
) -> list[RecommendationItem]:
    """Boost item types suited to *time_of_day* by 0.15."""
    suited = _TIME_SUITED_TYPES.get(time_of_day or "", set())
    return [_boost(i, _TIME_BOOST, "time") if i.type in suited else i for i in items]
