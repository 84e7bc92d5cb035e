"""Contextual activity generator."""

from __future__ import annotations

import logging

from wellness.generators.base import CandidateGenerator, LearnedPatterns
from wellness.library import ACTIVITIES, LibraryEntry
from wellness.models import ActivityLevel, Category, Context, Priority, RecommendationItem
from wellness.patterns import suggest_activities

logger = logging.getLogger(__name__)

_BASE_SCORE = 0.3
_TIME_BONUS = 0.2
_WEEKEND_BONUS = 0.15
_SEASON_BONUS = 0.1
_SOCIAL_BONUS = 0.2


class ActivityGenerator(CandidateGenerator[RecommendationItem]):
    """Suggests activities that fit the moment.

    Library activities are filtered to the time of day, weekday/weekend
    and season of the request, then scored:

    ==================================  =====
    Signal                              Bonus
    ==================================  =====
    Base                                0.30
    Made for this time of day           0.20
    Weekend-only activity on weekend    0.15
    Made for this season                0.10
    Social, low recent peer contact     0.20
    ==================================  =====

    Activity types the user has engaged with well before are added from
    :func:`~wellness.patterns.suggest_activities`.

    Args:
        library: Activity entries to choose from.
    """

    def __init__(self, library: tuple[LibraryEntry, ...] | None = None) -> None:
        self._library = library if library is not None else ACTIVITIES

    def generate(
        self,
        user_id: str,
        context: Context,
        patterns: LearnedPatterns,
        limit: int,
    ) -> list[RecommendationItem]:
        items = [
            self._score(entry, context)
            for entry in self._library
            if _fits(entry, context)
        ]
        items.extend(_habit_items(patterns))
        items.sort(key=lambda i: i.score, reverse=True)
        logger.debug("Activity candidates for user %r: %s", user_id, [i.id for i in items[:limit]])
        return items[:limit]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _score(self, entry: LibraryEntry, context: Context) -> RecommendationItem:
        score = _BASE_SCORE
        reasons: list[str] = []
        if entry.times:
            score += _TIME_BONUS
            reasons.append(f"A good fit for the {context.time_of_day}")
        if entry.weekend and context.is_weekend:
            score += _WEEKEND_BONUS
            reasons.append("Makes the most of the weekend")
        if entry.seasons:
            score += _SEASON_BONUS
            reasons.append(f"Suits the {context.season}")
        if entry.social and _low_social_activity(context):
            score += _SOCIAL_BONUS
            reasons.append("You have had little peer contact lately")
        if not reasons:
            reasons.append(entry.description)
        return entry.to_item(score, "; ".join(reasons), Priority.MEDIUM if score >= 0.5 else Priority.LOW)


def _fits(entry: LibraryEntry, context: Context) -> bool:
    if entry.times and context.time_of_day and context.time_of_day not in entry.times:
        return False
    if entry.seasons and context.season and context.season not in entry.seasons:
        return False
    if entry.weekend is not None and context.is_weekend is not None:
        return entry.weekend == context.is_weekend
    return True


def _low_social_activity(context: Context) -> bool:
    social = context.social_context
    if social is None:
        return False
    return social.social_activity_level in (ActivityLevel.LOW, ActivityLevel.UNKNOWN)


def _habit_items(patterns: LearnedPatterns) -> list[RecommendationItem]:
    return [
        RecommendationItem(
            id=f"habit_{activity}",
            type=activity,
            title=activity.replace("_", " ").title(),
            reason=reason,
            score=score,
            category=Category.ACTIVITY,
            priority=Priority.MEDIUM if score > 0.6 else Priority.LOW,
        )
        for activity, score, reason in suggest_activities(patterns.behavior)
    ]
