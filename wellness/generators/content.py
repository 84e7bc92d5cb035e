"""Content generator: library items scored against mood, time of day and trend."""

from __future__ import annotations

import logging

from wellness.context import mood_category
from wellness.generators.base import CandidateGenerator, LearnedPatterns
from wellness.library import CONTENT, LibraryEntry
from wellness.models import Context, Priority, RecommendationItem

logger = logging.getLogger(__name__)

_BASE_SCORE = 0.4
_MOOD_FIT_BONUS = 0.3
_TIME_FIT_BONUS = 0.15
_DECLINING_BONUS = 0.1

# Types that help when the recent trend is declining
_SUPPORTIVE_TYPES = {"breathing_exercise", "gratitude_journal", "meditation"}


class ContentGenerator(CandidateGenerator[RecommendationItem]):
    """Scores every library content entry for the request context.

    ==============================  =====
    Signal                          Bonus
    ==============================  =====
    Base                            0.40
    Entry helps the current mood    0.30
    Entry suits the time of day     0.15
    Supportive type, declining      0.10
    ==============================  =====

    Args:
        library: Content entries to choose from.  Defaults to the built-in
            catalogue.
    """

    def __init__(self, library: tuple[LibraryEntry, ...] | None = None) -> None:
        self._library = library if library is not None else CONTENT

    def generate(
        self,
        user_id: str,
        context: Context,
        patterns: LearnedPatterns,
        limit: int,
    ) -> list[RecommendationItem]:
        mood = mood_category(context)
        scored: list[RecommendationItem] = []
        for entry in self._library:
            score, reasons = self._score(entry, mood, context, patterns)
            scored.append(entry.to_item(score, "; ".join(reasons), _priority_for(score)))

        scored.sort(key=lambda i: i.score, reverse=True)
        logger.debug("Content candidates for user %r: %s", user_id, [i.id for i in scored[:limit]])
        return scored[:limit]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _score(
        self,
        entry: LibraryEntry,
        mood: str,
        context: Context,
        patterns: LearnedPatterns,
    ) -> tuple[float, list[str]]:
        score = _BASE_SCORE
        reasons: list[str] = []
        if mood in entry.moods:
            score += _MOOD_FIT_BONUS
            reasons.append(f"Helpful when feeling {mood}")
        if context.time_of_day and (not entry.times or context.time_of_day in entry.times):
            score += _TIME_FIT_BONUS
            if entry.times:
                reasons.append(f"Good for the {context.time_of_day}")
        if patterns.declining and entry.type in _SUPPORTIVE_TYPES:
            score += _DECLINING_BONUS
            reasons.append("Supports you through a recent dip in mood")
        if not reasons:
            reasons.append(entry.description)
        return score, reasons


def _priority_for(score: float) -> Priority:
    if score >= 0.8:
        return Priority.HIGH
    if score >= 0.6:
        return Priority.MEDIUM
    return Priority.LOW
