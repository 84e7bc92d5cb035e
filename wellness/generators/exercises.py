"""Wellness exercise generator: interventions, preventive and maintenance work."""

from __future__ import annotations

import logging

from wellness.context import mood_category
from wellness.generators.base import CandidateGenerator, LearnedPatterns
from wellness.library import EXERCISES, TRIGGER_INTERVENTIONS, LibraryEntry
from wellness.models import Category, Context, Priority, RecommendationItem

logger = logging.getLogger(__name__)

_LOW_MOOD = 4
_HIGH_STRESS = 7

_TYPE_SCORES = {"intervention": 0.75, "preventive": 0.6, "maintenance": 0.45}
_MOOD_FIT_BONUS = 0.15
_TRIGGER_SCORE = 0.85


def needs_immediate_support(context: Context, patterns: LearnedPatterns) -> bool:
    """``True`` when the user should be offered interventions right away.

    That is: mood rating 4 or lower, an explicit trigger, a declining
    trend, or a self-reported anxiety/stress of 7 or more.
    """
    if context.mood is not None and context.mood.rating <= _LOW_MOOD:
        return True
    if context.trigger:
        return True
    if patterns.declining:
        return True
    return any(
        level is not None and level >= _HIGH_STRESS
        for level in (context.anxiety_level, context.stress_level)
    )


def targeted_interventions(triggers: list[str]) -> list[RecommendationItem]:
    """One high-priority intervention per known trigger, in the given order."""
    items = []
    for trigger in triggers:
        known = TRIGGER_INTERVENTIONS.get(trigger.lower())
        if known is None:
            continue
        entry_id, title, description = known
        items.append(
            RecommendationItem(
                id=entry_id,
                type="intervention",
                title=title,
                reason=f'Targets "{trigger}", a frequent trigger for you. {description}',
                score=_TRIGGER_SCORE,
                category=Category.EXERCISE,
                priority=Priority.HIGH,
                duration_minutes=10,
            )
        )
    return items


class ExerciseGenerator(CandidateGenerator[RecommendationItem]):
    """Generates exercises typed ``intervention``, ``preventive`` or ``maintenance``.

    Interventions are only offered when :func:`needs_immediate_support`
    holds; in that case the request trigger (if any) adds a targeted
    intervention for it.  Priorities follow the type:
    intervention high, preventive medium, maintenance low.

    Args:
        library: Exercise entries to choose from.
    """

    def __init__(self, library: tuple[LibraryEntry, ...] | None = None) -> None:
        self._library = library if library is not None else EXERCISES

    def generate(
        self,
        user_id: str,
        context: Context,
        patterns: LearnedPatterns,
        limit: int,
    ) -> list[RecommendationItem]:
        immediate = needs_immediate_support(context, patterns)
        mood = mood_category(context)

        items: list[RecommendationItem] = []
        if immediate and context.trigger:
            items.extend(targeted_interventions([context.trigger]))

        for entry in self._library:
            if entry.type == "intervention" and not immediate:
                continue
            if entry.times and context.time_of_day and context.time_of_day not in entry.times:
                continue
            score = _TYPE_SCORES.get(entry.type, 0.4)
            reason = entry.description
            if mood in entry.moods:
                score += _MOOD_FIT_BONUS
                reason = f"Helpful when feeling {mood}. {entry.description}"
            items.append(entry.to_item(score, reason))

        items.sort(key=lambda i: i.score, reverse=True)
        logger.debug(
            "Exercise candidates for user %r (immediate=%s): %s",
            user_id,
            immediate,
            [i.id for i in items[:limit]],
        )
        return items[:limit]
