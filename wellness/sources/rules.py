"""Keyword-driven local suggestion provider.

Stands in for a hosted AI provider in local runs and demos.  It reads the
request payload (trigger, emotion label and free text), scores it with a
small positive/negative word list, and proposes library items to match.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from wellness.library import CONTENT, EXERCISES, LibraryEntry
from wellness.models import PeerCandidate, RecommendationBundle, RecommendationItem
from wellness.numeric import clamp
from wellness.sources.base import AISuggestionProvider

logger = logging.getLogger(__name__)

_POSITIVE_WORDS = ("good", "great", "happy", "better", "calm", "peaceful")
_NEGATIVE_WORDS = ("bad", "sad", "anxious", "worried", "stressed", "difficult")
_WORD_WEIGHT = 0.2

_SUPPORTIVE_CONTENT = ("breathing_478", "understanding_anxiety", "self_compassion")
_UPLIFTING_CONTENT = ("three_good_things", "community_stories", "morning_stretch")
_SUPPORTIVE_TASKS = ("grounding_54321", "progressive_relaxation", "daily_checkin")
_UPLIFTING_TASKS = ("gratitude_practice", "evening_reflection", "daily_checkin")

_BASE_CONFIDENCE = 0.55


def keyword_sentiment(text: str) -> float:
    """Sentiment in ``[-1, 1]``: +0.2 per positive word, -0.2 per negative word."""
    lowered = text.lower()
    score = 0.0
    for word in _POSITIVE_WORDS:
        if re.search(rf"\b{word}\b", lowered):
            score += _WORD_WEIGHT
    for word in _NEGATIVE_WORDS:
        if re.search(rf"\b{word}\b", lowered):
            score -= _WORD_WEIGHT
    return clamp(score, -1.0, 1.0)


def _payload_text(payload: dict[str, Any]) -> str:
    context = payload.get("context") or {}
    mood = context.get("mood") or {}
    parts = [
        str(context.get("trigger") or ""),
        str(mood.get("emotion") or ""),
        str(payload.get("text") or ""),
    ]
    return " ".join(p for p in parts if p)


def _pick(library: tuple[LibraryEntry, ...], ids: tuple[str, ...]) -> list[LibraryEntry]:
    by_id = {e.id: e for e in library}
    return [by_id[i] for i in ids if i in by_id]


class RuleBasedSuggestionProvider(AISuggestionProvider):
    """Local :class:`~wellness.sources.base.AISuggestionProvider`.

    Negative or neutral payloads get supportive suggestions, positive ones
    get uplifting suggestions.  A ``learning_rate`` in the payload scales
    the scores up by ``1 + learning_rate``.  Peer suggestions are not
    supported and always return ``None``.
    """

    def suggest_contextual(self, payload: dict[str, Any]) -> RecommendationBundle | None:
        sentiment = keyword_sentiment(_payload_text(payload))
        positive = sentiment > 0
        factor = 1.0 + float(payload.get("learning_rate") or 0.0)
        content_ids = _UPLIFTING_CONTENT if positive else _SUPPORTIVE_CONTENT
        task_ids = _UPLIFTING_TASKS if positive else _SUPPORTIVE_TASKS

        reason = "Keep up the positive momentum" if positive else "Gentle support for a harder moment"
        return RecommendationBundle(
            content=self._items(_pick(CONTENT, content_ids), reason, factor),
            exercises=self._items(_pick(EXERCISES, task_ids), reason, factor),
            confidence=_BASE_CONFIDENCE + abs(sentiment) / 4,
            reasoning=f"Keyword sentiment {sentiment:+.1f}",
        )

    def suggest_peers(self, payload: dict[str, Any]) -> list[PeerCandidate] | None:
        return None

    def suggest_tasks(self, payload: dict[str, Any]) -> list[RecommendationItem] | None:
        sentiment = keyword_sentiment(_payload_text(payload))
        task_ids = _UPLIFTING_TASKS if sentiment > 0 else _SUPPORTIVE_TASKS
        return self._items(_pick(EXERCISES, task_ids), "Suggested for how you are feeling", 1.0)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _items(
        self, entries: list[LibraryEntry], reason: str, factor: float
    ) -> list[RecommendationItem]:
        # Earlier picks rank higher.
        return [
            entry.to_item((0.7 - 0.05 * rank) * factor, reason)
            for rank, entry in enumerate(entries)
        ]
