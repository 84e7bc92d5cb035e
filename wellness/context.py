"""Context enrichment: temporal, social and mood fields for a request."""

from __future__ import annotations

import dataclasses
import logging
import math
from datetime import datetime, timezone

from wellness.models import ActivityLevel, Context, MoodSnapshot, SocialContext
from wellness.sources.base import InteractionLog

logger = logging.getLogger(__name__)

_SOCIAL_PREFIX = "social_"
_SOCIAL_WINDOW = 10
_SOCIAL_MEDIUM_THRESHOLD = 2
_SOCIAL_HIGH_THRESHOLD = 5

_MOOD_CATEGORIES = {
    "joy": "happy",
    "happiness": "happy",
    "happy": "happy",
    "content": "happy",
    "sad": "sad",
    "sadness": "sad",
    "depressed": "sad",
    "lonely": "sad",
    "anxious": "anxious",
    "anxiety": "anxious",
    "worried": "anxious",
    "fear": "anxious",
    "stressed": "stressed",
    "stress": "stressed",
    "overwhelmed": "stressed",
    "angry": "stressed",
}


def normalize_mood(emotion: str | None) -> str:
    """Map a free emotion label to happy, sad, anxious, stressed or neutral."""
    if not emotion:
        return "neutral"
    return _MOOD_CATEGORIES.get(emotion.strip().lower(), "neutral")


def mood_category(context: Context | None) -> str:
    """Normalized mood of *context*, falling back to the rating when no label is set."""
    if context is None or context.mood is None:
        return "neutral"
    if context.mood.emotion:
        return normalize_mood(context.mood.emotion)
    if context.mood.rating <= 3:
        return "sad"
    if context.mood.rating >= 8:
        return "happy"
    return "neutral"


def categorize_time_of_day(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def get_season(month: int) -> str:
    """Season for a calendar *month* (1–12), northern hemisphere."""
    if month == 12 or month <= 2:
        return "winter"
    if month <= 5:
        return "spring"
    if month <= 8:
        return "summer"
    return "autumn"


def day_of_week(moment: datetime) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return (moment.weekday() + 1) % 7


class ContextEnricher:
    """Adds temporal and social fields to a request :class:`~wellness.models.Context`.

    Enrichment is a pure transform over the inputs plus a read of the
    recent interaction log.  It degrades gracefully: if anything fails, the
    base context is returned unchanged.

    Args:
        interaction_log: Source of recent interaction events for the social
            summary.
    """

    def __init__(self, interaction_log: InteractionLog) -> None:
        self._log = interaction_log

    def enrich(
        self,
        base: Context | None = None,
        user_id: str | None = None,
        now: datetime | None = None,
        trigger: str | None = None,
        mood: MoodSnapshot | None = None,
    ) -> Context:
        """Return a new context with derived fields filled in.

        Args:
            base: The caller's (possibly partial) context.
            user_id: Restricts the social summary to this user's events.
            now: Request time; defaults to the base timestamp, then the
                current UTC time.
            trigger: Overrides ``base.trigger`` when given.
            mood: Overrides ``base.mood`` when given.

        Returns:
            The enriched context, or *base* itself on any failure.
        """
        base = base if base is not None else Context()
        try:
            moment = now or base.timestamp or datetime.now(timezone.utc)
            return dataclasses.replace(
                base,
                timestamp=moment,
                trigger=trigger if trigger is not None else base.trigger,
                mood=mood if mood is not None else base.mood,
                time_of_day=categorize_time_of_day(moment.hour),
                is_weekend=day_of_week(moment) in (0, 6),
                season=get_season(moment.month),
                quarter_hour=moment.minute // 15,
                week_of_month=math.ceil(moment.day / 7),
                day_of_week=day_of_week(moment),
                hour=moment.hour,
                social_context=self.recent_social_context(user_id),
                enriched=True,
            )
        except Exception:
            logger.warning("Context enrichment failed; using base context.", exc_info=True)
            return base

    def recent_social_context(self, user_id: str | None = None) -> SocialContext:
        """Summarise peer contact among the last 10 recorded interactions.

        Raises:
            Whatever the interaction log raises; :meth:`enrich` handles it.
        """
        recent = self._log.recent(_SOCIAL_WINDOW, user_id=user_id)
        social = [e for e in recent if e.type.startswith(_SOCIAL_PREFIX)]
        count = len(social)

        if count > _SOCIAL_HIGH_THRESHOLD:
            level = ActivityLevel.HIGH
        elif count > _SOCIAL_MEDIUM_THRESHOLD:
            level = ActivityLevel.MEDIUM
        else:
            level = ActivityLevel.LOW

        return SocialContext(
            has_recent_peer_contact=count > _SOCIAL_MEDIUM_THRESHOLD,
            last_peer_interaction=social[0].timestamp if social else None,
            social_activity_level=level,
        )
