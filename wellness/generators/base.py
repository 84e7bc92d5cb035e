"""Abstract base class for all rule-based candidate generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from wellness.models import BehaviorPatterns, Context, MoodPatternReport, TrendDirection

T = TypeVar("T")


@dataclass
class LearnedPatterns:
    """What the engine learned about a user before generating candidates.

    Passed to every generator so that none of them re-reads history.

    Attributes:
        mood: Mood analyses from :class:`~wellness.patterns.PatternLearner`.
        behavior: Habits from :class:`~wellness.patterns.BehaviorAnalyzer`.
    """

    mood: MoodPatternReport | None = None
    behavior: BehaviorPatterns = field(default_factory=BehaviorPatterns)

    @property
    def declining(self) -> bool:
        return self.mood is not None and self.mood.trend.trend == TrendDirection.DECLINING

    @property
    def triggers(self) -> list[str]:
        if self.mood is None:
            return []
        return [t.trigger for t in self.mood.triggers]


class CandidateGenerator(ABC, Generic[T]):
    """Abstract base class for the rule-based generators.

    Each generator encapsulates one recommendation category (content,
    exercises, peers or activities).  The
    :class:`~wellness.engine.RecommendationEngine` runs the generators in
    parallel, each behind its own timeout, then merges their output with
    any AI suggestions.
    """

    @abstractmethod
    def generate(
        self,
        user_id: str,
        context: Context,
        patterns: LearnedPatterns,
        limit: int,
    ) -> list[T]:
        """Return up to *limit* candidates for *user_id*.

        Args:
            user_id: The requesting user.
            context: The enriched request context.
            patterns: Mood and behavior patterns learned for the user.
            limit: Maximum number of candidates to return.

        Returns:
            Candidates ordered by descending score.
        """
