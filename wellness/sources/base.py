"""Abstract collaborator contracts consumed by the recommendation core.

Concrete transport (REST, SDK, local function) is an implementation detail
of each subclass.  All collaborators may fail at any time; the engine wraps
every call in its own timeout and fallback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from wellness.models import (
    InteractionEvent,
    JournalEntry,
    MoodEntry,
    PeerCandidate,
    PeerProfile,
    RecommendationBundle,
    RecommendationItem,
)


class HistoryStore(ABC):
    """Read-only access to a user's mood and journal history."""

    @abstractmethod
    def get_mood_history(self, user_id: str, limit: int) -> list[MoodEntry]:
        """Return up to *limit* most recent mood entries, oldest first."""

    @abstractmethod
    def get_journal_entries(self, user_id: str, limit: int) -> list[JournalEntry]:
        """Return up to *limit* most recent journal entries, oldest first."""


class InteractionLog(ABC):
    """Append-only log of :class:`~wellness.models.InteractionEvent` records."""

    @abstractmethod
    def record(self, event: InteractionEvent) -> None:
        """Append *event* to the log."""

    @abstractmethod
    def recent(self, n: int, user_id: str | None = None) -> list[InteractionEvent]:
        """Return the *n* newest events, newest first.

        Args:
            n: Maximum number of events.
            user_id: Restrict to events of this user when given.
        """


class AISuggestionProvider(ABC):
    """External AI suggestion source.

    Every method may raise or return ``None``; callers treat both the same
    way and fall back to rule-based output.  *payload* is a plain dict of
    the request context, learned patterns and, for adaptive calls, a
    ``learning_rate`` weighting hint.
    """

    @abstractmethod
    def suggest_contextual(self, payload: dict[str, Any]) -> RecommendationBundle | None:
        """Return categorised suggestions for the described situation."""

    @abstractmethod
    def suggest_peers(self, payload: dict[str, Any]) -> list[PeerCandidate] | None:
        """Return peers the provider considers good matches."""

    @abstractmethod
    def suggest_tasks(self, payload: dict[str, Any]) -> list[RecommendationItem] | None:
        """Return wellness tasks with ``priority`` and ``type`` set."""


class PeerDirectory(ABC):
    """Read-only directory of potential peer matches."""

    @abstractmethod
    def find_matches(self, user_id: str) -> list[PeerCandidate]:
        """Return scored peer candidates for *user_id*, best first."""

    def get_profile(self, peer_id: str) -> PeerProfile | None:
        """Return the directory profile for *peer_id*, if the directory has one."""
        return None
