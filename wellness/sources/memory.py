"""In-memory collaborator implementations for tests and local runs."""

from __future__ import annotations

import logging
import threading
from collections import deque

from wellness.matching import calculate_compatibility, get_shared_interests
from wellness.models import (
    InteractionEvent,
    JournalEntry,
    MoodEntry,
    PeerCandidate,
    PeerProfile,
)
from wellness.sources.base import HistoryStore, InteractionLog, PeerDirectory

logger = logging.getLogger(__name__)

_DEFAULT_MAX_EVENTS = 1000
_MIN_COMPATIBILITY = 0.3
_MAX_MATCHES = 10


class InMemoryHistoryStore(HistoryStore):
    """Thread-safe per-user mood and journal history."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._moods: dict[str, list[MoodEntry]] = {}
        self._journals: dict[str, list[JournalEntry]] = {}

    def add_mood(self, user_id: str, entry: MoodEntry) -> None:
        with self._lock:
            self._moods.setdefault(user_id, []).append(entry)

    def add_journal_entry(self, user_id: str, entry: JournalEntry) -> None:
        with self._lock:
            self._journals.setdefault(user_id, []).append(entry)

    def get_mood_history(self, user_id: str, limit: int) -> list[MoodEntry]:
        with self._lock:
            entries = sorted(self._moods.get(user_id, []), key=lambda e: e.timestamp)
        return entries[-limit:] if limit > 0 else []

    def get_journal_entries(self, user_id: str, limit: int) -> list[JournalEntry]:
        with self._lock:
            entries = list(self._journals.get(user_id, []))
        # Undated entries keep their insertion order ahead of dated ones.
        entries.sort(key=lambda e: (e.created_at is not None, e.created_at or 0))
        return entries[-limit:] if limit > 0 else []


class InMemoryInteractionLog(InteractionLog):
    """Bounded, thread-safe append-only interaction log.

    Only the newest *max_events* events are retained.

    Args:
        max_events: Retention bound.  Defaults to 1000.
    """

    def __init__(self, max_events: int = _DEFAULT_MAX_EVENTS) -> None:
        self._lock = threading.RLock()
        self._events: deque[InteractionEvent] = deque(maxlen=max_events)

    def record(self, event: InteractionEvent) -> None:
        if not isinstance(event, InteractionEvent):
            raise ValueError(f"Expected an InteractionEvent, got {type(event).__name__}")
        with self._lock:
            self._events.append(event)

    def recent(self, n: int, user_id: str | None = None) -> list[InteractionEvent]:
        if n <= 0:
            return []
        with self._lock:
            snapshot = list(self._events)
        picked: list[InteractionEvent] = []
        for event in reversed(snapshot):
            if user_id is not None and event.user_id != user_id:
                continue
            picked.append(event)
            if len(picked) >= n:
                break
        return picked

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class InMemoryPeerDirectory(PeerDirectory):
    """Peer directory that scores matches from stored profiles.

    Compatibility follows :func:`~wellness.matching.calculate_compatibility`.
    Matches below 0.3 are dropped and at most 10 are returned.

    Args:
        profiles: Initial profiles, including the requesting users themselves.
    """

    def __init__(self, profiles: list[PeerProfile] | None = None) -> None:
        self._lock = threading.RLock()
        self._profiles: dict[str, PeerProfile] = {p.id: p for p in profiles or []}

    def add_profile(self, profile: PeerProfile) -> None:
        with self._lock:
            self._profiles[profile.id] = profile

    def get_profile(self, peer_id: str) -> PeerProfile | None:
        with self._lock:
            return self._profiles.get(peer_id)

    def find_matches(self, user_id: str) -> list[PeerCandidate]:
        with self._lock:
            user = self._profiles.get(user_id)
            others = [p for p in self._profiles.values() if p.id != user_id]
        if user is None:
            logger.debug("No directory profile for user %r; no peer matches.", user_id)
            return []

        matches = []
        for other in others:
            score = calculate_compatibility(user, other)
            if score < _MIN_COMPATIBILITY:
                continue
            matches.append(
                PeerCandidate(
                    id=other.id,
                    display_name=other.display_name,
                    compatibility_score=score,
                    shared_interests=get_shared_interests(user, other),
                    activity_level=other.activity_level,
                )
            )
        matches.sort(key=lambda m: m.compatibility_score, reverse=True)
        return matches[:_MAX_MATCHES]
