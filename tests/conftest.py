"""Shared pytest fixtures for all wellness tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wellness.models import (
    ActivityLevel,
    Context,
    JournalEntry,
    MoodSnapshot,
    PeerProfile,
)
from wellness.sources.memory import InMemoryHistoryStore, InMemoryInteractionLog, InMemoryPeerDirectory


# Saturday, summer, afternoon
TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def interaction_log() -> InMemoryInteractionLog:
    return InMemoryInteractionLog()


@pytest.fixture
def user_profile() -> PeerProfile:
    return PeerProfile(
        id="u1",
        display_name="Alex",
        interests=["anxiety", "mindfulness"],
        experiences=["social_anxiety"],
        age_range="25-35",
        communication_style="supportive",
    )


@pytest.fixture
def close_peer() -> PeerProfile:
    """Shares one interest, the experience, age range and style with ``u1``."""
    return PeerProfile(
        id="p_close",
        display_name="Sam",
        interests=["anxiety", "depression"],
        experiences=["social_anxiety"],
        age_range="25-35",
        communication_style="supportive",
        activity_profile={"mood_log": 4.0, "breathing_exercise": 1.0},
        activity_level=ActivityLevel.MEDIUM,
    )


@pytest.fixture
def distant_peer() -> PeerProfile:
    """Nothing in common with ``u1``."""
    return PeerProfile(
        id="p_far",
        display_name="Kim",
        interests=["gaming"],
        experiences=["grief"],
        age_range="56+",
        communication_style="direct",
    )


@pytest.fixture
def peer_directory(user_profile, close_peer, distant_peer) -> InMemoryPeerDirectory:
    return InMemoryPeerDirectory([user_profile, close_peer, distant_peer])


# ---------------------------------------------------------------------------
# Context and history fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def low_mood_context() -> Context:
    return Context(mood=MoodSnapshot(rating=3, emotion="anxious"), trigger="work")


@pytest.fixture
def calm_context() -> Context:
    return Context(mood=MoodSnapshot(rating=7, emotion="happy"))


@pytest.fixture
def trigger_journal() -> list[JournalEntry]:
    return [
        JournalEntry(content="work stress again", mood=2),
        JournalEntry(content="work deadline pressure", mood=3),
        JournalEntry(content="great day", mood=5),
    ]
