"""Tests for PeerGenerator."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from wellness.generators.base import LearnedPatterns
from wellness.generators.peers import PeerGenerator, activity_vector
from wellness.models import Context, InteractionEvent, InteractionType, PeerCandidate

TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _record(log, type, count, user_id="u1") -> None:
    for _ in range(count):
        log.record(InteractionEvent(type, TS, user_id=user_id))


class TestActivityVector:
    def test_counts_by_type(self, interaction_log) -> None:
        _record(interaction_log, "mood_log", 3)
        _record(interaction_log, "journal", 1)
        _record(interaction_log, "journal", 2, user_id="other")
        assert activity_vector(interaction_log, "u1") == {"mood_log": 3.0, "journal": 1.0}


class TestGenerate:
    def test_filters_incompatible_and_annotates(self, peer_directory, interaction_log) -> None:
        peers = PeerGenerator(peer_directory, interaction_log).generate(
            "u1", Context(), LearnedPatterns(), 5
        )
        assert [p.id for p in peers] == ["p_close"]
        assert peers[0].compatibility_score == pytest.approx(0.8)
        assert peers[0].behavioral_similarity == pytest.approx(0.5)
        assert peers[0].suggested_interaction is InteractionType.PEER_MENTORING

    def test_similar_activity_suggests_collaboration(self, peer_directory, interaction_log) -> None:
        _record(interaction_log, "mood_log", 4)
        _record(interaction_log, "breathing_exercise", 1)
        peers = PeerGenerator(peer_directory, interaction_log).generate(
            "u1", Context(), LearnedPatterns(), 5
        )
        assert peers[0].behavioral_similarity == pytest.approx(1.0)
        assert peers[0].suggested_interaction is InteractionType.COLLABORATIVE_SUPPORT

    def test_unknown_user_has_no_matches(self, peer_directory, interaction_log) -> None:
        assert PeerGenerator(peer_directory, interaction_log).generate(
            "stranger", Context(), LearnedPatterns(), 5
        ) == []

    def test_directory_without_profiles_uses_neutral_similarity(self, interaction_log) -> None:
        directory = MagicMock()
        directory.find_matches.return_value = [
            PeerCandidate(id="a", compatibility_score=0.3),
            PeerCandidate(id="b", compatibility_score=0.9),
        ]
        directory.get_profile.return_value = None
        peers = PeerGenerator(directory, interaction_log).generate("u1", Context(), LearnedPatterns(), 1)
        assert [p.id for p in peers] == ["b"]
        assert peers[0].behavioral_similarity == pytest.approx(0.5)
