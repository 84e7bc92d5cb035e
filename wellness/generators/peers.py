"""Peer generator: directory matches enhanced with behavioral similarity."""

from __future__ import annotations

import dataclasses
import logging

import config
from wellness.generators.base import CandidateGenerator, LearnedPatterns
from wellness.matching import behavioral_similarity, suggested_interaction_type
from wellness.models import Context, PeerCandidate
from wellness.sources.base import InteractionLog, PeerDirectory

logger = logging.getLogger(__name__)


def activity_vector(log: InteractionLog, user_id: str) -> dict[str, float]:
    """Interaction-type counts over the user's recent events."""
    counts: dict[str, float] = {}
    for event in log.recent(config.INTERACTION_WINDOW, user_id=user_id):
        counts[event.type] = counts.get(event.type, 0.0) + 1.0
    return counts


class PeerGenerator(CandidateGenerator[PeerCandidate]):
    """Ranks directory matches by profile compatibility.

    Each match is annotated with the cosine similarity between the user's
    and the peer's interaction-type counts, and with the suggested
    interaction type from the mean of both scores.  Peers without a known
    activity profile get the neutral similarity of 0.5.

    Args:
        directory: Source of scored peer matches and profiles.
        interaction_log: The user's own interaction history.
    """

    def __init__(self, directory: PeerDirectory, interaction_log: InteractionLog) -> None:
        self._directory = directory
        self._log = interaction_log

    def generate(
        self,
        user_id: str,
        context: Context,
        patterns: LearnedPatterns,
        limit: int,
    ) -> list[PeerCandidate]:
        matches = self._directory.find_matches(user_id)
        if not matches:
            return []

        user_vector = activity_vector(self._log, user_id)
        enhanced = []
        for match in matches:
            profile = self._directory.get_profile(match.id)
            peer_vector = profile.activity_profile if profile is not None else {}
            similarity = behavioral_similarity(user_vector, peer_vector)
            enhanced.append(
                dataclasses.replace(
                    match,
                    behavioral_similarity=similarity,
                    suggested_interaction=suggested_interaction_type(
                        match.compatibility_score, similarity
                    ),
                )
            )

        enhanced.sort(key=lambda p: p.compatibility_score, reverse=True)
        logger.debug("Peer candidates for user %r: %s", user_id, [p.id for p in enhanced[:limit]])
        return enhanced[:limit]
