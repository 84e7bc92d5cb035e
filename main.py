"""Entry point: wires all components and runs a local demo request."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

import config
from wellness.cache import RecommendationCache
from wellness.context import ContextEnricher
from wellness.engine import RecommendationEngine
from wellness.feedback import FeedbackLoop
from wellness.generators.activities import ActivityGenerator
from wellness.generators.content import ContentGenerator
from wellness.generators.exercises import ExerciseGenerator
from wellness.generators.peers import PeerGenerator
from wellness.models import ActivityLevel, InteractionEvent, JournalEntry, MoodEntry, PeerProfile
from wellness.patterns import BehaviorAnalyzer, PatternLearner
from wellness.service import RecommendationService
from wellness.sources.base import AISuggestionProvider, HistoryStore, InteractionLog, PeerDirectory
from wellness.sources.memory import InMemoryHistoryStore, InMemoryInteractionLog, InMemoryPeerDirectory
from wellness.sources.rules import RuleBasedSuggestionProvider

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_service(
    history_store: HistoryStore,
    interaction_log: InteractionLog,
    peer_directory: PeerDirectory,
    ai_provider: AISuggestionProvider | None = None,
    cache: RecommendationCache | None = None,
) -> RecommendationService:
    """Construct the recommendation service with all dependencies wired.

    Args:
        history_store: Mood and journal history.
        interaction_log: Append-only interaction log.
        peer_directory: Source of peer matches.
        ai_provider: Optional AI suggestion provider.
        cache: Bundle cache; a new one is created when omitted.

    Returns:
        A ready :class:`~wellness.service.RecommendationService`.
    """
    feedback = FeedbackLoop(interaction_log)
    engine = RecommendationEngine(
        history_store=history_store,
        interaction_log=interaction_log,
        peer_directory=peer_directory,
        ai_provider=ai_provider,
        cache=cache if cache is not None else RecommendationCache(),
        feedback=feedback,
        enricher=ContextEnricher(interaction_log),
        learner=PatternLearner(history_store),
        behavior=BehaviorAnalyzer(interaction_log),
        content_generator=ContentGenerator(),
        exercise_generator=ExerciseGenerator(),
        peer_generator=PeerGenerator(peer_directory, interaction_log),
        activity_generator=ActivityGenerator(),
    )
    return RecommendationService(engine)


def _seed_demo_data(
    history: InMemoryHistoryStore,
    log: InMemoryInteractionLog,
    directory: InMemoryPeerDirectory,
    user_id: str,
    now: datetime,
) -> None:
    """Two weeks of declining moods, a few journal entries and two peers."""
    for day in range(14):
        history.add_mood(user_id, MoodEntry(mood=7 - day * 0.3, timestamp=now - timedelta(days=14 - day)))
    history.add_journal_entry(user_id, JournalEntry("work deadline pressure again", 3, now - timedelta(days=2)))
    history.add_journal_entry(user_id, JournalEntry("stress at work, could not sleep", 2, now - timedelta(days=1)))
    for minute in range(0, 60, 5):
        log.record(InteractionEvent("mood_log", now - timedelta(hours=3, minutes=minute), user_id=user_id))

    directory.add_profile(
        PeerProfile(user_id, "You", ["anxiety", "mindfulness"], ["work_stress"], "26-35", "supportive")
    )
    directory.add_profile(
        PeerProfile(
            "peer-1", "Sam", ["anxiety", "running"], ["work_stress"], "30-40", "supportive",
            activity_profile={"mood_log": 8, "breathing_exercise": 2}, activity_level=ActivityLevel.MEDIUM,
        )
    )
    directory.add_profile(
        PeerProfile("peer-2", "Ari", ["mindfulness"], [], "18-25", "direct", activity_level=ActivityLevel.LOW)
    )


def main() -> None:
    """Build an in-memory service, seed demo data and log one contextual bundle."""
    history = InMemoryHistoryStore()
    log = InMemoryInteractionLog()
    directory = InMemoryPeerDirectory()
    now = datetime.now(timezone.utc)
    _seed_demo_data(history, log, directory, "demo-user", now)

    cache = RecommendationCache()
    cache.start_sweep_loop()
    service = build_service(history, log, directory, RuleBasedSuggestionProvider(), cache)

    bundle = service.generate_contextual_recommendations(
        "demo-user", {"mood": {"rating": 3, "emotion": "stressed"}, "trigger": "work"}
    )
    logger.info("Contextual bundle:\n%s", json.dumps(bundle, indent=2))


if __name__ == "__main__":
    main()
