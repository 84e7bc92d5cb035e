"""Recommendation engine: orchestrates sources, generators, merging and adaptation."""

from __future__ import annotations

import dataclasses
import logging
import math
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import config
from wellness.adaptation import apply_stress_adaptations, filter_content_by_mood, prioritize_by_time
from wellness.analytics import DEFAULT_TIME_RANGE, RecommendationAnalytics
from wellness.cache import RecommendationCache
from wellness.context import ContextEnricher
from wellness.feedback import FeedbackLoop, calculate_learning_rate
from wellness.generators.activities import ActivityGenerator
from wellness.generators.base import CandidateGenerator, LearnedPatterns
from wellness.generators.content import ContentGenerator
from wellness.generators.exercises import ExerciseGenerator, targeted_interventions
from wellness.generators.peers import PeerGenerator
from wellness.library import DEFAULT_TASKS, FALLBACK_ITEMS
from wellness.matching import activity_levels_compatible
from wellness.merge import merge_content_lists, merge_peer_lists
from wellness.models import (
    ActivityLevel,
    AdaptiveBundle,
    BehaviorPatterns,
    Context,
    ContextualBundle,
    Engagement,
    InsightReport,
    InteractionType,
    MoodPatternReport,
    Outcome,
    PeerBundle,
    PeerCandidate,
    PeerOptions,
    Priority,
    RecommendationBundle,
    RecommendationItem,
    SoftFailure,
    TaskBundle,
)
from wellness.patterns import BehaviorAnalyzer, PatternLearner, default_mood_report
from wellness.serialization import to_json
from wellness.sources.base import AISuggestionProvider, HistoryStore, InteractionLog, PeerDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONTEXTUAL_CACHE_CATEGORY = "contextual"

_RULE_CONFIDENCE = 0.4
_RULE_CONFIDENCE_WITH_HISTORY = 0.6
_MIN_POINTS_FOR_CONFIDENCE = 7


def triage(
    items: Sequence[RecommendationItem],
) -> tuple[list[RecommendationItem], list[RecommendationItem], list[RecommendationItem]]:
    """Split tasks into immediate, preventive and maintenance buckets.

    ==============  ========  ==============
    Bucket          Priority  Type
    ==============  ========  ==============
    immediate       high      intervention
    preventive      medium    preventive
    maintenance     low       any
    ==============  ========  ==============

    Items matching no bucket are dropped.
    """
    immediate, preventive, maintenance = [], [], []
    for item in items:
        if item.priority == Priority.HIGH and item.type == "intervention":
            immediate.append(item)
        elif item.priority == Priority.MEDIUM and item.type == "preventive":
            preventive.append(item)
        elif item.priority == Priority.LOW:
            maintenance.append(item)
        else:
            logger.debug("Task %r (%s/%s) matches no bucket; skipped.", item.id, item.priority.value, item.type)
    return immediate, preventive, maintenance


def fallback_bundle(user_id: str, now: datetime | None = None) -> ContextualBundle:
    """Minimal bundle used when contextual generation fails outright."""
    return ContextualBundle(
        user_id=user_id,
        generated_at=now or datetime.now(timezone.utc),
        preventive=[entry.to_item(0.0, entry.description) for entry in FALLBACK_ITEMS],
        reasoning="Default recommendations",
        source="fallback",
    )


def default_task_bundle() -> TaskBundle:
    return TaskBundle(
        preventive_tasks=[entry.to_item(0.0, entry.description) for entry in DEFAULT_TASKS],
        source="default",
    )


def apply_category_weights(
    items: Sequence[RecommendationItem], weights: dict[str, float]
) -> list[RecommendationItem]:
    """Scale scores by the per-category feedback multipliers, then re-rank."""
    if not weights:
        return list(items)
    weighted = []
    for item in items:
        weight = weights.get(item.category.value)
        if weight is None or weight == 1.0:
            weighted.append(item)
            continue
        boosts = item.boosts if "feedback" in item.boosts else [*item.boosts, "feedback"]
        weighted.append(dataclasses.replace(item, score=item.score * weight, boosts=boosts))
    return sorted(weighted, key=lambda i: i.score, reverse=True)


class RecommendationEngine:
    """Produces contextual, peer, task and adaptive recommendation bundles.

    Every collaborator call (history reads, the four rule-based generators
    and the AI provider) runs on the engine's thread pool and is awaited
    with its own timeout.  A failed, empty or late source is replaced by
    its rule-based or empty default and never blocks the other sources.

    Contextual generation:

    ===============  =================================
    Category         Limit
    ===============  =================================
    Content          ``ceil(max * CONTENT_SHARE)``
    Peers            ``ceil(max * PEER_SHARE)``
    Activities       ``ceil(max * PEER_SHARE)``
    Exercises        ``max - content limit``
    ===============  =================================

    The AI contextual suggestion is only requested once the user has at
    least ``config.LEARNING_THRESHOLD`` recorded interactions.

    Args:
        history_store: Mood and journal history.
        interaction_log: Append-only interaction log.
        peer_directory: Source of peer matches.
        ai_provider: Optional AI suggestion provider.
        cache: Bundle cache, owned by the composition root.
        feedback: Feedback loop holding engagement counters.
        enricher: Context enricher; built from *interaction_log* when omitted.
        learner: Mood pattern learner; built from *history_store* when omitted.
        behavior: Behavior analyzer; built from *interaction_log* when omitted.
        content_generator: Rule-based content generator.
        exercise_generator: Rule-based exercise generator.
        peer_generator: Rule-based peer generator.
        activity_generator: Rule-based activity generator.
        analytics: Engagement analytics.
        timeout_seconds: Per-source timeout.
        max_workers: Thread pool size.
    """

    def __init__(
        self,
        history_store: HistoryStore,
        interaction_log: InteractionLog,
        peer_directory: PeerDirectory,
        ai_provider: AISuggestionProvider | None = None,
        cache: RecommendationCache | None = None,
        feedback: FeedbackLoop | None = None,
        enricher: ContextEnricher | None = None,
        learner: PatternLearner | None = None,
        behavior: BehaviorAnalyzer | None = None,
        content_generator: CandidateGenerator[RecommendationItem] | None = None,
        exercise_generator: CandidateGenerator[RecommendationItem] | None = None,
        peer_generator: CandidateGenerator[PeerCandidate] | None = None,
        activity_generator: CandidateGenerator[RecommendationItem] | None = None,
        analytics: RecommendationAnalytics | None = None,
        timeout_seconds: float = config.SOURCE_TIMEOUT_SECONDS,
        max_workers: int = config.FETCH_MAX_WORKERS,
    ) -> None:
        self._ai = ai_provider
        self._cache = cache if cache is not None else RecommendationCache()
        self._feedback = feedback if feedback is not None else FeedbackLoop(interaction_log)
        self._enricher = enricher if enricher is not None else ContextEnricher(interaction_log)
        self._learner = learner if learner is not None else PatternLearner(history_store)
        self._behavior = behavior if behavior is not None else BehaviorAnalyzer(interaction_log)
        self._content = content_generator if content_generator is not None else ContentGenerator()
        self._exercises = exercise_generator if exercise_generator is not None else ExerciseGenerator()
        self._peers = peer_generator if peer_generator is not None else PeerGenerator(peer_directory, interaction_log)
        self._activities = activity_generator if activity_generator is not None else ActivityGenerator()
        self._analytics = analytics if analytics is not None else RecommendationAnalytics(interaction_log)
        self._timeout = timeout_seconds
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wellness-fetch")

    @property
    def feedback(self) -> FeedbackLoop:
        return self._feedback

    @property
    def cache(self) -> RecommendationCache:
        return self._cache

    def close(self) -> None:
        """Shut down the fetch thread pool without waiting for stragglers."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Contextual recommendations
    # ------------------------------------------------------------------

    def generate_contextual_recommendations(
        self,
        user_id: str,
        context: Context | None = None,
        max_recommendations: int | None = None,
        now: datetime | None = None,
    ) -> ContextualBundle:
        """Return a categorised, merged and adapted bundle for *user_id*.

        A bundle computed within the same 5-minute bucket is served from the
        cache.  If generation fails outright, the two-item fallback bundle is
        returned (and not cached).

        Raises:
            ValueError: If *user_id* is empty.
        """
        if not user_id:
            raise ValueError("user_id must be non-empty")
        now = now or datetime.now(timezone.utc)
        max_n = max_recommendations or config.MAX_RECOMMENDATIONS

        key = self._cache.key_for(CONTEXTUAL_CACHE_CATEGORY, user_id, now)
        cached = self._cache.get(key, now)
        if cached is not None:
            logger.debug("Contextual cache hit for user %r (%s)", user_id, key)
            return cached

        try:
            bundle = self._build_contextual(user_id, context, max_n, now)
        except Exception:
            logger.exception("Contextual generation failed for user=%r; using fallback.", user_id)
            return fallback_bundle(user_id, now)

        self._cache.put(key, bundle, now)
        return bundle

    def _build_contextual(
        self, user_id: str, context: Context | None, max_n: int, now: datetime
    ) -> ContextualBundle:
        enriched = self._enricher.enrich(context, user_id=user_id, now=now)
        patterns = self._learn(user_id)

        content_limit = math.ceil(max_n * config.CONTENT_SHARE)
        peer_limit = math.ceil(max_n * config.PEER_SHARE)
        args = (user_id, enriched, patterns)
        pending = {
            "content": self._submit(self._content.generate, *args, content_limit),
            "exercises": self._submit(self._exercises.generate, *args, max(1, max_n - content_limit)),
            "peers": self._submit(self._peers.generate, *args, peer_limit),
            "activities": self._submit(self._activities.generate, *args, peer_limit),
        }
        use_ai = self._ai is not None and patterns.behavior.total_interactions >= config.LEARNING_THRESHOLD
        if use_ai:
            payload = self._payload(user_id, enriched, patterns)
            pending["ai"] = self._submit(self._ai.suggest_contextual, payload)

        content = self._await("content", pending["content"]).value_or([])
        exercises = self._await("exercises", pending["exercises"]).value_or([])
        peers = self._await("peers", pending["peers"]).value_or([])
        activities = self._await("activities", pending["activities"]).value_or([])
        ai = self._await_bundle(pending["ai"]) if use_ai else Outcome.failure(SoftFailure.INSUFFICIENT_DATA)

        confidence = self._rule_confidence(patterns.mood)
        reasoning = "Pattern-based recommendations"
        source = "rule_based"
        if ai.ok:
            suggestion = ai.value
            content = merge_content_lists(content, suggestion.content)
            exercises = merge_content_lists(exercises, suggestion.exercises)
            activities = merge_content_lists(activities, suggestion.activities)
            peers = merge_peer_lists(peers, suggestion.peers)
            confidence = max(confidence, suggestion.confidence)
            reasoning = suggestion.reasoning or reasoning
            source = "ai_enhanced"
        elif use_ai:
            logger.info("AI contextual suggestion unavailable for user=%r (%s).", user_id, ai.reason.value)

        content = self._adapt(content, enriched)
        activities = prioritize_by_time(activities, enriched.time_of_day)
        weights = self._feedback.category_weights(user_id)
        content = apply_category_weights(content, weights)[:content_limit]
        exercises = apply_category_weights(exercises, weights)
        activities = apply_category_weights(activities, weights)[:peer_limit]
        immediate, preventive, maintenance = triage(exercises)

        return ContextualBundle(
            user_id=user_id,
            generated_at=now,
            context=enriched,
            content=content,
            immediate=immediate,
            preventive=preventive,
            maintenance=maintenance,
            activities=activities,
            peers=peers[:peer_limit],
            insights=list(patterns.mood.insights) if patterns.mood else [],
            confidence=confidence,
            reasoning=reasoning,
            source=source,
        )

    def _adapt(self, items: list[RecommendationItem], context: Context) -> list[RecommendationItem]:
        adapted = filter_content_by_mood(items, context.mood)
        adapted = prioritize_by_time(adapted, context.time_of_day)
        adapted = apply_stress_adaptations(adapted, context)
        return sorted(adapted, key=lambda i: i.score, reverse=True)

    # ------------------------------------------------------------------
    # Peer recommendations
    # ------------------------------------------------------------------

    def generate_peer_recommendations(
        self, user_id: str, options: PeerOptions | None = None
    ) -> PeerBundle:
        """Group rule-based and AI peer matches for *user_id*.

        ``support_partners`` holds every merged match; ``activity_partners``
        those whose activity level is compatible with the user's;
        ``mentor_mentee`` those suggested for peer mentoring.  Any failure
        yields empty groups.
        """
        options = options or PeerOptions()
        try:
            return self._build_peers(user_id, options)
        except Exception:
            logger.exception("Peer recommendation failed for user=%r.", user_id)
            return PeerBundle()

    def _build_peers(self, user_id: str, options: PeerOptions) -> PeerBundle:
        if not user_id:
            raise ValueError("user_id must be non-empty")
        patterns = LearnedPatterns(behavior=self._learn_behavior(user_id))
        rule_future = self._submit(self._peers.generate, user_id, Context(), patterns, options.limit)
        ai_future = None
        if self._ai is not None and options.include_ai:
            payload = {
                "user_id": user_id,
                "patterns": to_json(patterns.behavior),
                "options": to_json(options),
            }
            ai_future = self._submit(self._ai.suggest_peers, payload)

        rule_peers = self._await("peers", rule_future).value_or([])
        ai_peers: list[PeerCandidate] = []
        if ai_future is not None:
            ai_peers = self._await("ai_peers", ai_future).value_or([])

        merged = merge_peer_lists(rule_peers, ai_peers)[: options.limit]
        user_level = patterns.behavior.activity_level
        activity_partners = [
            p
            for p in merged
            if user_level != ActivityLevel.UNKNOWN
            and p.activity_level != ActivityLevel.UNKNOWN
            and activity_levels_compatible(user_level, p.activity_level)
        ]
        mentors = [p for p in merged if p.suggested_interaction == InteractionType.PEER_MENTORING]
        confidence = sum(p.compatibility_score for p in merged) / len(merged) if merged else 0.0

        return PeerBundle(
            support_partners=merged,
            activity_partners=activity_partners,
            mentor_mentee=mentors,
            ai_suggested_peers=ai_peers,
            confidence=confidence,
        )

    # ------------------------------------------------------------------
    # Wellness tasks
    # ------------------------------------------------------------------

    def generate_wellness_task_recommendations(
        self,
        user_id: str,
        context: Context | None = None,
        now: datetime | None = None,
    ) -> TaskBundle:
        """Triage AI (or rule-based) tasks and add trigger interventions.

        Falls back to the default tasks on any failure.
        """
        try:
            return self._build_tasks(user_id, context, now or datetime.now(timezone.utc))
        except Exception:
            logger.exception("Wellness task generation failed for user=%r.", user_id)
            return default_task_bundle()

    def _build_tasks(self, user_id: str, context: Context | None, now: datetime) -> TaskBundle:
        if not user_id:
            raise ValueError("user_id must be non-empty")
        enriched = self._enricher.enrich(context, user_id=user_id, now=now)
        patterns = self._learn(user_id)

        rule_future = self._submit(
            self._exercises.generate, user_id, enriched, patterns, config.MAX_RECOMMENDATIONS
        )
        ai_future = None
        if self._ai is not None:
            payload = self._payload(user_id, enriched, patterns)
            payload["trigger"] = enriched.trigger
            ai_future = self._submit(self._ai.suggest_tasks, payload)

        rule_tasks = self._await("exercises", rule_future).value_or([])
        ai_tasks: list[RecommendationItem] = []
        if ai_future is not None:
            ai_tasks = self._await("ai_tasks", ai_future).value_or([])

        tasks = ai_tasks or rule_tasks
        immediate, preventive, maintenance = triage(tasks)
        return TaskBundle(
            immediate_tasks=immediate,
            preventive_tasks=preventive,
            maintenance_tasks=maintenance,
            targeted_interventions=targeted_interventions(patterns.triggers),
            ai_suggested_tasks=ai_tasks,
            source="ai" if ai_tasks else "rule_based",
        )

    # ------------------------------------------------------------------
    # Adaptive recommendations
    # ------------------------------------------------------------------

    def get_adaptive_recommendations(
        self,
        user_id: str,
        engagement: Engagement | None = None,
        now: datetime | None = None,
    ) -> AdaptiveBundle:
        """Record *engagement*, then ask the AI provider for an adapted bundle.

        The learning rate from :func:`~wellness.feedback.calculate_learning_rate`
        is sent as a weighting hint.  When the provider fails or returns
        nothing, the plain contextual bundle is returned instead.
        """
        if not user_id:
            raise ValueError("user_id must be non-empty")
        now = now or datetime.now(timezone.utc)

        if engagement is not None and engagement.recommendation_id:
            try:
                self._feedback.record_engagement(user_id, engagement)
            except ValueError:
                logger.warning("Ignoring malformed engagement for user=%r: %r", user_id, engagement)

        effectiveness = self._feedback.effectiveness(user_id)
        learning_rate = calculate_learning_rate(engagement, now)

        adapted: Outcome[RecommendationBundle] = Outcome.failure(SoftFailure.PROVIDER_UNAVAILABLE)
        if self._ai is not None:
            patterns = LearnedPatterns(behavior=self._learn_behavior(user_id))
            payload = {
                "user_id": user_id,
                "feedback": to_json(engagement) if engagement else None,
                "effectiveness": to_json(effectiveness),
                "patterns": to_json(patterns.behavior),
                "learning_rate": learning_rate,
            }
            adapted = self._await_bundle(self._submit(self._ai.suggest_contextual, payload))

        if adapted.ok:
            bundle = self._bundle_from_suggestion(user_id, adapted.value, now)
        else:
            logger.debug("Adaptive suggestion unavailable for user=%r (%s); using contextual.", user_id, adapted.reason.value)
            bundle = self.generate_contextual_recommendations(user_id, now=now)

        return AdaptiveBundle(
            recommendations=bundle,
            learning_rate=learning_rate,
            effectiveness=effectiveness,
            adapted=adapted.ok,
        )

    def _bundle_from_suggestion(
        self, user_id: str, suggestion: RecommendationBundle, now: datetime
    ) -> ContextualBundle:
        weights = self._feedback.category_weights(user_id)
        immediate, preventive, maintenance = triage(apply_category_weights(suggestion.exercises, weights))
        return ContextualBundle(
            user_id=user_id,
            generated_at=now,
            content=apply_category_weights(merge_content_lists(suggestion.content, []), weights),
            immediate=immediate,
            preventive=preventive,
            maintenance=maintenance,
            activities=apply_category_weights(merge_content_lists(suggestion.activities, []), weights),
            peers=merge_peer_lists(suggestion.peers, []),
            confidence=suggestion.confidence,
            reasoning=suggestion.reasoning or "Adapted to your recent feedback",
            source="adaptive",
        )

    # ------------------------------------------------------------------
    # Mood patterns and insights
    # ------------------------------------------------------------------

    def analyze_mood_patterns(self, user_id: str) -> MoodPatternReport:
        outcome = self._await("mood_patterns", self._submit(self._learner.analyze_mood_patterns, user_id))
        return outcome.value if outcome.ok else default_mood_report()

    def generate_insights(
        self,
        user_id: str,
        time_range: timedelta = DEFAULT_TIME_RANGE,
        now: datetime | None = None,
    ) -> InsightReport:
        return self._analytics.generate_insights(user_id, time_range=time_range, now=now)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _learn(self, user_id: str) -> LearnedPatterns:
        """Run mood and behavior learning in parallel, each with its own fallback."""
        mood_future = self._submit(self._learner.analyze_mood_patterns, user_id)
        behavior_future = self._submit(self._behavior.learn_user_patterns, user_id)
        mood = self._await("mood_patterns", mood_future).value_or(default_mood_report())
        behavior = self._await("behavior_patterns", behavior_future).value_or(BehaviorPatterns())
        return LearnedPatterns(mood=mood, behavior=behavior)

    def _learn_behavior(self, user_id: str) -> BehaviorPatterns:
        future = self._submit(self._behavior.learn_user_patterns, user_id)
        return self._await("behavior_patterns", future).value_or(BehaviorPatterns())

    def _submit(self, fn: Callable[..., T], *args: Any) -> tuple[Future[T], float]:
        return self._executor.submit(fn, *args), time.monotonic() + self._timeout

    def _await(self, name: str, pending: tuple[Future[T], float]) -> Outcome[T]:
        """Wait for a submitted source until its own deadline.

        Returns:
            The value, or a :class:`~wellness.models.SoftFailure` of
            ``timeout``, ``source_error`` or ``provider_unavailable``
            (the source returned ``None``).
        """
        future, deadline = pending
        try:
            value = future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            logger.warning("Source %r timed out after %.1fs; using fallback.", name, self._timeout)
            future.cancel()
            return Outcome.failure(SoftFailure.TIMEOUT, name)
        except Exception as exc:
            logger.warning("Source %r failed (%s); using fallback.", name, exc, exc_info=True)
            return Outcome.failure(SoftFailure.SOURCE_ERROR, str(exc))
        if value is None:
            return Outcome.failure(SoftFailure.PROVIDER_UNAVAILABLE, name)
        return Outcome.success(value)

    def _await_bundle(
        self, pending: tuple[Future[RecommendationBundle | None], float]
    ) -> Outcome[RecommendationBundle]:
        outcome = self._await("ai_contextual", pending)
        if outcome.ok and outcome.value.is_empty():
            return Outcome.failure(SoftFailure.EMPTY, "ai_contextual")
        return outcome

    def _payload(self, user_id: str, context: Context, patterns: LearnedPatterns) -> dict[str, Any]:
        return {
            "user_id": user_id,
            "context": to_json(context),
            "mood_patterns": to_json(patterns.mood) if patterns.mood else None,
            "behavior_patterns": to_json(patterns.behavior),
        }

    @staticmethod
    def _rule_confidence(mood: MoodPatternReport | None) -> float:
        if mood is not None and mood.data_points >= _MIN_POINTS_FOR_CONFIDENCE:
            return _RULE_CONFIDENCE_WITH_HISTORY
        return _RULE_CONFIDENCE
