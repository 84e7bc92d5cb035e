"""Core domain dataclasses shared across all wellness modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from wellness.numeric import clamp

T = TypeVar("T")


class Category(str, Enum):
    """Recommendation categories surfaced to the user."""

    CONTENT = "content"
    EXERCISE = "exercise"
    PEER = "peer"
    ACTIVITY = "activity"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TrendDirection(str, Enum):
    """Qualitative direction of a mood series."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class ActivityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"


class RecommendationAction(str, Enum):
    """User actions recorded against a previously shown recommendation."""

    SHOWN = "shown"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    DISMISSED = "dismissed"
    FEEDBACK = "feedback"
    SAVED = "saved"


class InteractionType(str, Enum):
    """How two matched peers are encouraged to connect."""

    COLLABORATIVE_SUPPORT = "collaborative_support"
    PEER_MENTORING = "peer_mentoring"
    ACTIVITY_PARTNERSHIP = "activity_partnership"
    GENERAL_CONNECTION = "general_connection"


class SoftFailure(str, Enum):
    """Expected, recoverable reasons a source produced no usable value."""

    INSUFFICIENT_DATA = "insufficient_data"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    TIMEOUT = "timeout"
    SOURCE_ERROR = "source_error"
    EMPTY = "empty"


@dataclass
class Outcome(Generic[T]):
    """Either a value or the :class:`SoftFailure` explaining its absence.

    Used on the internal seams between the engine and its collaborators so
    that "no data" and "provider down" are explicit instead of ``None``.
    """

    value: T | None = None
    reason: SoftFailure | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: SoftFailure, detail: str | None = None) -> Outcome[T]:
        return cls(reason=reason, detail=detail)

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


@dataclass
class MoodSnapshot:
    """The user's current mood.

    Attributes:
        rating: Self-reported mood on a 1–10 scale.
        emotion: Free-text emotion label (e.g. ``"anxious"``), if given.
    """

    rating: int
    emotion: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.rating <= 10:
            raise ValueError(f"Mood rating must be between 1 and 10, got {self.rating!r}")


@dataclass
class SocialContext:
    has_recent_peer_contact: bool = False
    last_peer_interaction: datetime | None = None
    social_activity_level: ActivityLevel = ActivityLevel.UNKNOWN


@dataclass
class Context:
    """Ephemeral snapshot of user, time and mood state for one request.

    Callers usually fill in only :attr:`mood`, :attr:`trigger` and the
    optional stress ratings; :class:`~wellness.context.ContextEnricher`
    derives the temporal and social fields and sets :attr:`enriched`.

    Attributes:
        timestamp: When the request was made (UTC).
        mood: Current mood snapshot, if known.
        trigger: What prompted the request (e.g. ``"work"``).
        time_of_day: ``morning``, ``afternoon``, ``evening`` or ``night``.
        is_weekend: ``True`` on Saturday and Sunday.
        season: ``winter``, ``spring``, ``summer`` or ``autumn``.
        quarter_hour: Minute bucket 0–3 within the hour.
        week_of_month: 1–5.
        day_of_week: 0–6 with Sunday as 0.
        hour: 0–23.
        anxiety_level: Self-reported anxiety on a 1–10 scale.
        stress_level: Self-reported stress on a 1–10 scale.
        social_context: Recent peer-interaction summary.
    """

    timestamp: datetime | None = None
    mood: MoodSnapshot | None = None
    trigger: str | None = None
    time_of_day: str | None = None
    is_weekend: bool | None = None
    season: str | None = None
    quarter_hour: int | None = None
    week_of_month: int | None = None
    day_of_week: int | None = None
    hour: int | None = None
    anxiety_level: int | None = None
    stress_level: int | None = None
    social_context: SocialContext | None = None
    enriched: bool = False


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


@dataclass
class RecommendationItem:
    """A single recommendation in any category.

    Identity for merging is the ``(type, id)`` pair.

    Attributes:
        id: Identifier unique within :attr:`type`.
        type: Fine-grained kind (e.g. ``"breathing_exercise"``, ``"article"``).
        title: Short display title.
        reason: Why the item was recommended.  Merged reasons are joined
            with ``"; "``.
        score: Confidence in ``[0, 1]``; clamped on construction.
        category: One of :class:`Category`.
        priority: One of :class:`Priority`.
        expected_outcome: What the user should get out of it, if known.
        duration_minutes: Expected length of the activity, if known.
        ai_enhanced: ``True`` once an AI-sourced list contributed to the item.
        boosts: Names of the score adjustments applied (``"mood"``,
            ``"time"``, ``"stress"``, ``"feedback"``).
    """

    id: str | int
    type: str
    title: str = ""
    reason: str = ""
    score: float = 0.0
    category: Category = Category.CONTENT
    priority: Priority = Priority.MEDIUM
    expected_outcome: str | None = None
    duration_minutes: int | None = None
    ai_enhanced: bool = False
    boosts: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.category = Category(self.category)
        self.priority = Priority(self.priority)
        self.score = clamp(float(self.score or 0.0), 0.0, 1.0)

    @property
    def key(self) -> tuple[str, str | int]:
        return (self.type, self.id)


@dataclass
class PeerCandidate:
    """A potential peer-support match for the requesting user.

    Identity for merging is :attr:`id`.
    """

    id: str
    display_name: str = ""
    compatibility_score: float = 0.0
    behavioral_similarity: float = 0.5
    shared_interests: list[str] = field(default_factory=list)
    suggested_interaction: InteractionType | None = None
    activity_level: ActivityLevel = ActivityLevel.UNKNOWN
    ai_enhanced: bool = False

    def __post_init__(self) -> None:
        self.compatibility_score = clamp(float(self.compatibility_score or 0.0), 0.0, 1.0)
        self.behavioral_similarity = clamp(float(self.behavioral_similarity or 0.0), 0.0, 1.0)
        self.activity_level = ActivityLevel(self.activity_level)
        if self.suggested_interaction is not None:
            self.suggested_interaction = InteractionType(self.suggested_interaction)


@dataclass
class PeerProfile:
    """Directory record for a user who can be matched as a peer.

    Attributes:
        activity_profile: Interaction-type counts used for behavioral
            similarity (e.g. ``{"mood_log": 12, "breathing_exercise": 3}``).
    """

    id: str
    display_name: str = ""
    interests: list[str] = field(default_factory=list)
    experiences: list[str] = field(default_factory=list)
    age_range: str | None = None
    communication_style: str | None = None
    activity_profile: dict[str, float] = field(default_factory=dict)
    activity_level: ActivityLevel = ActivityLevel.UNKNOWN


# ---------------------------------------------------------------------------
# History and interaction records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InteractionEvent:
    """A single recorded user interaction.  Never mutated once recorded.

    Attributes:
        type: Interaction kind (``"recommendation_engagement"``,
            ``"social_chat"``, ``"breathing_exercise"``...).  Types starting
            with ``social_`` count as peer contact.
        timestamp: When the interaction happened (UTC).
        user_id: The acting user.
        recommendation_id: The recommendation acted upon, if any.
        action: The :class:`RecommendationAction`, if any.
        category: Recommendation category of the item acted upon.
        rating: Feedback rating in ``[0, 1]``, if given.
    """

    type: str
    timestamp: datetime
    user_id: str | None = None
    recommendation_id: str | None = None
    action: RecommendationAction | None = None
    category: str | None = None
    rating: float | None = None


@dataclass
class Engagement:
    """A user's reaction to a recommendation, as reported by the UI.

    Attributes:
        rating: Feedback in ``[0, 1]``; also the base of the learning rate.
        timestamp: When the reaction happened; drives recency decay.
    """

    recommendation_id: str | None = None
    action: RecommendationAction | None = None
    category: str | None = None
    rating: float | None = None
    timestamp: datetime | None = None


@dataclass
class MoodEntry:
    mood: float
    timestamp: datetime
    note: str | None = None


@dataclass
class JournalEntry:
    content: str
    mood: float | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Pattern analysis results
# ---------------------------------------------------------------------------


@dataclass
class MoodTrend:
    trend: TrendDirection
    recent_average: float | None = None
    previous_average: float | None = None
    change: float | None = None


@dataclass
class TriggerCount:
    trigger: str
    frequency: int


@dataclass
class WeeklyCycle:
    """Per-weekday mood averages.

    ``pattern`` is ``"weekly"`` when enough data exists, otherwise
    ``"insufficient_data"`` and the other fields are empty.
    """

    pattern: str
    best_day: str | None = None
    worst_day: str | None = None
    day_averages: dict[str, float] = field(default_factory=dict)


@dataclass
class MoodForecast:
    """Least-squares forecast of the next mood value.

    ``prediction`` is ``"available"`` or ``"insufficient_data"``.
    """

    prediction: str
    trend: TrendDirection | None = None
    next_mood_estimate: int | None = None
    confidence: float | None = None
    slope: float | None = None


@dataclass
class MoodPatternReport:
    trend: MoodTrend
    triggers: list[TriggerCount]
    weekly_cycle: WeeklyCycle
    forecast: MoodForecast
    insights: list[str]
    data_points: int = 0


@dataclass
class ActivityPreference:
    """How a user engages with one interaction type."""

    frequency: int = 0
    completion_rate: float = 0.0
    average_rating: float = 0.0
    engagement_score: float = 0.0


@dataclass
class BehaviorPatterns:
    """Habits learned from a user's interaction log.

    Attributes:
        time_preferences: ``{time_of_day: {interaction_type: count}}``.
        activity_preferences: Per interaction type engagement.
        session_count: Number of sessions (30-minute gaps split sessions).
        average_session_minutes: Mean session length.
        sessions_by_day: Session starts per weekday name.
        peak_hours: Up to three busiest hours of the day, busiest first.
        activity_level: Engagement bucket derived from the sessions.
        total_interactions: Number of events analysed.
    """

    time_preferences: dict[str, dict[str, int]] = field(default_factory=dict)
    activity_preferences: dict[str, ActivityPreference] = field(default_factory=dict)
    session_count: int = 0
    average_session_minutes: float = 0.0
    sessions_by_day: dict[str, int] = field(default_factory=dict)
    peak_hours: list[int] = field(default_factory=list)
    activity_level: ActivityLevel = ActivityLevel.UNKNOWN
    total_interactions: int = 0


# ---------------------------------------------------------------------------
# Feedback statistics
# ---------------------------------------------------------------------------


@dataclass
class CategoryStats:
    """Running counters for recommendations in one category (or overall)."""

    total: int = 0
    accepted: int = 0
    effective: int = 0

    @property
    def acceptance_rate(self) -> float:
        return self.accepted / self.total if self.total else 0.0

    @property
    def effectiveness_rate(self) -> float:
        return self.effective / self.total if self.total else 0.0


@dataclass
class EffectivenessSummary:
    total: int = 0
    accepted: int = 0
    effective: int = 0
    acceptance_rate: float = 0.0
    effectiveness_rate: float = 0.0
    categories: dict[str, CategoryStats] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


@dataclass
class RecommendationBundle:
    """Categorised suggestions returned by an AI suggestion provider."""

    content: list[RecommendationItem] = field(default_factory=list)
    exercises: list[RecommendationItem] = field(default_factory=list)
    activities: list[RecommendationItem] = field(default_factory=list)
    peers: list[PeerCandidate] = field(default_factory=list)
    confidence: float = 0.0
    reasoning: str | None = None

    def is_empty(self) -> bool:
        return not (self.content or self.exercises or self.activities or self.peers)


@dataclass
class ContextualBundle:
    """The aggregate of categorised recommendation lists for one request.

    Exercises are triaged into :attr:`immediate`, :attr:`preventive` and
    :attr:`maintenance` by priority and type.
    """

    user_id: str
    generated_at: datetime
    context: Context | None = None
    content: list[RecommendationItem] = field(default_factory=list)
    immediate: list[RecommendationItem] = field(default_factory=list)
    preventive: list[RecommendationItem] = field(default_factory=list)
    maintenance: list[RecommendationItem] = field(default_factory=list)
    activities: list[RecommendationItem] = field(default_factory=list)
    peers: list[PeerCandidate] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    confidence: float = 0.0
    reasoning: str = "Pattern-based recommendations"
    source: str = "rule_based"

    def all_items(self) -> list[RecommendationItem]:
        return self.content + self.immediate + self.preventive + self.maintenance + self.activities


@dataclass
class PeerBundle:
    support_partners: list[PeerCandidate] = field(default_factory=list)
    activity_partners: list[PeerCandidate] = field(default_factory=list)
    mentor_mentee: list[PeerCandidate] = field(default_factory=list)
    ai_suggested_peers: list[PeerCandidate] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class TaskBundle:
    immediate_tasks: list[RecommendationItem] = field(default_factory=list)
    preventive_tasks: list[RecommendationItem] = field(default_factory=list)
    maintenance_tasks: list[RecommendationItem] = field(default_factory=list)
    targeted_interventions: list[RecommendationItem] = field(default_factory=list)
    ai_suggested_tasks: list[RecommendationItem] = field(default_factory=list)
    source: str = "rule_based"


@dataclass
class PeerOptions:
    """Caller options for peer recommendations.

    Attributes:
        limit: Maximum peers per group.
        include_ai: Whether to consult the AI suggestion provider.
    """

    limit: int = 10
    include_ai: bool = True


@dataclass
class AdaptiveBundle:
    recommendations: ContextualBundle
    learning_rate: float
    effectiveness: EffectivenessSummary
    adapted: bool = False


# ---------------------------------------------------------------------------
# Engagement analytics
# ---------------------------------------------------------------------------


@dataclass
class RecommendationPerformance:
    """Engagement metrics for a single recommendation id.

    ``score`` is ``accept*0.3 + completion*0.3 + engagement*0.2 + rating*0.2``.
    """

    recommendation_id: str
    category: str
    impressions: int = 0
    accepts: int = 0
    dismisses: int = 0
    completions: int = 0
    feedback_count: int = 0
    accept_rate: float = 0.0
    completion_rate: float = 0.0
    engagement_rate: float = 0.0
    average_rating: float = 0.0
    score: float = 0.0


@dataclass
class CategoryAnalytics:
    """Engagement in one category over a time range.

    ``trend`` compares the newer half of the range with the older half:
    ``improving``, ``declining`` or ``stable``; ``new`` when the older half
    is empty and ``neutral`` when there is no data at all.
    """

    category: str
    total_interactions: int = 0
    unique_recommendations: int = 0
    accept_rate: float = 0.0
    completion_rate: float = 0.0
    average_rating: float = 0.0
    top_recommendations: list[RecommendationPerformance] = field(default_factory=list)
    trend: str = "neutral"


@dataclass
class PerformanceOverview:
    total_interactions: int = 0
    unique_recommendations: int = 0
    total_accepts: int = 0
    total_completions: int = 0
    average_accept_rate: float = 0.0
    average_completion_rate: float = 0.0
    overall_engagement: float = 0.0
    trend: str | None = None


@dataclass
class Adjustment:
    """A suggested change to how often or how well a category is recommended."""

    type: str
    category: str
    reason: str
    suggested_action: str


@dataclass
class InsightReport:
    overview: PerformanceOverview
    categories: dict[str, CategoryAnalytics] = field(default_factory=dict)
    adjustments: list[Adjustment] = field(default_factory=list)
