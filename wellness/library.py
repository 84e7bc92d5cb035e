"""Built-in catalogue of wellness content, exercises and activities.

The rule-based generators score entries from this catalogue against the
request context.  Entry ids are stable so that feedback recorded against a
recommendation can be traced back to its entry.
"""

from __future__ import annotations

from dataclasses import dataclass

from wellness.models import Category, Priority, RecommendationItem

_ANY: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LibraryEntry:
    """A catalogue entry.

    Attributes:
        moods: Normalized moods the entry helps with.
        times: Times of day the entry suits; empty means any time.
        seasons: Seasons the entry suits; empty means any season.
        weekend: ``True`` weekend only, ``False`` weekdays only, ``None`` any day.
        social: Whether the entry involves other people.
    """

    id: str
    type: str
    title: str
    description: str
    category: Category
    priority: Priority = Priority.MEDIUM
    moods: frozenset[str] = _ANY
    times: frozenset[str] = _ANY
    seasons: frozenset[str] = _ANY
    weekend: bool | None = None
    social: bool = False
    duration_minutes: int | None = None
    expected_outcome: str | None = None

    def to_item(self, score: float, reason: str, priority: Priority | None = None) -> RecommendationItem:
        return RecommendationItem(
            id=self.id,
            type=self.type,
            title=self.title,
            reason=reason,
            score=score,
            category=self.category,
            priority=priority or self.priority,
            expected_outcome=self.expected_outcome,
            duration_minutes=self.duration_minutes,
        )


def _set(*values: str) -> frozenset[str]:
    return frozenset(values)


CONTENT = (
    LibraryEntry(
        "breathing_478", "breathing_exercise", "4-7-8 Breathing",
        "A paced breathing pattern that slows the heart rate.",
        Category.CONTENT, moods=_set("anxious", "stressed"),
        duration_minutes=5, expected_outcome="Calmer body within minutes",
    ),
    LibraryEntry(
        "body_scan", "meditation", "Body Scan Meditation",
        "Guided attention from head to toe to release tension.",
        Category.CONTENT, moods=_set("stressed", "anxious", "neutral"),
        times=_set("evening", "night"), duration_minutes=10,
        expected_outcome="Less muscle tension",
    ),
    LibraryEntry(
        "three_good_things", "gratitude_journal", "Three Good Things",
        "Write down three things that went well today.",
        Category.CONTENT, moods=_set("sad", "neutral", "happy"),
        times=_set("evening", "night"), duration_minutes=10,
        expected_outcome="A more balanced view of the day",
    ),
    LibraryEntry(
        "understanding_anxiety", "article", "Understanding Anxiety",
        "What anxiety is, why it happens and what helps.",
        Category.CONTENT, moods=_set("anxious"), duration_minutes=8,
    ),
    LibraryEntry(
        "sleep_hygiene", "article", "Sleep Hygiene Basics",
        "Small evening habits that improve sleep quality.",
        Category.CONTENT, moods=_set("stressed", "sad", "neutral"),
        times=_set("evening", "night"), duration_minutes=6,
    ),
    LibraryEntry(
        "morning_stretch", "physical_exercise", "Morning Stretch Routine",
        "Ten minutes of gentle stretching to wake the body up.",
        Category.CONTENT, moods=_set("sad", "neutral", "happy"),
        times=_set("morning"), duration_minutes=10,
        expected_outcome="More energy for the day",
    ),
    LibraryEntry(
        "self_compassion", "article", "Practicing Self-Compassion",
        "How to talk to yourself the way you would talk to a friend.",
        Category.CONTENT, moods=_set("sad"), duration_minutes=7,
    ),
    LibraryEntry(
        "focus_reset", "meditation", "Two-Minute Focus Reset",
        "A short pause to reset attention between tasks.",
        Category.CONTENT, moods=_set("stressed", "neutral"),
        times=_set("morning", "afternoon"), duration_minutes=2,
    ),
    LibraryEntry(
        "community_stories", "social_activity", "Stories from the Community",
        "Read how others in the community got through similar weeks.",
        Category.CONTENT, moods=_set("sad", "happy"),
        times=_set("afternoon", "evening"), social=True, duration_minutes=10,
    ),
)

EXERCISES = (
    LibraryEntry(
        "grounding_54321", "intervention", "5-4-3-2-1 Grounding",
        "Name five things you see, four you feel, three you hear, two you smell, one you taste.",
        Category.EXERCISE, Priority.HIGH, moods=_set("anxious", "stressed"),
        duration_minutes=5, expected_outcome="Reduced acute anxiety",
    ),
    LibraryEntry(
        "box_breathing", "intervention", "Box Breathing",
        "Inhale, hold, exhale and hold for four counts each.",
        Category.EXERCISE, Priority.HIGH, moods=_set("anxious", "stressed"),
        duration_minutes=4, expected_outcome="Steadier breathing",
    ),
    LibraryEntry(
        "coping_plan_review", "intervention", "Review Your Coping Plan",
        "Revisit the steps and people on your personal coping plan.",
        Category.EXERCISE, Priority.HIGH, moods=_set("sad"),
        duration_minutes=10, expected_outcome="A clear next step",
    ),
    LibraryEntry(
        "progressive_relaxation", "preventive", "Progressive Muscle Relaxation",
        "Tense and release each muscle group in turn.",
        Category.EXERCISE, Priority.MEDIUM, moods=_set("stressed", "anxious", "neutral"),
        duration_minutes=15, expected_outcome="Lower baseline tension",
    ),
    LibraryEntry(
        "worry_time", "preventive", "Scheduled Worry Time",
        "Set aside fifteen minutes to write worries down, then close the notebook.",
        Category.EXERCISE, Priority.MEDIUM, moods=_set("anxious"),
        duration_minutes=15,
    ),
    LibraryEntry(
        "evening_reflection", "preventive", "Evening Reflection",
        "Look back on the day and note what drained and what restored you.",
        Category.EXERCISE, Priority.MEDIUM, moods=_set("sad", "stressed", "neutral", "happy"),
        times=_set("evening", "night"), duration_minutes=10,
    ),
    LibraryEntry(
        "daily_checkin", "maintenance", "Daily Mood Check-in",
        "Log how you feel right now.",
        Category.EXERCISE, Priority.LOW, duration_minutes=2,
    ),
    LibraryEntry(
        "gratitude_practice", "maintenance", "Gratitude Practice",
        "Note one thing you are grateful for.",
        Category.EXERCISE, Priority.LOW, moods=_set("happy", "neutral"),
        duration_minutes=5,
    ),
)

ACTIVITIES = (
    LibraryEntry(
        "morning_sunlight", "outdoor", "Get Some Morning Light",
        "Step outside for ten minutes of daylight.",
        Category.ACTIVITY, times=_set("morning"), duration_minutes=10,
    ),
    LibraryEntry(
        "lunchtime_walk", "outdoor", "Lunchtime Walk",
        "A short walk away from screens in the middle of the day.",
        Category.ACTIVITY, times=_set("afternoon"), weekend=False, duration_minutes=15,
    ),
    LibraryEntry(
        "nature_walk", "outdoor", "Weekend Nature Walk",
        "Spend an hour in a park or on a trail.",
        Category.ACTIVITY, seasons=_set("spring", "summer", "autumn"),
        weekend=True, duration_minutes=60,
    ),
    LibraryEntry(
        "creative_hour", "creative", "Creative Hour",
        "Draw, write or make music with no goal in mind.",
        Category.ACTIVITY, weekend=True, duration_minutes=60,
    ),
    LibraryEntry(
        "cozy_reading", "relaxation", "Cozy Reading Hour",
        "Curl up with a book and a warm drink.",
        Category.ACTIVITY, times=_set("evening", "night"),
        seasons=_set("autumn", "winter"), duration_minutes=60,
    ),
    LibraryEntry(
        "screen_free_wind_down", "relaxation", "Screen-free Wind-down",
        "Put devices away for the last half hour before bed.",
        Category.ACTIVITY, times=_set("night"), duration_minutes=30,
    ),
    LibraryEntry(
        "call_a_friend", "social_activity", "Call a Friend",
        "Reach out to someone you have not spoken to in a while.",
        Category.ACTIVITY, social=True, duration_minutes=20,
    ),
    LibraryEntry(
        "peer_support_circle", "social_activity", "Join a Peer Support Circle",
        "Drop in on a moderated group chat with peers.",
        Category.ACTIVITY, times=_set("afternoon", "evening"), social=True,
        duration_minutes=30,
    ),
)

CRISIS_SUPPORT = LibraryEntry(
    "crisis_support", "crisis_support", "Talk to Someone Now",
    "Contact a crisis line or a trusted person right away.",
    Category.CONTENT, Priority.HIGH, duration_minutes=None,
    expected_outcome="Immediate human support",
)

FALLBACK_ITEMS = (
    LibraryEntry(
        "breathing_fallback", "breathing_exercise", "Take a Deep Breath",
        "Gentle breathing exercise to reduce stress",
        Category.EXERCISE, Priority.LOW, duration_minutes=5,
    ),
    LibraryEntry(
        "journal_fallback", "journal_entry", "Reflect on Your Day",
        "Help process experiences and emotions",
        Category.CONTENT, Priority.LOW, duration_minutes=10,
    ),
)

DEFAULT_TASKS = (
    LibraryEntry(
        "breathing_1", "breathing", "Deep Breathing",
        "Five minutes of slow breathing.",
        Category.EXERCISE, Priority.MEDIUM, duration_minutes=5,
    ),
    LibraryEntry(
        "journal_1", "journal", "Evening Reflection",
        "Ten minutes of reflective journaling.",
        Category.EXERCISE, Priority.MEDIUM, duration_minutes=10,
    ),
)

# Targeted interventions for common journal triggers.
TRIGGER_INTERVENTIONS = {
    "work": ("work_boundary", "Set a Work Boundary", "Pick one time today after which work notifications stay off."),
    "stress": ("stress_reset", "Stress Reset Break", "Take a five-minute break with slow breathing."),
    "deadline": ("deadline_breakdown", "Break the Deadline Down", "Split the next deadline into three small steps."),
    "pressure": ("pressure_valve", "Name the Pressure", "Write down where the pressure comes from and what you control."),
    "family": ("family_checkin", "Plan a Calm Family Check-in", "Choose a quiet moment and one topic to talk about."),
    "relationship": ("relationship_reflection", "Relationship Reflection", "Note one need you would like to express."),
    "money": ("money_snapshot", "Money Snapshot", "List this week's fixed costs to make worries concrete."),
    "health": ("health_step", "One Small Health Step", "Choose one small step for your body today."),
    "social": ("social_ease", "Ease Into Social Time", "Plan a short, low-pressure social moment."),
    "anxiety": ("anxiety_toolkit", "Open Your Anxiety Toolkit", "Try the grounding exercise you found most useful."),
    "conflict": ("conflict_cooldown", "Conflict Cool-down", "Give yourself twenty minutes before responding."),
    "change": ("change_anchor", "Find an Anchor", "Keep one familiar routine steady through the change."),
}
