"""Tests for ExerciseGenerator and the immediate-support rules."""

from __future__ import annotations

import pytest

from wellness.generators.base import LearnedPatterns
from wellness.generators.exercises import (
    ExerciseGenerator,
    needs_immediate_support,
    targeted_interventions,
)
from wellness.models import Category, Context, MoodSnapshot, Priority


class TestNeedsImmediateSupport:
    def test_low_mood(self) -> None:
        assert needs_immediate_support(Context(mood=MoodSnapshot(rating=4)), LearnedPatterns())

    def test_trigger(self) -> None:
        assert needs_immediate_support(Context(trigger="family"), LearnedPatterns())

    def test_high_stress(self) -> None:
        assert needs_immediate_support(Context(stress_level=8), LearnedPatterns())

    def test_calm(self, calm_context) -> None:
        assert not needs_immediate_support(calm_context, LearnedPatterns())


class TestTargetedInterventions:
    def test_known_triggers(self) -> None:
        items = targeted_interventions(["work", "Money"])
        assert [i.id for i in items] == ["work_boundary", "money_snapshot"]
        assert all(i.priority is Priority.HIGH for i in items)
        assert all(i.category is Category.EXERCISE for i in items)

    def test_unknown_trigger_skipped(self) -> None:
        assert targeted_interventions(["weather"]) == []


class TestGenerate:
    def test_calm_user_gets_no_interventions(self, calm_context) -> None:
        items = ExerciseGenerator().generate("u1", calm_context, LearnedPatterns(), 10)
        assert items
        assert all(i.type != "intervention" for i in items)
        assert items[0].id == "evening_reflection"

    def test_low_mood_with_trigger(self, low_mood_context) -> None:
        items = ExerciseGenerator().generate("u1", low_mood_context, LearnedPatterns(), 10)
        ids = [i.id for i in items]
        assert "work_boundary" in ids
        assert ids[:2] == ["grounding_54321", "box_breathing"]
        assert items[0].score == pytest.approx(0.9)
        assert items[0].priority is Priority.HIGH

    def test_time_of_day_filters_entries(self, calm_context) -> None:
        calm_context.time_of_day = "afternoon"
        ids = [i.id for i in ExerciseGenerator().generate("u1", calm_context, LearnedPatterns(), 10)]
        assert "evening_reflection" not in ids

    def test_respects_limit(self, low_mood_context) -> None:
        assert len(ExerciseGenerator().generate("u1", low_mood_context, LearnedPatterns(), 2)) == 2
