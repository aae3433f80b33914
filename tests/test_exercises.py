"""Tests for content/exercises.py and content/templates.py."""

import random

import pytest

from mindful.content.exercises import (
    BREATHING_EXERCISES,
    GROUNDING_STEPS,
    JOURNALING_PROMPTS,
    ExerciseDefinition,
    GroundingWalkthrough,
    Phase,
    catalog,
    get_exercise,
    pick_journaling_prompt,
    suggested_actions_for,
)
from mindful.content.templates import welcome_message


class TestExerciseDefinition:
    def test_builtin_exercises_valid(self):
        for key, ex in BREATHING_EXERCISES.items():
            assert ex.key == key
            assert ex.phases
            assert ex.total_cycles >= 1
            assert all(p.duration_ms > 0 for p in ex.phases)

    def test_four_seven_eight_timing(self):
        ex = get_exercise("four_seven_eight")
        assert [p.duration_ms for p in ex.phases] == [4000, 7000, 8000, 2000]
        assert ex.total_duration_ms == 21000 * 4

    def test_rejects_empty_phases(self):
        with pytest.raises(ValueError):
            ExerciseDefinition(name="bad", phases=(), total_cycles=1)

    def test_rejects_zero_cycles(self):
        with pytest.raises(ValueError):
            ExerciseDefinition(name="bad", phases=(Phase("in", 100, "in"),), total_cycles=0)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            ExerciseDefinition(name="bad", phases=(Phase("in", 0, "in"),), total_cycles=1)

    def test_list_phases_stored_as_tuple(self):
        ex = ExerciseDefinition(name="ok", phases=[Phase("in", 100, "in")], total_cycles=1)
        assert isinstance(ex.phases, tuple)

    def test_unknown_exercise(self):
        with pytest.raises(KeyError):
            get_exercise("hyperventilation")


class TestGrounding:
    def test_five_senses_in_order(self):
        assert [s.sense for s in GROUNDING_STEPS] == ["See", "Touch", "Hear", "Smell", "Taste"]

    def test_walkthrough_bounds(self):
        walk = GroundingWalkthrough()
        assert walk.back() == GROUNDING_STEPS[0]
        assert walk.completed == 0

        for _ in range(10):
            walk.advance()
        assert walk.is_complete
        assert walk.current is None
        assert walk.progress == 100.0

        assert walk.back() == GROUNDING_STEPS[-1]
        assert walk.progress == pytest.approx(80.0)


class TestJournaling:
    def test_prompt_from_bank(self):
        assert pick_journaling_prompt(random.Random(3)) in JOURNALING_PROMPTS
        assert len(JOURNALING_PROMPTS) == 8


class TestCatalog:
    def test_catalog_shape(self):
        data = catalog()
        assert {ex["key"] for ex in data["breathing"]} == set(BREATHING_EXERCISES)
        assert len(data["grounding"]) == 5
        assert data["journaling"] == list(JOURNALING_PROMPTS)

    def test_suggestions(self):
        assert suggested_actions_for("stressed")
        assert suggested_actions_for("happy") is None
        assert suggested_actions_for(None) is None


class TestWelcome:
    def test_with_and_without_name(self):
        assert welcome_message("Sam").startswith("Hello Sam!")
        assert welcome_message().startswith("Hello!")
        assert welcome_message("   ").startswith("Hello!")
