"""
Guided self-help exercises: breathing patterns, 5-4-3-2-1 grounding and
journaling prompts.

Breathing exercises are ExerciseDefinitions driven by the ExerciseTimer.
Grounding is user-paced, so it is a simple step walkthrough instead.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Phase:
    """One timed step of a breathing cycle."""
    label: str
    duration_ms: int
    instruction: str

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "duration_ms": self.duration_ms,
            "instruction": self.instruction,
        }


@dataclass(frozen=True)
class ExerciseDefinition:
    """A multi-phase, multi-cycle timed exercise."""
    name: str
    phases: Tuple[Phase, ...]
    total_cycles: int
    key: str = ""
    description: str = ""

    def __post_init__(self):
        # Accept any sequence but store a tuple so the definition stays immutable
        object.__setattr__(self, "phases", tuple(self.phases))
        if not self.phases:
            raise ValueError(f"Exercise '{self.name}' needs at least one phase")
        if self.total_cycles < 1:
            raise ValueError(f"Exercise '{self.name}' needs total_cycles >= 1, got {self.total_cycles}")
        for phase in self.phases:
            if phase.duration_ms <= 0:
                raise ValueError(
                    f"Phase '{phase.label}' of '{self.name}' needs a positive duration, "
                    f"got {phase.duration_ms}"
                )

    @property
    def cycle_duration_ms(self) -> int:
        return sum(p.duration_ms for p in self.phases)

    @property
    def total_duration_ms(self) -> int:
        return self.cycle_duration_ms * self.total_cycles

    def to_dict(self) -> Dict:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "total_cycles": self.total_cycles,
            "total_duration_ms": self.total_duration_ms,
            "phases": [p.to_dict() for p in self.phases],
        }


BREATHING_EXERCISES: Dict[str, ExerciseDefinition] = {
    "four_seven_eight": ExerciseDefinition(
        key="four_seven_eight",
        name="4-7-8 Breathing",
        description="Inhale for 4, hold for 7, exhale for 8",
        total_cycles=4,
        phases=(
            Phase("Inhale", 4000, "Breathe in slowly through your nose"),
            Phase("Hold", 7000, "Hold your breath gently"),
            Phase("Exhale", 8000, "Exhale slowly through your mouth"),
            Phase("Rest", 2000, "Rest and prepare for the next cycle"),
        ),
    ),
    "box": ExerciseDefinition(
        key="box",
        name="Box Breathing",
        description="Equal timing: inhale, hold, exhale, hold",
        total_cycles=4,
        phases=(
            Phase("Inhale", 4000, "Breathe in slowly"),
            Phase("Hold", 4000, "Hold your breath"),
            Phase("Exhale", 4000, "Breathe out slowly"),
            Phase("Hold", 4000, "Hold empty"),
        ),
    ),
}


def get_exercise(key: str) -> ExerciseDefinition:
    """Look up a breathing exercise. Raises KeyError for unknown keys."""
    try:
        return BREATHING_EXERCISES[key]
    except KeyError:
        raise KeyError(f"Unknown exercise '{key}'") from None


# =============================================================================
# GROUNDING
# =============================================================================

@dataclass(frozen=True)
class GroundingStep:
    sense: str
    instruction: str


GROUNDING_STEPS: Tuple[GroundingStep, ...] = (
    GroundingStep("See", "Name 5 things you can see around you"),
    GroundingStep("Touch", "Name 4 things you can touch"),
    GroundingStep("Hear", "Name 3 things you can hear"),
    GroundingStep("Smell", "Name 2 things you can smell"),
    GroundingStep("Taste", "Name 1 thing you can taste"),
)


@dataclass
class GroundingWalkthrough:
    """User-paced walk through the 5-4-3-2-1 senses, bounded at both ends."""
    steps: Tuple[GroundingStep, ...] = GROUNDING_STEPS
    completed: int = 0

    @property
    def current(self) -> Optional[GroundingStep]:
        if self.completed >= len(self.steps):
            return None
        return self.steps[self.completed]

    @property
    def is_complete(self) -> bool:
        return self.completed >= len(self.steps)

    @property
    def progress(self) -> float:
        return 100.0 * self.completed / len(self.steps)

    def advance(self) -> Optional[GroundingStep]:
        self.completed = min(len(self.steps), self.completed + 1)
        return self.current

    def back(self) -> Optional[GroundingStep]:
        self.completed = max(0, self.completed - 1)
        return self.current


# =============================================================================
# JOURNALING
# =============================================================================

JOURNALING_PROMPTS: Tuple[str, ...] = (
    "What am I feeling right now, and what might be causing these feelings?",
    "What thoughts are going through my mind? Are they helpful or unhelpful?",
    "What evidence do I have for and against this thought?",
    "How would I advise a friend who was thinking this way?",
    "What's one thing I'm grateful for today?",
    "What's a small step I can take to improve my situation?",
    "What did I learn about myself today?",
    "How did I show kindness to myself or others today?",
)


def pick_journaling_prompt(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(JOURNALING_PROMPTS)


# =============================================================================
# SUGGESTIONS
# =============================================================================

# Exercise names offered alongside a reply, keyed by the user's emotion
SUGGESTED_ACTIONS: Dict[str, List[str]] = {
    "stressed": [BREATHING_EXERCISES["box"].name, "5-4-3-2-1 Grounding"],
    "sad": ["Guided Journaling", "5-4-3-2-1 Grounding"],
}


def suggested_actions_for(emotion: Optional[str]) -> Optional[List[str]]:
    actions = SUGGESTED_ACTIONS.get(emotion or "")
    return list(actions) if actions else None


def catalog() -> Dict:
    """Serializable view of every exercise, for the API."""
    return {
        "breathing": [ex.to_dict() for ex in BREATHING_EXERCISES.values()],
        "grounding": [{"sense": s.sense, "instruction": s.instruction} for s in GROUNDING_STEPS],
        "journaling": list(JOURNALING_PROMPTS),
    }
