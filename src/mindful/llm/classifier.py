"""
EmotionClassifier: coarse emotional tag for a user message.

Keyword lookup with substring matching. Categories are checked in a
fixed order and stress is checked first, so a message that mentions both
stress and something positive is still tagged as stressed.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

STRESSED = "stressed"
HAPPY = "happy"
SAD = "sad"
NEUTRAL = "neutral"
CALM = "calm"

STRESS_WORDS = ("anxious", "worried", "stressed", "overwhelmed", "panic")
HAPPY_WORDS = ("happy", "excited", "great", "wonderful", "amazing")
SAD_WORDS = ("sad", "depressed", "down", "upset", "cry")


class EmotionClassifier:
    """
    Maps raw text to one of stressed / happy / sad / neutral.

    Matching is substring-based on the lower-cased text ("crying" hits
    "cry", "downtown" hits "down"). Empty text is neutral.
    """

    def __init__(
        self,
        stress_words: Sequence[str] = STRESS_WORDS,
        happy_words: Sequence[str] = HAPPY_WORDS,
        sad_words: Sequence[str] = SAD_WORDS,
    ):
        self._ordered: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
            (STRESSED, tuple(w.lower() for w in stress_words)),
            (HAPPY, tuple(w.lower() for w in happy_words)),
            (SAD, tuple(w.lower() for w in sad_words)),
        )

    def classify(self, text: Optional[str]) -> str:
        if not text:
            return NEUTRAL
        lower = text.lower()
        for tag, words in self._ordered:
            if any(w and w in lower for w in words):
                return tag
        return NEUTRAL

    def matched_words(self, text: Optional[str]) -> Tuple[str, ...]:
        """Every keyword (any category) found in the text, for display/debugging."""
        if not text:
            return ()
        lower = text.lower()
        return tuple(w for _, words in self._ordered for w in words if w and w in lower)


_default = EmotionClassifier()


def classify(text: Optional[str]) -> str:
    """Classify with the default word sets."""
    return _default.classify(text)
