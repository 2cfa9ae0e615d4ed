"""
Narrator voice selection and follow-up question pools.
"""

from __future__ import annotations

from typing import Sequence

from wordtales.common.options import Language

from .synthesis import Voice

PREFERRED_VOICE_KEYWORDS: dict[Language, tuple[str, ...]] = {
    Language.TH: ("kanya", "narisa", "google"),
    Language.EN: ("google", "samantha", "victoria", "daniel", "zira", "david"),
}

STORY_FOLLOW_UP_QUESTIONS: dict[Language, tuple[str, ...]] = {
    Language.TH: (
        "แล้วต่อไปจะเกิดอะไรขึ้นนะ?",
        "หนูคิดว่าควรทำอย่างไรดี?",
        "เราจะไปทางไหนกันดีนะ?",
        "หนูอยากให้เรื่องเป็นอย่างไรต่อ?",
    ),
    Language.EN: (
        "What do you think should happen next?",
        "What should we do now?",
        "Which way should we go?",
        "How would you like the story to continue?",
    ),
}

_KEYWORD_BONUS = 2
_LOCAL_BONUS = 1


def score_voice(voice: Voice, keywords: Sequence[str]) -> int:
    name = voice.name.lower()
    score = _KEYWORD_BONUS if any(keyword in name for keyword in keywords) else 0
    if voice.local_service:
        score += _LOCAL_BONUS
    return score


def select_voice(voices: Sequence[Voice], language: Language) -> Voice | None:
    """
    Pick the best voice for ``language``: curated names first, on-device voices preferred.

    Returns ``None`` when no voice matches the language, leaving the choice to the platform.
    """
    candidates = [voice for voice in voices if voice.lang.lower().startswith(language.prefix)]
    if not candidates:
        return None

    keywords = PREFERRED_VOICE_KEYWORDS.get(language, ())
    return max(candidates, key=lambda voice: score_voice(voice, keywords))
