"""
Narration: voice selection, the speech synthesis capability, and the scene narration player.
"""

from .player import NarrationPlayer
from .synthesis import NullSpeechSynthesizer, SpeechSynthesizer, Utterance, Voice
from .voices import PREFERRED_VOICE_KEYWORDS, STORY_FOLLOW_UP_QUESTIONS, select_voice

__all__ = [
    "NarrationPlayer",
    "NullSpeechSynthesizer",
    "PREFERRED_VOICE_KEYWORDS",
    "STORY_FOLLOW_UP_QUESTIONS",
    "SpeechSynthesizer",
    "Utterance",
    "Voice",
    "select_voice",
]
