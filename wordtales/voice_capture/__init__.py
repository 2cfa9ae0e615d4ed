"""
Voice capture: the speech recognition capability and the choice debouncer.
"""

from .debouncer import VoiceCaptureDebouncer
from .recognition import NullSpeechRecognizer, RecognitionResult, SpeechRecognizer

__all__ = [
    "NullSpeechRecognizer",
    "RecognitionResult",
    "SpeechRecognizer",
    "VoiceCaptureDebouncer",
]
