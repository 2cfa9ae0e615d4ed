"""
WordTales package exposing vocabulary rounds, interactive story generation, and narration.
"""

from .ai_generation import GenerationClient, GenerationTaskHandler, HttpGenerationBackend
from .common import WordTalesConfig
from .narration import NarrationPlayer
from .pipeline import (
    ControllerState,
    GameState,
    SceneProgressionController,
    StoryRecord,
    StorySession,
    WordTalesOrchestrator,
)
from .voice_capture import VoiceCaptureDebouncer

__all__ = [
    "ControllerState",
    "GameState",
    "GenerationClient",
    "GenerationTaskHandler",
    "HttpGenerationBackend",
    "NarrationPlayer",
    "SceneProgressionController",
    "StoryRecord",
    "StorySession",
    "VoiceCaptureDebouncer",
    "WordTalesConfig",
    "WordTalesOrchestrator",
]
