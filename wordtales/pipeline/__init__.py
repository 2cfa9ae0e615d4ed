"""
End-to-end orchestration for WordTales vocabulary rounds and interactive stories.
"""

from .controller import ControllerState, SceneProgressionController
from .pipeline import GameState, StoryRecord, WordTalesOrchestrator
from .session import StorySession, VocabularyPreloader

__all__ = [
    "ControllerState",
    "GameState",
    "SceneProgressionController",
    "StoryRecord",
    "StorySession",
    "VocabularyPreloader",
    "WordTalesOrchestrator",
]
