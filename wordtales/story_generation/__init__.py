"""
Story generation building blocks: vocabulary, scenes, and scene prompts.
"""

from .prompting import (
    NO_PREFERENCE_CHOICE,
    ScenePrompt,
    build_scene_prompt,
    build_title_prompt,
    build_vocabulary_prompt,
)
from .scenes import (
    SceneContent,
    SceneHistory,
    ScenePosition,
    StoryScene,
    parse_scene_payload,
)
from .vocabulary import (
    ERROR_WORD,
    VOCABULARY,
    PreloadedWord,
    Word,
    WordCategory,
    fallback_words,
    toggle_word,
)

__all__ = [
    "ERROR_WORD",
    "NO_PREFERENCE_CHOICE",
    "VOCABULARY",
    "PreloadedWord",
    "SceneContent",
    "SceneHistory",
    "ScenePosition",
    "ScenePrompt",
    "StoryScene",
    "Word",
    "WordCategory",
    "build_scene_prompt",
    "build_title_prompt",
    "build_vocabulary_prompt",
    "fallback_words",
    "parse_scene_payload",
    "toggle_word",
]
