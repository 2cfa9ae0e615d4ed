"""
Common utilities shared across WordTales modules.
"""

from .config import MAX_WORDS_PER_ROUND, WordTalesConfig
from .llm import ChatResult, CompletionCallable, call_chat_completion, parse_json_text
from .options import AIPersonality, Language, StoryTone, coerce_enum

__all__ = [
    "MAX_WORDS_PER_ROUND",
    "AIPersonality",
    "ChatResult",
    "CompletionCallable",
    "Language",
    "StoryTone",
    "WordTalesConfig",
    "call_chat_completion",
    "coerce_enum",
    "parse_json_text",
]
