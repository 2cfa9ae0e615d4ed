"""
AI generation package for WordTales: backend transport, fallbacks, and illustration prompts.
"""

from .backend import (
    GenerationBackend,
    GenerationError,
    HttpGenerationBackend,
    QuotaExceededError,
    UnknownTaskError,
)
from .client import DEFAULT_TITLES, GenerationClient, fallback_scene
from .handler import GenerationTaskHandler, HandlerResponse
from .prompting import (
    IllustrationPrompt,
    build_scene_image_prompt,
    build_vocab_image_prompt,
    scene_placeholder_image_url,
    vocab_placeholder_image_url,
)
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "DEFAULT_TITLES",
    "GenerationBackend",
    "GenerationClient",
    "GenerationError",
    "GenerationTaskHandler",
    "HandlerResponse",
    "HttpGenerationBackend",
    "IllustrationPrompt",
    "QuotaExceededError",
    "ReplicateImageGenerator",
    "UnknownTaskError",
    "build_scene_image_prompt",
    "build_vocab_image_prompt",
    "fallback_scene",
    "normalize_image_outputs",
    "scene_placeholder_image_url",
    "vocab_placeholder_image_url",
]
