"""
Prompt and placeholder-image utilities for WordTales illustrations.
"""

from __future__ import annotations

import re
import zlib
from dataclasses import dataclass
from urllib.parse import quote

from wordtales.common.options import StoryTone

NEGATIVE_PROMPT = (
    "scary, violent, dark, realistic photo, harsh shadows, cluttered background, "
    "watermark, text, letters, logo"
)

VOCAB_IMAGE_ASPECT_RATIO = "1:1"
SCENE_IMAGE_ASPECT_RATIO = "16:9"

PLACEHOLDER_HOST = "https://loremflickr.com"
ERROR_SCENE_IMAGE_URL = f"{PLACEHOLDER_HOST}/1280/720/error,sad,robot"

_MAX_SUBJECT_CHARS = 400
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class IllustrationPrompt:
    """Container for the positive and negative prompts passed to the image model."""

    positive: str
    negative: str = NEGATIVE_PROMPT


def build_vocab_image_prompt(word: str) -> IllustrationPrompt:
    """
    Prompt for the picture on a single vocabulary card.
    """
    if not word or not word.strip():
        raise ValueError("word must be a non-empty string.")

    return IllustrationPrompt(
        positive=(
            f'A simple, cute, and colorful illustration of a "{word.strip()}" for a children\'s '
            "book. The style should be minimalist, with a plain white background, clear "
            "outlines, and friendly features. The object should be the main focus."
        )
    )


def build_scene_image_prompt(narrative: str, tone: StoryTone | None = None) -> IllustrationPrompt:
    """
    Prompt for a story-scene illustration, using the narrative text as the subject.
    """
    subject = _WHITESPACE.sub(" ", narrative or "").strip()
    if not subject:
        raise ValueError("narrative must be a non-empty string.")

    mood = f" The mood should feel {tone.value.lower()}." if tone is not None else ""
    return IllustrationPrompt(
        positive=(
            "A warm, colorful children's picture-book illustration, soft watercolor style, "
            "friendly rounded characters, gentle lighting, no text in the image."
            f"{mood} Scene: {subject[:_MAX_SUBJECT_CHARS]}"
        )
    )


def vocab_placeholder_image_url(word: str) -> str:
    """
    Deterministic stand-in picture for a vocabulary card.
    """
    keyword = quote(word.strip())
    lock = quote(_WHITESPACE.sub("", word))
    return f"{PLACEHOLDER_HOST}/400/300/{keyword},illustration,simple?lock={lock}"


def scene_placeholder_image_url(subject: str) -> str:
    """
    Deterministic stand-in scene illustration; the same subject always yields the same URL.
    """
    lock = zlib.crc32(_WHITESPACE.sub(" ", subject).strip().encode("utf-8"))
    return f"{PLACEHOLDER_HOST}/1280/720/storybook,illustration?lock={lock}"
