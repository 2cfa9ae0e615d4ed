"""
Runtime configuration for a WordTales session.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .options import AIPersonality, Language, StoryTone, coerce_enum

ENV_PREFIX = "WORDTALES_"

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}

# Size of the smallest built-in vocabulary bank; a fallback round must still fill a story.
MAX_WORDS_PER_ROUND = 8


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0

    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Expected a boolean-compatible value, got {value!r}")


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None

    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class WordTalesConfig:
    """
    Tunable settings for vocabulary rounds, story generation, narration, and voice capture.

    Parameters
    ----------
    language:
        Language used for the story text, narration, and speech recognition.
    story_tone:
        Overall style the narrative should follow.
    personality:
        Narrator personality that colours how scenes are told.
    image_generation_enabled:
        When ``False`` every illustration is a deterministic placeholder image.
    target_scene_count:
        Number of scenes in a complete story, title excluded.
    words_per_round:
        Vocabulary words the child collects before a story starts. At most ``MAX_WORDS_PER_ROUND``.
    vocabulary_size:
        Number of words requested from the backend for a vocabulary round.
    debounce_seconds:
        Quiet period between a finalized voice transcript and story generation.
    reveal_interval_seconds:
        Delay between characters during the progressive text reveal.
    speech_start_timeout_seconds:
        Failsafe after which a speech request that never started is abandoned.
    speech_rate, speech_pitch:
        Storyteller pace and pitch passed to the speech synthesizer.
    backend_url:
        Endpoint of the HTTP generation backend. ``None`` runs generation in-process.
    """

    language: Language = Language.TH
    story_tone: StoryTone = StoryTone.ADVENTURE
    personality: AIPersonality = AIPersonality.WARM
    image_generation_enabled: bool = True
    target_scene_count: int = 5
    words_per_round: int = 4
    vocabulary_size: int = 10
    debounce_seconds: float = 1.0
    reveal_interval_seconds: float = 0.09
    speech_start_timeout_seconds: float = 3.0
    speech_rate: float = 0.9
    speech_pitch: float = 1.1
    backend_url: str | None = None

    def __post_init__(self) -> None:
        if self.target_scene_count < 2:
            raise ValueError("target_scene_count must be at least 2 (an opening and a final scene).")
        if not 1 <= self.words_per_round <= MAX_WORDS_PER_ROUND:
            raise ValueError(f"words_per_round must be between 1 and {MAX_WORDS_PER_ROUND}.")
        if self.vocabulary_size < self.words_per_round:
            raise ValueError(
                f"vocabulary_size ({self.vocabulary_size}) must be at least "
                f"words_per_round ({self.words_per_round})."
            )
        for name in ("debounce_seconds", "reveal_interval_seconds", "speech_start_timeout_seconds"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WordTalesConfig":
        """
        Build a config from loosely typed values such as those read from YAML or the environment.
        """
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            values[key] = _coerce_field(key, value)
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path | str) -> "WordTalesConfig":
        """
        Load configuration from a YAML or JSON file.
        """
        config_path = Path(path)
        text = config_path.read_text(encoding="utf-8")
        suffix = config_path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        elif suffix == ".json":
            data = json.loads(text)
        else:
            raise ValueError("Unsupported config file format. Use YAML or JSON.")

        if not isinstance(data, Mapping):
            raise ValueError("Config file must deserialize to a mapping.")
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WordTalesConfig":
        """
        Read ``WORDTALES_*`` variables (e.g. ``WORDTALES_LANGUAGE=en-US``).
        """
        source = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field in fields(cls):
            raw = source.get(f"{ENV_PREFIX}{field.name.upper()}")
            if raw is not None and raw.strip():
                values[field.name] = raw
        return cls.from_mapping(values)

    def with_overrides(self, **overrides: Any) -> "WordTalesConfig":
        """Return a copy with the non-``None`` overrides applied."""
        values = {
            key: _coerce_field(key, value) for key, value in overrides.items() if value is not None
        }
        return replace(self, **values)


def _coerce_field(name: str, value: Any) -> Any:
    if name == "language":
        return coerce_enum(Language, value)
    if name == "story_tone":
        return coerce_enum(StoryTone, value)
    if name == "personality":
        return coerce_enum(AIPersonality, value)
    if name == "image_generation_enabled":
        return _coerce_bool(value)
    if name in {"target_scene_count", "words_per_round", "vocabulary_size"}:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Expected an integer for {name}, got {value!r}") from exc
    if name == "backend_url":
        return _coerce_optional_str(value)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected a number for {name}, got {value!r}") from exc
