"""
Story scenes, their position in the story, and the append-only scene history.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

from wordtales.common import parse_json_text

MIN_CHOICES = 2
MAX_CHOICES = 3


class ScenePosition(str, Enum):
    INITIAL = "initial"
    NEXT = "next"
    FINAL = "final"


@dataclass(frozen=True)
class StoryScene:
    """
    One narrative beat of the story with its illustration and branching choices.
    """

    text: str
    image_url: str
    choices: tuple[str, ...] = ()
    position: ScenePosition = ScenePosition.NEXT
    is_fallback: bool = False

    @property
    def is_final(self) -> bool:
        return not self.choices

    def as_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "image_url": self.image_url,
            "choices": list(self.choices),
            "position": self.position.value,
            "is_fallback": self.is_fallback,
        }


@dataclass(frozen=True)
class SceneContent:
    """Validated narrative part of a backend scene response."""

    text: str
    choices: tuple[str, ...]
    image_url: str | None = None


class SceneHistory:
    """
    Ordered, append-only record of the scenes shown in one story session.
    """

    def __init__(self) -> None:
        self._scenes: list[StoryScene] = []

    def __len__(self) -> int:
        return len(self._scenes)

    def __iter__(self) -> Iterator[StoryScene]:
        return iter(self._scenes)

    def __getitem__(self, index: int) -> StoryScene:
        return self._scenes[index]

    @property
    def scenes(self) -> tuple[StoryScene, ...]:
        return tuple(self._scenes)

    @property
    def last(self) -> StoryScene | None:
        return self._scenes[-1] if self._scenes else None

    def append(self, scene: StoryScene) -> None:
        self._scenes.append(scene)

    def clear(self) -> None:
        self._scenes.clear()

    def story_so_far(self) -> str:
        """Concatenate every narrative in order, separated by single spaces."""
        return " ".join(scene.text for scene in self._scenes)


def parse_scene_payload(raw: Any, position: ScenePosition) -> SceneContent:
    """
    Validate a backend scene response for ``position``.

    The payload may be a mapping or the model's raw JSON text. Raises ``ValueError`` when the
    narrative is missing or the choice count breaks the contract for the position. Choices on a
    final scene are dropped.
    """
    if isinstance(raw, str):
        raw = parse_json_text(raw)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Scene response must be a JSON object, got {type(raw).__name__}.")

    text = str(raw.get("text") or "").strip()
    if not text:
        raise ValueError("Scene response is missing narrative text.")

    choices = _normalize_choices(raw.get("choices"))
    if position is ScenePosition.FINAL:
        choices = ()
    elif not MIN_CHOICES <= len(choices) <= MAX_CHOICES:
        raise ValueError(
            f"A {position.value} scene needs {MIN_CHOICES}-{MAX_CHOICES} choices, "
            f"received {len(choices)}."
        )

    image_url = raw.get("imageUrl") or raw.get("image_url")
    image_url = str(image_url).strip() if image_url else None
    return SceneContent(text=text, choices=choices, image_url=image_url or None)


def _normalize_choices(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ValueError(f"Scene choices must be a list of strings, got {value!r}.")
    return tuple(text for text in (str(item).strip() for item in value) if text)
