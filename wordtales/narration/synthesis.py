"""
Speech synthesis capability consumed by the narration player.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence


@dataclass(frozen=True)
class Voice:
    """A synthesis voice offered by the platform."""

    name: str
    lang: str
    local_service: bool = False


@dataclass(frozen=True)
class Utterance:
    """One request to speak ``text`` aloud."""

    text: str
    lang: str
    voice: Voice | None = None
    rate: float = 0.9
    pitch: float = 1.1


StartCallback = Callable[[], None]
EndCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


class SpeechSynthesizer(Protocol):
    """
    Platform text-to-speech engine.

    Callbacks are invoked on the event loop thread. ``on_end`` or ``on_error`` fires once per
    utterance unless the utterance is cancelled.
    """

    def get_voices(self) -> Sequence[Voice]:
        ...

    def speak(
        self,
        utterance: Utterance,
        *,
        on_start: StartCallback,
        on_end: EndCallback,
        on_error: ErrorCallback,
    ) -> None:
        ...

    def cancel(self) -> None:
        ...


class NullSpeechSynthesizer:
    """Stand-in used when the platform has no speech synthesis; every utterance ends at once."""

    def get_voices(self) -> Sequence[Voice]:
        return ()

    def speak(
        self,
        utterance: Utterance,
        *,
        on_start: StartCallback,
        on_end: EndCallback,
        on_error: ErrorCallback,
    ) -> None:
        on_end()

    def cancel(self) -> None:
        return None
