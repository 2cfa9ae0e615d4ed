"""
Speech recognition capability consumed by voice capture.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence


@dataclass(frozen=True)
class RecognitionResult:
    """One recognized segment; interim segments may still change."""

    transcript: str
    is_final: bool = False


ResultCallback = Callable[[Sequence[RecognitionResult]], None]
ErrorCallback = Callable[[str], None]
EndCallback = Callable[[], None]


class SpeechRecognizer(Protocol):
    """
    Platform speech-to-text engine.

    ``on_result`` receives every segment recognized so far in the current session. ``on_end``
    fires once when the session stops, including after ``stop()`` or an error. Callbacks are
    invoked on the event loop thread.
    """

    def start(
        self,
        *,
        language: str,
        continuous: bool,
        interim_results: bool,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        ...

    def stop(self) -> None:
        ...


class NullSpeechRecognizer:
    """Stand-in used when the platform has no speech recognition; every session fails at once."""

    def start(
        self,
        *,
        language: str,
        continuous: bool,
        interim_results: bool,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        on_error("not-supported")
        on_end()

    def stop(self) -> None:
        return None
