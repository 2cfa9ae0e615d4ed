from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Mapping, Sequence

import pytest

from wordtales.ai_generation import GenerationError
from wordtales.ai_generation.backend import TASK_IMAGE, TASK_SCENE, TASK_TITLE, TASK_VOCABULARY
from wordtales.narration import Utterance, Voice
from wordtales.voice_capture import RecognitionResult

FINAL_TEXT = "Everyone went home happy and had a warm bowl of rice."


def scene_responder(payload: Mapping[str, Any]) -> dict[str, Any]:
    position = payload["position"]
    if position == "final":
        return {"text": FINAL_TEXT, "choices": []}
    return {"text": f"A {position} scene with a friendly dog.", "choices": ["Go left", "Go right"]}


def vocabulary_responder(payload: Mapping[str, Any]) -> list[dict[str, str]]:
    return [
        {"thai": "สุนัข", "english": "dog"},
        {"thai": "แมว", "english": "cat"},
        {"thai": "นก", "english": "bird"},
        {"thai": "ปลา", "english": "fish"},
        {"thai": "ช้าง", "english": "elephant"},
    ]


def image_responder(payload: Mapping[str, Any]) -> dict[str, str]:
    return {"imageUrl": f"https://images.test/{len(payload['prompt'])}.jpg"}


class ScriptedBackend:
    """Generation backend double that records every call."""

    def __init__(
        self,
        responders: Mapping[str, Any] | None = None,
        *,
        fail_tasks: Sequence[str] = (),
    ) -> None:
        self.responders: dict[str, Any] = {
            TASK_VOCABULARY: vocabulary_responder,
            TASK_IMAGE: image_responder,
            TASK_SCENE: scene_responder,
            TASK_TITLE: {"title": "The Friendly Dog"},
        }
        self.responders.update(responders or {})
        self.fail_tasks = set(fail_tasks)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.scene_gate: asyncio.Event | None = None

    def calls_for(self, task: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.calls if name == task]

    async def call(self, task: str, payload: Mapping[str, Any]) -> Any:
        self.calls.append((task, dict(payload)))
        if task == TASK_SCENE and self.scene_gate is not None:
            await self.scene_gate.wait()
        if task in self.fail_tasks:
            raise GenerationError(f"{task} failed", task=task)

        responder = self.responders[task]
        result = responder(payload) if callable(responder) else responder
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, Exception):
            raise result
        return result


class FakeSynthesizer:
    """
    Speech synthesizer double.

    ``mode`` is ``"auto"`` (start then end on the next loop iterations), ``"hang"`` (starts but
    never ends), ``"silent"`` (never starts), or ``"error"`` (fails without starting).
    """

    def __init__(self, mode: str = "auto", voices: Sequence[Voice] = ()) -> None:
        self.mode = mode
        self.voices = list(voices)
        self.utterances: list[Utterance] = []
        self.cancel_count = 0

    def get_voices(self) -> Sequence[Voice]:
        return self.voices

    def speak(self, utterance: Utterance, *, on_start, on_end, on_error) -> None:
        self.utterances.append(utterance)
        loop = asyncio.get_running_loop()
        if self.mode == "auto":
            loop.call_soon(on_start)
            loop.call_soon(on_end)
        elif self.mode == "hang":
            loop.call_soon(on_start)
        elif self.mode == "error":
            loop.call_soon(on_error, "synthesis-failed")

    def cancel(self) -> None:
        self.cancel_count += 1

    @property
    def spoken(self) -> list[str]:
        return [utterance.text for utterance in self.utterances]


class FakeRecognizer:
    """Speech recognizer double driven explicitly by the test."""

    def __init__(self) -> None:
        self.start_calls: list[dict[str, Any]] = []
        self.stop_calls = 0
        self._on_result: Callable[[Sequence[RecognitionResult]], None] | None = None
        self._on_error: Callable[[str], None] | None = None
        self._on_end: Callable[[], None] | None = None

    def start(self, *, language, continuous, interim_results, on_result, on_error, on_end) -> None:
        self.start_calls.append(
            {"language": language, "continuous": continuous, "interim_results": interim_results}
        )
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def stop(self) -> None:
        self.stop_calls += 1

    def emit_results(self, *results: RecognitionResult) -> None:
        assert self._on_result is not None
        self._on_result(list(results))

    def emit_error(self, error: str) -> None:
        assert self._on_error is not None
        self._on_error(error)

    def emit_end(self) -> None:
        assert self._on_end is not None
        self._on_end()


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()
