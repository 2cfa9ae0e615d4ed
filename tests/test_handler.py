from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from wordtales.ai_generation import (
    GenerationError,
    GenerationTaskHandler,
    HttpGenerationBackend,
    QuotaExceededError,
    UnknownTaskError,
    normalize_image_outputs,
)
from wordtales.ai_generation.backend import TASK_IMAGE, TASK_SCENE, TASK_TITLE, TASK_VOCABULARY
from wordtales.common import ChatResult


class RecordingCompletion:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return ChatResult(text=self.text, raw=None)


class RecordingImageGenerator:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def generate_image(self, prompt, *, aspect_ratio="1:1", **model_kwargs):
        self.calls.append((prompt, aspect_ratio))
        return "https://replicate.test/out.png"


def _handler(text: str = "", error: Exception | None = None):
    completion = RecordingCompletion(text, error)
    images = RecordingImageGenerator()
    handler = GenerationTaskHandler(
        api_key="test-key", model="test-model", completion_fn=completion, image_generator=images
    )
    return handler, completion, images


def test_scene_task_builds_messages_and_parses_json():
    handler, completion, _ = _handler('{"text": "A dog ran.", "choices": ["Left", "Right"]}')

    result = asyncio.run(
        handler.dispatch(TASK_SCENE, {"prompt": "Continue.", "storyStylePrompt": "Be kind."})
    )

    assert result == {"text": "A dog ran.", "choices": ["Left", "Right"]}
    call = completion.calls[0]
    assert call["model"] == "test-model"
    assert call["api_key"] == "test-key"
    assert call["response_format"] == {"type": "json_object"}
    assert [message["role"] for message in call["messages"]] == ["system", "user"]


def test_vocabulary_task_returns_word_dicts():
    handler, completion, _ = _handler(
        '```json\n[{"thai": "แมว", "english": "cat"}, {"thai": "นก", "english": "bird"}]\n```'
    )

    result = asyncio.run(handler.dispatch(TASK_VOCABULARY, {"category": "Animals & Nature"}))

    assert result == [{"thai": "แมว", "english": "cat"}, {"thai": "นก", "english": "bird"}]
    assert "Animals & Nature" in completion.calls[0]["messages"][0]["content"]


def test_image_and_title_tasks():
    handler, _, images = _handler('"The Brave Little Dog"')

    image = asyncio.run(
        handler.dispatch(TASK_IMAGE, {"prompt": "A dog.", "aspectRatio": "16:9"})
    )
    title = asyncio.run(handler.dispatch(TASK_TITLE, {"prompt": "Title please."}))

    assert image == {"imageUrl": "https://replicate.test/out.png"}
    assert images.calls[0][0].positive == "A dog."
    assert images.calls[0][1] == "16:9"
    assert title == {"title": "The Brave Little Dog"}


def test_dispatch_errors():
    handler, _, _ = _handler("not json")

    with pytest.raises(UnknownTaskError):
        asyncio.run(handler.dispatch("generateSong", {}))
    with pytest.raises(GenerationError):
        asyncio.run(handler.dispatch(TASK_SCENE, {"prompt": "Continue."}))
    with pytest.raises(GenerationError):
        asyncio.run(handler.dispatch(TASK_IMAGE, {}))


def test_handle_maps_failures_to_status_codes():
    ok, _, _ = _handler('{"text": "A dog ran.", "choices": ["Left", "Right"]}')
    quota, _, _ = _handler(error=RuntimeError("You exceeded your current quota"))
    broken, _, _ = _handler(error=RuntimeError("connection reset"))

    async def scenario():
        return [
            await ok.handle(json.dumps({"task": TASK_SCENE, "payload": {"prompt": "Go."}})),
            await ok.handle("{not json"),
            await ok.handle({"task": "generateSong", "payload": {}}),
            await ok.handle({"task": TASK_SCENE, "payload": ["wrong"]}),
            await quota.handle({"task": TASK_TITLE, "payload": {"prompt": "Title."}}),
            await broken.handle({"task": TASK_TITLE, "payload": {"prompt": "Title."}}),
        ]

    responses = asyncio.run(scenario())

    assert [response.status_code for response in responses] == [200, 400, 400, 400, 429, 500]
    assert json.loads(responses[0].json())["choices"] == ["Left", "Right"]
    assert responses[4].body["error"] == "quota_exceeded"


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _http_backend(client: httpx.AsyncClient) -> HttpGenerationBackend:
    return HttpGenerationBackend(endpoint="https://backend.test/generate", client=client)


def test_http_backend_posts_task_and_payload():
    seen: list[dict] = []

    def respond(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"title": "Moon Picnic"})

    async def scenario():
        async with _mock_client(respond) as client:
            return await _http_backend(client).call(TASK_TITLE, {"prompt": "Title."})

    assert asyncio.run(scenario()) == {"title": "Moon Picnic"}
    assert seen == [{"task": TASK_TITLE, "payload": {"prompt": "Title."}}]


@pytest.mark.parametrize(
    ("response", "error_type"),
    [
        (httpx.Response(429, json={"error": "slow down"}), QuotaExceededError),
        (httpx.Response(500, json={"message": "RESOURCE_EXHAUSTED"}), QuotaExceededError),
        (httpx.Response(500, json={"error": "An internal server error occurred."}), GenerationError),
        (httpx.Response(200, text="<html>oops</html>"), GenerationError),
    ],
)
def test_http_backend_raises_on_failures(response, error_type):
    async def scenario():
        async with _mock_client(lambda request: response) as client:
            await _http_backend(client).call(TASK_SCENE, {"prompt": "Go."})

    with pytest.raises(error_type):
        asyncio.run(scenario())


def test_http_backend_requires_endpoint(monkeypatch):
    monkeypatch.delenv("WORDTALES_BACKEND_URL", raising=False)

    with pytest.raises(ValueError):
        HttpGenerationBackend()


def test_normalize_image_outputs():
    assert normalize_image_outputs(None) == []
    assert normalize_image_outputs("https://a.test/1.png") == ["https://a.test/1.png"]
    assert normalize_image_outputs(["https://a.test/1.png", "https://a.test/2.png"]) == [
        "https://a.test/1.png",
        "https://a.test/2.png",
    ]
    assert normalize_image_outputs([SimpleNamespace(url="https://a.test/3.png")]) == [
        "https://a.test/3.png"
    ]
