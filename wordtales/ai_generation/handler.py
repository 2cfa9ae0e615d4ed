"""
Server side of the generation protocol, backed by LiteLLM for text and Replicate for images.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

from litellm.exceptions import RateLimitError

from wordtales.common import ChatResult, CompletionCallable, call_chat_completion, parse_json_text
from wordtales.story_generation import Word, build_vocabulary_prompt
from wordtales.story_generation.prompting import DEFAULT_VOCABULARY_SIZE

from .backend import (
    TASK_IMAGE,
    TASK_SCENE,
    TASK_TITLE,
    TASK_VOCABULARY,
    GenerationError,
    QuotaExceededError,
    UnknownTaskError,
    is_quota_message,
)
from .prompting import IllustrationPrompt
from .replicate_service import ReplicateImageGenerator

logger = logging.getLogger(__name__)

TaskFunction = Callable[[Mapping[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class HandlerResponse:
    """HTTP-shaped result of handling one request body."""

    status_code: int
    body: Any = field(default_factory=dict)

    def json(self) -> str:
        return json.dumps(self.body, ensure_ascii=False)


class GenerationTaskHandler:
    """
    Dispatches ``{task, payload}`` requests to the text and image models.

    The handler also satisfies the ``GenerationBackend`` protocol, so a client can use it
    in-process instead of going through HTTP.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
        image_generator: ReplicateImageGenerator | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("WORDTALES_STORY_MODEL")
            or os.getenv("LITELLM_STORY_MODEL")
            or os.getenv("LITELLM_MODEL")
            or "gpt-4.1-mini"
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._image_generator = image_generator
        self._tasks: dict[str, TaskFunction] = {
            TASK_VOCABULARY: self._generate_vocabulary,
            TASK_IMAGE: self._generate_image,
            TASK_SCENE: self._generate_scene,
            TASK_TITLE: self._generate_title,
        }

    @property
    def model(self) -> str:
        """Return the text model identifier in use."""
        return self._model

    async def call(self, task: str, payload: Mapping[str, Any]) -> Any:
        return await self.dispatch(task, payload)

    async def dispatch(self, task: str, payload: Mapping[str, Any]) -> Any:
        """
        Run a single task and return its JSON-serialisable result.
        """
        task_fn = self._tasks.get(task)
        if task_fn is None:
            raise UnknownTaskError(f"Invalid task: {task}", task=task, status_code=400)

        try:
            return await task_fn(payload)
        except RateLimitError as exc:
            raise QuotaExceededError(str(exc), task=task, status_code=429) from exc
        except GenerationError:
            raise
        except Exception as exc:
            if is_quota_message(str(exc)):
                raise QuotaExceededError(str(exc), task=task, status_code=429) from exc
            raise GenerationError(f"Task '{task}' failed: {exc}", task=task) from exc

    async def handle(self, body: str | bytes | Mapping[str, Any]) -> HandlerResponse:
        """
        Handle a raw request body the way the HTTP endpoint does.
        """
        try:
            request = json.loads(body) if isinstance(body, (str, bytes)) else dict(body)
            task = request["task"]
            payload = request.get("payload") or {}
        except (ValueError, KeyError, TypeError):
            return HandlerResponse(400, {"error": "Request body must be JSON with a 'task' field."})

        if not isinstance(payload, Mapping):
            return HandlerResponse(400, {"error": "'payload' must be a JSON object."})

        try:
            result = await self.dispatch(str(task), payload)
        except UnknownTaskError as exc:
            return HandlerResponse(400, {"error": str(exc)})
        except QuotaExceededError:
            logger.warning("Generation quota exhausted while handling task %r.", task)
            return HandlerResponse(
                429, {"error": "quota_exceeded", "message": "Generation quota exhausted."}
            )
        except GenerationError:
            logger.exception("Error in generation handler task %r.", task)
            return HandlerResponse(500, {"error": "An internal server error occurred."})

        return HandlerResponse(200, result)

    async def _complete(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        result: ChatResult = await self._completion_fn(
            model=self._model,
            messages=messages,
            api_key=self._api_key,
            **kwargs,
        )
        if not result.text:
            raise GenerationError("LLM response did not contain any text content.")
        return result.text

    async def _generate_vocabulary(self, payload: Mapping[str, Any]) -> list[dict[str, str]]:
        category = str(payload.get("category") or "").strip()
        if not category:
            raise GenerationError("Vocabulary task requires a category.", task=TASK_VOCABULARY)
        count = int(payload.get("count") or DEFAULT_VOCABULARY_SIZE)

        text = await self._complete(
            [{"role": "user", "content": build_vocabulary_prompt(category, count=count)}],
            temperature=0.8,
        )
        parsed = parse_json_text(text)
        if isinstance(parsed, Mapping):
            parsed = parsed.get("words", parsed.get("vocabulary"))
        if not isinstance(parsed, list):
            raise GenerationError("Vocabulary response must be a JSON array.", task=TASK_VOCABULARY)
        return [Word.from_mapping(item).as_dict() for item in parsed]

    async def _generate_image(self, payload: Mapping[str, Any]) -> dict[str, str]:
        prompt = str(payload.get("prompt") or "").strip()
        if not prompt:
            raise GenerationError("Image task requires a prompt.", task=TASK_IMAGE)
        if self._image_generator is None:
            self._image_generator = ReplicateImageGenerator()

        negative = payload.get("negativePrompt")
        illustration = (
            IllustrationPrompt(positive=prompt, negative=str(negative))
            if negative
            else IllustrationPrompt(positive=prompt)
        )
        image_url = await self._image_generator.generate_image(
            illustration,
            aspect_ratio=str(payload.get("aspectRatio") or "1:1"),
        )
        return {"imageUrl": image_url}

    async def _generate_scene(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        prompt = str(payload.get("prompt") or "").strip()
        if not prompt:
            raise GenerationError("Scene task requires a prompt.", task=TASK_SCENE)

        messages: list[dict[str, Any]] = []
        style = payload.get("storyStylePrompt")
        if style:
            messages.append({"role": "system", "content": str(style)})
        messages.append({"role": "user", "content": prompt})

        text = await self._complete(
            messages,
            temperature=0.8,
            max_tokens=600,
            response_format={"type": "json_object"},
        )
        parsed = parse_json_text(text)
        if not isinstance(parsed, Mapping):
            raise GenerationError("Scene response must be a JSON object.", task=TASK_SCENE)
        return {"text": parsed.get("text", ""), "choices": parsed.get("choices", [])}

    async def _generate_title(self, payload: Mapping[str, Any]) -> dict[str, str]:
        prompt = str(payload.get("prompt") or "").strip()
        if not prompt:
            raise GenerationError("Title task requires a prompt.", task=TASK_TITLE)

        text = await self._complete([{"role": "user", "content": prompt}], temperature=0.7)
        return {"title": text.replace('"', "").strip()}
