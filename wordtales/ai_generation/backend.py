"""
Transport to the generation backend: one JSON ``{task, payload}`` request per operation.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Protocol

import httpx

TASK_VOCABULARY = "generateVocabularyList"
TASK_IMAGE = "generateImage"
TASK_SCENE = "generateStoryScene"
TASK_TITLE = "generateStoryTitle"

TASKS = (TASK_VOCABULARY, TASK_IMAGE, TASK_SCENE, TASK_TITLE)

DEFAULT_TIMEOUT_SECONDS = 120.0

_QUOTA_MARKERS = ("quota", "resource_exhausted", "rate limit")


class GenerationError(RuntimeError):
    """Raised when the backend cannot produce a result for a task."""

    def __init__(self, message: str, *, task: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.task = task
        self.status_code = status_code


class QuotaExceededError(GenerationError):
    """Raised when the backend reports that its generation quota is used up."""


class UnknownTaskError(GenerationError):
    """Raised for task names outside the generation protocol."""


class GenerationBackend(Protocol):
    async def call(self, task: str, payload: Mapping[str, Any]) -> Any:
        """Run ``task`` and return the decoded JSON result, raising ``GenerationError``."""
        ...


def is_quota_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


class HttpGenerationBackend:
    """
    Posts generation tasks to a single HTTP endpoint.

    Parameters
    ----------
    endpoint:
        URL accepting ``POST {"task": ..., "payload": ...}``. Falls back to the
        ``WORDTALES_BACKEND_URL`` environment variable.
    timeout:
        Per-request timeout in seconds.
    client:
        Optional pre-configured :class:`httpx.AsyncClient`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        endpoint: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint or os.getenv("WORDTALES_BACKEND_URL")
        if not self._endpoint:
            raise ValueError(
                "Generation backend endpoint is required. "
                "Set WORDTALES_BACKEND_URL or pass endpoint."
            )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def call(self, task: str, payload: Mapping[str, Any]) -> Any:
        try:
            response = await self._client.post(
                self._endpoint,
                json={"task": task, "payload": dict(payload)},
            )
        except httpx.HTTPError as exc:
            raise GenerationError(f"Request for task '{task}' failed: {exc}", task=task) from exc

        if not response.is_success:
            message = _error_message(response)
            if response.status_code == 429 or is_quota_message(message):
                raise QuotaExceededError(
                    f"Backend quota exhausted for task '{task}': {message}",
                    task=task,
                    status_code=response.status_code,
                )
            raise GenerationError(
                f"Backend returned {response.status_code} for task '{task}': {message}",
                task=task,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GenerationError(
                f"Backend returned invalid JSON for task '{task}'.", task=task
            ) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, Mapping):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
