"""
LiteLLM-powered chat completion helper utilities.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, MutableMapping, Sequence

from litellm import acompletion

logger = logging.getLogger(__name__)

ChatMessage = Mapping[str, Any]

_CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any


CompletionCallable = Callable[..., Awaitable[ChatResult]]


async def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Run one chat turn through LiteLLM's `acompletion` and return the first choice's text.

    Options left as ``None`` are omitted so the provider defaults apply. Extra keyword
    arguments (e.g. ``response_format``) are passed through unchanged.
    """
    options = {"temperature": temperature, "max_tokens": max_tokens, "api_key": api_key}
    request: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
        **{key: value for key, value in options.items() if value is not None},
        **extra_kwargs,
    }

    logger.debug("Requesting chat completion from %s (%d messages).", model, len(request["messages"]))
    response = await acompletion(**request)

    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError(f"Unexpected LiteLLM response format from {model}.") from exc

    return ChatResult(text=str(content or "").strip(), raw=response)


def parse_json_text(raw_text: str) -> Any:
    """
    Decode model output as JSON, tolerating a surrounding Markdown code fence.
    """
    cleaned = _CODE_FENCE_PATTERN.sub("", raw_text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError("Model response is not valid JSON.") from exc
