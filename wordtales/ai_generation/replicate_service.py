"""
Integration with Replicate for storybook illustrations.
"""

from __future__ import annotations

import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable

import replicate

from .prompting import IllustrationPrompt

DEFAULT_REPLICATE_MODEL = "black-forest-labs/flux-schnell"


def _build_flux_schnell_input(
    *,
    prompt: IllustrationPrompt,
    aspect_ratio: str,
) -> dict[str, Any]:
    return {
        "prompt": prompt.positive,
        "aspect_ratio": aspect_ratio,
        "num_outputs": 1,
        "output_format": "jpg",
    }


def _build_imagen_input(
    *,
    prompt: IllustrationPrompt,
    aspect_ratio: str,
) -> dict[str, Any]:
    return {
        "prompt": f"{prompt.positive}\nAvoid: {prompt.negative}",
        "aspect_ratio": aspect_ratio,
        "output_format": "jpg",
        "safety_filter_level": "block_low_and_above",
    }


def _build_sdxl_input(
    *,
    prompt: IllustrationPrompt,
    aspect_ratio: str,
) -> dict[str, Any]:
    width, height = (1344, 768) if aspect_ratio == "16:9" else (1024, 1024)
    return {
        "prompt": prompt.positive,
        "negative_prompt": prompt.negative,
        "width": width,
        "height": height,
        "num_outputs": 1,
    }


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
    "google/imagen-4": _build_imagen_input,
    "google/imagen-4-fast": _build_imagen_input,
    "stability-ai/sdxl": _build_sdxl_input,
}


def _build_replicate_input_payload(
    *,
    model_identifier: str,
    prompt: IllustrationPrompt,
    aspect_ratio: str,
) -> dict[str, Any]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )

    return builder(prompt=prompt, aspect_ratio=aspect_ratio)


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for storybook illustrations.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL`` and then to FLUX schnell.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_REPLICATE_MODEL
        )
        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    async def generate_image(
        self,
        prompt: IllustrationPrompt,
        *,
        aspect_ratio: str = "1:1",
        **model_kwargs: Any,
    ) -> str:
        """
        Render ``prompt`` and return the URL of the first image produced.

        Parameters
        ----------
        prompt:
            Positive and negative prompt for the illustration.
        aspect_ratio:
            Requested frame, e.g. ``"1:1"`` for vocabulary cards or ``"16:9"`` for scenes.
        **model_kwargs:
            Additional keyword arguments forwarded directly to the Replicate model invocation.
        """
        replicate_input = _build_replicate_input_payload(
            model_identifier=self._model_identifier,
            prompt=prompt,
            aspect_ratio=aspect_ratio,
        )
        replicate_input.update(model_kwargs)

        outputs = await self._client.async_run(
            self._model_identifier,
            input=replicate_input,
            use_file_output=False,
        )
        urls = normalize_image_outputs(outputs)
        if not urls:
            raise RuntimeError("Replicate returned no image output.")
        return urls[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Flatten a Replicate result into image URLs.

    Models return a single URL, a list of URLs, or file objects exposing ``url``.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw.strip() else []

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]
    if isinstance(raw, IterableABC):
        return [item for entry in raw for item in normalize_image_outputs(entry)]
    return [str(raw)]
