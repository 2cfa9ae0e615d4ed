"""
Generation client: calls the backend and substitutes deterministic fallbacks on any failure.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from wordtales.common.options import Language, StoryTone
from wordtales.story_generation import (
    ScenePosition,
    ScenePrompt,
    StoryScene,
    Word,
    WordCategory,
    build_title_prompt,
    fallback_words,
    parse_scene_payload,
)
from wordtales.story_generation.prompting import DEFAULT_VOCABULARY_SIZE

from .backend import (
    TASK_IMAGE,
    TASK_SCENE,
    TASK_TITLE,
    TASK_VOCABULARY,
    GenerationBackend,
    QuotaExceededError,
)
from .prompting import (
    ERROR_SCENE_IMAGE_URL,
    SCENE_IMAGE_ASPECT_RATIO,
    VOCAB_IMAGE_ASPECT_RATIO,
    IllustrationPrompt,
    build_scene_image_prompt,
    build_vocab_image_prompt,
    scene_placeholder_image_url,
    vocab_placeholder_image_url,
)

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str], None]

DEFAULT_TITLES: dict[Language, str] = {
    Language.TH: "นิทานมหัศจรรย์",
    Language.EN: "A Wonderful Story",
}

LOST_STORYTELLER_TEXT: dict[Language, str] = {
    Language.TH: "โอ๊ะ! นักเล่านิทานหลงทางนิดหน่อย มาลองกันใหม่นะ",
    Language.EN: "Oh no! The storyteller got a little lost. Let's try again.",
}

START_OVER_CHOICE: dict[Language, str] = {
    Language.TH: "เริ่มใหม่",
    Language.EN: "Start over",
}

QUOTA_NOTICE: dict[Language, str] = {
    Language.TH: "โควตาการสร้างภาพหมดแล้ว ลองปิดการสร้างภาพในการตั้งค่าแล้วเล่นต่อได้เลย",
    Language.EN: (
        "The picture-making quota has run out. "
        "Try turning off image generation in settings to keep playing."
    ),
}


def fallback_scene(language: Language, position: ScenePosition) -> StoryScene:
    """
    The "storyteller got lost" scene used whenever a scene cannot be generated.
    """
    return StoryScene(
        text=LOST_STORYTELLER_TEXT[language],
        image_url=ERROR_SCENE_IMAGE_URL,
        choices=(START_OVER_CHOICE[language],),
        position=position,
        is_fallback=True,
    )


class GenerationClient:
    """
    Runs the four generation operations against a backend, never letting a failure escape.

    Parameters
    ----------
    backend:
        Anything implementing ``GenerationBackend``: the HTTP transport or the in-process
        handler.
    language:
        Language used for the fallback texts and the quota notice.
    words_per_round:
        Minimum number of words a vocabulary result must contain to be accepted.
    vocabulary_size:
        Number of words requested from the backend.
    tone:
        Story tone passed into scene illustration prompts.
    notice_callback:
        Receives user-facing notices, currently only the image quota notice.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        *,
        language: Language = Language.TH,
        words_per_round: int = 4,
        vocabulary_size: int = DEFAULT_VOCABULARY_SIZE,
        tone: StoryTone | None = None,
        notice_callback: NoticeCallback | None = None,
    ) -> None:
        self._backend = backend
        self._language = language
        self._words_per_round = words_per_round
        self._vocabulary_size = vocabulary_size
        self._tone = tone
        self._notice_callback = notice_callback
        self._quota_exhausted = False

    @property
    def backend(self) -> GenerationBackend:
        return self._backend

    @property
    def language(self) -> Language:
        return self._language

    @property
    def quota_exhausted(self) -> bool:
        return self._quota_exhausted

    async def generate_vocabulary(self, category: WordCategory | str) -> list[Word]:
        """
        Fetch a themed word list, falling back to the category's built-in word bank.
        """
        label = category.value if isinstance(category, WordCategory) else str(category)
        try:
            raw = await self._backend.call(
                TASK_VOCABULARY,
                {"category": label, "count": self._vocabulary_size},
            )
            return self._parse_vocabulary(raw)
        except QuotaExceededError:
            self._report_quota()
        except Exception:
            logger.exception("Vocabulary generation failed for %r; using fallback words.", label)
        return fallback_words(category)

    async def generate_image(
        self,
        prompt: IllustrationPrompt,
        *,
        aspect_ratio: str,
        fallback_url: str,
    ) -> str:
        """
        Render an illustration, returning ``fallback_url`` when rendering fails.
        """
        try:
            raw = await self._backend.call(
                TASK_IMAGE,
                {
                    "prompt": prompt.positive,
                    "negativePrompt": prompt.negative,
                    "aspectRatio": aspect_ratio,
                },
            )
            image_url = raw.get("imageUrl") if isinstance(raw, Mapping) else None
            if not image_url or not str(image_url).strip():
                raise ValueError("Image response is missing 'imageUrl'.")
            return str(image_url).strip()
        except QuotaExceededError:
            self._report_quota()
        except Exception:
            logger.exception("Image generation failed; using placeholder %s.", fallback_url)
        return fallback_url

    async def generate_vocab_image(self, word: str) -> str:
        return await self.generate_image(
            build_vocab_image_prompt(word),
            aspect_ratio=VOCAB_IMAGE_ASPECT_RATIO,
            fallback_url=vocab_placeholder_image_url(word),
        )

    async def generate_scene(self, prompt: ScenePrompt, *, image_enabled: bool) -> StoryScene:
        """
        Generate and validate the narrative, then its illustration.

        The illustration is only requested once the narrative exists, because the narrative is
        its subject. A failed illustration degrades to a placeholder without discarding the text.
        """
        try:
            raw = await self._backend.call(TASK_SCENE, prompt.as_payload(image_enabled=image_enabled))
            content = parse_scene_payload(raw, prompt.position)
        except QuotaExceededError:
            self._report_quota()
            return fallback_scene(self._language, prompt.position)
        except Exception:
            logger.exception(
                "Scene generation failed for a %s scene; using fallback scene.",
                prompt.position.value,
            )
            return fallback_scene(self._language, prompt.position)

        placeholder = scene_placeholder_image_url(content.text)
        if not image_enabled:
            image_url = placeholder
        elif content.image_url:
            image_url = content.image_url
        else:
            image_url = await self.generate_image(
                build_scene_image_prompt(content.text, self._tone),
                aspect_ratio=SCENE_IMAGE_ASPECT_RATIO,
                fallback_url=placeholder,
            )

        return StoryScene(
            text=content.text,
            image_url=image_url,
            choices=content.choices,
            position=prompt.position,
        )

    async def generate_title(self, full_story: str, language: Language | None = None) -> str:
        """
        Produce a short title for the finished story, or the language's default title.
        """
        resolved_language = language or self._language
        try:
            raw = await self._backend.call(
                TASK_TITLE,
                {"prompt": build_title_prompt(full_story, resolved_language)},
            )
            title = raw.get("title") if isinstance(raw, Mapping) else raw
            title = str(title or "").replace('"', "").strip()
            if not title:
                raise ValueError("Title response is empty.")
            return title
        except QuotaExceededError:
            self._report_quota()
        except Exception:
            logger.exception("Title generation failed; using default title.")
        return DEFAULT_TITLES[resolved_language]

    def _parse_vocabulary(self, raw: Any) -> list[Word]:
        if not isinstance(raw, list):
            raise ValueError("Vocabulary response must be a JSON array.")

        words = [Word.from_mapping(item) for item in raw]
        if len(words) < self._words_per_round:
            raise ValueError(
                f"Expected at least {self._words_per_round} words, received {len(words)}."
            )
        return words

    def _report_quota(self) -> None:
        logger.warning("Generation quota exhausted; falling back to defaults.")
        if self._quota_exhausted:
            return
        self._quota_exhausted = True
        if self._notice_callback is not None:
            self._notice_callback(QUOTA_NOTICE[self._language])
