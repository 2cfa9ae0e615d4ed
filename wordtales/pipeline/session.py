"""
Story session context and vocabulary round preloading.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from wordtales.ai_generation import GenerationClient, vocab_placeholder_image_url
from wordtales.common import WordTalesConfig
from wordtales.common.options import AIPersonality, Language, StoryTone
from wordtales.story_generation import PreloadedWord, SceneHistory, Word, WordCategory

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]


@dataclass
class StorySession:
    """
    Everything one story needs, passed explicitly to the components that drive it.

    Created when a story starts and disposed when it ends or the child goes home.
    """

    language: Language
    tone: StoryTone
    words: tuple[Word, ...]
    target_scene_count: int = 5
    image_generation_enabled: bool = True
    personality: AIPersonality | None = None
    history: SceneHistory = field(default_factory=SceneHistory)
    current_scene_index: int = 0
    title: str | None = None
    closed: bool = False

    def __post_init__(self) -> None:
        self.words = tuple(self.words)
        if not self.words:
            raise ValueError("A story session needs at least one vocabulary word.")
        if self.target_scene_count < 2:
            raise ValueError("target_scene_count must be at least 2.")

    @classmethod
    def from_config(cls, config: WordTalesConfig, words: Sequence[Word]) -> "StorySession":
        if len(words) != config.words_per_round:
            raise ValueError(
                f"A story needs exactly {config.words_per_round} words, received {len(words)}."
            )
        return cls(
            language=config.language,
            tone=config.story_tone,
            words=tuple(words),
            target_scene_count=config.target_scene_count,
            image_generation_enabled=config.image_generation_enabled,
            personality=config.personality,
        )

    @property
    def word_strings(self) -> list[str]:
        return [word.english for word in self.words]

    def dispose(self) -> None:
        """Mark the session as finished; late results for it are discarded."""
        self.closed = True
        self.history.clear()


class VocabularyPreloader:
    """
    Fetches a vocabulary round and the card image for each word.

    Images are requested one word at a time to stay within the image backend's rate limits.
    """

    def __init__(
        self,
        client: GenerationClient,
        *,
        words_per_round: int = 4,
        image_generation_enabled: bool = True,
        rng: random.Random | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._client = client
        self._progress_callback = progress_callback
        self._words_per_round = words_per_round
        self._image_generation_enabled = image_generation_enabled
        self._rng = rng or random.Random()

    def pick_category(self) -> WordCategory:
        return self._rng.choice(list(WordCategory))

    async def load_words(self, category: WordCategory | None = None) -> tuple[WordCategory, list[Word]]:
        """Return the category and its full word list (generated or fallback)."""
        resolved = category or self.pick_category()
        words = await self._client.generate_vocabulary(resolved)
        return resolved, words

    async def preload(self, words: Sequence[Word]) -> list[PreloadedWord]:
        """
        Attach an image to the first ``words_per_round`` words, sequentially.
        """
        preloaded: list[PreloadedWord] = []
        batch = list(words)[: self._words_per_round]
        for index, word in enumerate(batch, start=1):
            if self._progress_callback is not None:
                self._progress_callback(
                    "vocab:image", {"index": index, "total": len(batch), "word": word.english}
                )
            if self._image_generation_enabled:
                image_url = await self._client.generate_vocab_image(word.english)
            else:
                image_url = vocab_placeholder_image_url(word.english)
            preloaded.append(PreloadedWord(word=word, image_url=image_url))
        logger.debug("Preloaded %d vocabulary cards.", len(preloaded))
        return preloaded
