"""
Orchestrates a WordTales play session: vocabulary rounds, interactive stories, and narration.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Mapping, Sequence

import yaml

from wordtales.ai_generation import (
    GenerationBackend,
    GenerationClient,
    GenerationTaskHandler,
    HttpGenerationBackend,
)
from wordtales.common import WordTalesConfig
from wordtales.common.options import Language, StoryTone, coerce_enum
from wordtales.narration import NarrationPlayer, NullSpeechSynthesizer, SpeechSynthesizer
from wordtales.story_generation import (
    PreloadedWord,
    ScenePosition,
    StoryScene,
    Word,
    WordCategory,
    toggle_word,
)
from wordtales.voice_capture import NullSpeechRecognizer, SpeechRecognizer, VoiceCaptureDebouncer

from .controller import ControllerState, ProgressCallback, SceneProgressionController
from .session import StorySession, VocabularyPreloader

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str], None]


class GameState(Enum):
    HOME = auto()
    VOCAB = auto()
    STORY = auto()


@dataclass
class StoryRecord:
    """Summary of a finished story, ready for display."""

    title: str
    language: Language
    tone: StoryTone
    words: tuple[Word, ...]
    scenes: tuple[StoryScene, ...]

    @classmethod
    def from_session(cls, session: StorySession) -> "StoryRecord":
        return cls(
            title=session.title or "",
            language=session.language,
            tone=session.tone,
            words=session.words,
            scenes=session.history.scenes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "language": self.language.value,
            "tone": self.tone.value,
            "words": [word.as_dict() for word in self.words],
            "scenes": [scene.as_dict() for scene in self.scenes],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StoryRecord":
        for key in ("title", "language", "tone", "scenes"):
            if key not in payload:
                raise ValueError(f"Story record payload must include '{key}'.")

        scenes: list[StoryScene] = []
        for entry in payload["scenes"]:
            try:
                scenes.append(
                    StoryScene(
                        text=str(entry["text"]).strip(),
                        image_url=str(entry["image_url"]).strip(),
                        choices=tuple(str(choice) for choice in entry.get("choices", [])),
                        position=ScenePosition(entry.get("position", ScenePosition.NEXT.value)),
                        is_fallback=bool(entry.get("is_fallback", False)),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Invalid scene entry: {entry}") from exc

        return cls(
            title=str(payload["title"]),
            language=coerce_enum(Language, payload["language"]),
            tone=coerce_enum(StoryTone, payload["tone"]),
            words=tuple(Word.from_mapping(item) for item in payload.get("words", [])),
            scenes=tuple(scenes),
        )


class WordTalesOrchestrator:
    """
    High-level coordinator for the home → vocabulary → story cycle.

    Parameters
    ----------
    config:
        Session settings. Defaults to :class:`WordTalesConfig` defaults.
    client:
        Pre-built generation client. When omitted one is created around ``backend``.
    backend:
        Generation backend. Defaults to HTTP when ``config.backend_url`` is set, otherwise to
        the in-process LiteLLM/Replicate handler.
    synthesizer, recognizer:
        Platform speech capabilities; null implementations are used when omitted.
    progress_callback:
        Receives ``(stage, payload)`` notifications for UI updates and logging.
    notice_callback:
        Receives user-facing notices such as the image quota warning.
    """

    def __init__(
        self,
        *,
        config: WordTalesConfig | None = None,
        client: GenerationClient | None = None,
        backend: GenerationBackend | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        recognizer: SpeechRecognizer | None = None,
        rng: random.Random | None = None,
        progress_callback: ProgressCallback | None = None,
        notice_callback: NoticeCallback | None = None,
    ) -> None:
        self._config = config or WordTalesConfig()
        self._rng = rng or random.Random()
        self._progress_callback = progress_callback
        if client is None:
            if backend is None:
                backend = (
                    HttpGenerationBackend(endpoint=self._config.backend_url)
                    if self._config.backend_url
                    else GenerationTaskHandler()
                )
            client = GenerationClient(
                backend,
                language=self._config.language,
                words_per_round=self._config.words_per_round,
                vocabulary_size=self._config.vocabulary_size,
                tone=self._config.story_tone,
                notice_callback=notice_callback,
            )
        self._client = client
        self._synthesizer = synthesizer or NullSpeechSynthesizer()
        self._recognizer = recognizer or NullSpeechRecognizer()

        self._game_state = GameState.HOME
        self._round = 1
        self._category: WordCategory | None = None
        self._word_list: list[Word] = []
        self._preloaded: list[PreloadedWord] = []
        self._selected: list[Word] = []

        self._controller: SceneProgressionController | None = None
        self._narrator: NarrationPlayer | None = None
        self._voice: VoiceCaptureDebouncer | None = None
        self._last_record: StoryRecord | None = None

    @property
    def config(self) -> WordTalesConfig:
        return self._config

    @property
    def client(self) -> GenerationClient:
        return self._client

    @property
    def game_state(self) -> GameState:
        return self._game_state

    @property
    def round(self) -> int:
        return self._round

    @property
    def category(self) -> WordCategory | None:
        return self._category

    @property
    def word_list(self) -> list[Word]:
        return list(self._word_list)

    @property
    def preloaded_words(self) -> list[PreloadedWord]:
        return list(self._preloaded)

    @property
    def selected_words(self) -> list[Word]:
        return list(self._selected)

    @property
    def controller(self) -> SceneProgressionController | None:
        return self._controller

    @property
    def narrator(self) -> NarrationPlayer | None:
        return self._narrator

    @property
    def voice_capture(self) -> VoiceCaptureDebouncer | None:
        return self._voice

    @property
    def last_record(self) -> StoryRecord | None:
        return self._last_record

    @property
    def inputs_enabled(self) -> bool:
        """Whether choice buttons and the microphone should currently accept input."""
        if self._controller is None or self._narrator is None or self._voice is None:
            return False
        return not (
            self._controller.busy
            or self._controller.state is not ControllerState.AWAITING_CHOICE
            or self._narrator.is_speaking
            or self._voice.is_listening
            or self._voice.is_awaiting_feedback
        )

    async def start_vocabulary_round(
        self, category: WordCategory | None = None
    ) -> list[PreloadedWord]:
        """
        Load a vocabulary round and preload the card image of each word in turn.
        """
        self._game_state = GameState.VOCAB
        preloader = VocabularyPreloader(
            self._client,
            words_per_round=self._config.words_per_round,
            image_generation_enabled=self._config.image_generation_enabled,
            rng=self._rng,
            progress_callback=self._progress_callback,
        )
        self._notify("vocab:loading", round=self._round)
        self._category, self._word_list = await preloader.load_words(category)
        self._preloaded = await preloader.preload(self._word_list)
        self._selected = []
        self._notify(
            "vocab:ready",
            round=self._round,
            category=self._category.value,
            total_words=len(self._preloaded),
        )
        return list(self._preloaded)

    def select_word(self, word: Word) -> list[Word]:
        """Toggle ``word`` in the current selection."""
        self._selected = toggle_word(self._selected, word, limit=self._config.words_per_round)
        return list(self._selected)

    async def start_story(self, words: Sequence[Word] | None = None) -> StoryScene | None:
        """
        Begin a story with the chosen words and present its opening scene.
        """
        await self._teardown_story()
        chosen = list(words) if words is not None else list(self._selected)
        session = StorySession.from_config(self._config, chosen)

        self._narrator = NarrationPlayer(
            self._synthesizer,
            session.language,
            reveal_interval=self._config.reveal_interval_seconds,
            start_timeout=self._config.speech_start_timeout_seconds,
            rate=self._config.speech_rate,
            pitch=self._config.speech_pitch,
            rng=self._rng,
        )
        self._controller = SceneProgressionController(
            session,
            self._client,
            on_scene=self._present_scene,
            progress_callback=self._progress_callback,
        )
        self._voice = VoiceCaptureDebouncer(
            self._recognizer,
            self._commit_choice,
            session.language,
            debounce_seconds=self._config.debounce_seconds,
            is_blocked=self._voice_blocked,
        )
        self._game_state = GameState.STORY
        self._notify("story:starting", round=self._round, words=session.word_strings)
        return await self._controller.start()

    async def choose(self, choice: str) -> StoryScene | None:
        """
        Commit a tapped choice. Ignored while a scene is loading, narrating, or listening.
        """
        if not self.inputs_enabled:
            return None
        return await self._commit_choice(choice)

    def start_listening(self) -> bool:
        if self._voice is None or self._narrator is None or self._voice_blocked():
            return False
        self._narrator.stop()
        return self._voice.start()

    def stop_listening(self) -> None:
        if self._voice is not None:
            self._voice.stop()

    def replay_or_stop_audio(self) -> bool:
        if self._narrator is None or self._controller is None or self._controller.busy:
            return False
        return self._narrator.toggle_audio()

    async def complete_story(self) -> StoryRecord | None:
        """
        Finish a completed story and move on to the next vocabulary round.
        """
        if self._controller is None or self._controller.state is not ControllerState.COMPLETE:
            return None

        record = StoryRecord.from_session(self._controller.session)
        self._last_record = record
        await self._teardown_story()
        self._round += 1
        self._preloaded = []
        self._selected = []
        self._game_state = GameState.VOCAB
        self._notify("story:finished", title=record.title, next_round=self._round)
        return record

    async def go_home(self) -> None:
        """
        Leave whatever is in progress: silence narration, drop pending timers, and reset.
        """
        await self._teardown_story()
        self._game_state = GameState.HOME
        self._round = 1
        self._category = None
        self._word_list = []
        self._preloaded = []
        self._selected = []
        self._notify("session:home")

    async def aclose(self) -> None:
        await self._teardown_story()
        aclose = getattr(self._client.backend, "aclose", None)
        if aclose is not None:
            await aclose()

    async def _commit_choice(self, choice: str) -> StoryScene | None:
        if self._controller is None:
            return None
        if self._narrator is not None:
            self._narrator.stop()
        return await self._controller.submit_choice(choice)

    def _present_scene(self, scene: StoryScene) -> None:
        if self._narrator is None or self._narrator.closed:
            logger.debug("Dropping scene %r; narration is closed.", scene.position)
            return
        self._narrator.present(scene)

    def _voice_blocked(self) -> bool:
        if self._controller is None or self._narrator is None:
            return True
        return (
            self._controller.busy
            or self._controller.state is not ControllerState.AWAITING_CHOICE
        )

    async def _teardown_story(self) -> None:
        voice, self._voice = self._voice, None
        narrator, self._narrator = self._narrator, None
        controller, self._controller = self._controller, None
        if controller is not None:
            controller.close()
        if voice is not None:
            voice.close()
        if narrator is not None:
            await narrator.close()

    def _notify(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, payload)
