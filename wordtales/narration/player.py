"""
Scene narration: speech playback chained with a progressive on-screen text reveal.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Iterable, Sequence

from wordtales.common.options import Language
from wordtales.story_generation import StoryScene

from .synthesis import SpeechSynthesizer, Utterance
from .voices import STORY_FOLLOW_UP_QUESTIONS, select_voice

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_INTERVAL_SECONDS = 0.09
DEFAULT_START_TIMEOUT_SECONDS = 3.0


class NarrationPlayer:
    """
    Speaks the current scene aloud while revealing its text one character at a time.

    Speech and reveal run as separate tasks on the running event loop. Presenting a new scene,
    stopping, or closing cancels the in-flight speech; closing also stops the reveal, and no
    synthesizer callback has any effect afterwards.

    Parameters
    ----------
    synthesizer:
        Platform speech engine (``NullSpeechSynthesizer`` when there is none).
    language:
        Narration language; drives voice selection and the follow-up question pool.
    reveal_interval:
        Seconds between revealed characters.
    start_timeout:
        Seconds to wait for speech to start before giving up on the utterance.
    rng:
        Random source for follow-up question selection.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        language: Language,
        *,
        reveal_interval: float = DEFAULT_REVEAL_INTERVAL_SECONDS,
        start_timeout: float = DEFAULT_START_TIMEOUT_SECONDS,
        rate: float = 0.9,
        pitch: float = 1.1,
        questions: Sequence[str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._language = language
        self._reveal_interval = reveal_interval
        self._start_timeout = start_timeout
        self._rate = rate
        self._pitch = pitch
        self._questions = tuple(questions or STORY_FOLLOW_UP_QUESTIONS[language])
        self._rng = rng or random.Random()

        self._scene: StoryScene | None = None
        self._displayed_text = ""
        self._is_speaking = False
        self._speech_task: asyncio.Task[None] | None = None
        self._reveal_task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def scene(self) -> StoryScene | None:
        return self._scene

    @property
    def displayed_text(self) -> str:
        return self._displayed_text

    @property
    def is_speaking(self) -> bool:
        return self._is_speaking

    @property
    def reveal_complete(self) -> bool:
        return self._scene is not None and len(self._displayed_text) >= len(self._scene.text)

    @property
    def closed(self) -> bool:
        return self._closed

    def present(self, scene: StoryScene) -> None:
        """
        Show ``scene``: restart the text reveal and narrate it, followed by a question if the
        child has choices to make.
        """
        self._ensure_open()
        self._cancel_speech()
        self._cancel_reveal()
        self._scene = scene
        self._displayed_text = ""
        if not scene.text:
            return

        self._reveal_task = asyncio.create_task(self._reveal(scene.text))
        texts = [scene.text]
        if scene.choices and self._questions:
            texts.append(self._rng.choice(self._questions))
        self._speech_task = asyncio.create_task(self._narrate(texts))

    async def speak(self, text: str) -> None:
        """
        Speak ``text`` on its own, replacing any current speech.

        Returns once speech ends, fails, or never starts within the timeout. Blank text returns
        immediately without touching the synthesizer.
        """
        if not text or not text.strip():
            return

        self._ensure_open()
        self._cancel_speech()
        task = asyncio.create_task(self._narrate([text]))
        self._speech_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            self._cancel_speech()
            raise

    def stop(self) -> None:
        """Cancel any speech immediately."""
        self._cancel_speech()

    def replay(self) -> bool:
        """
        Narrate the current scene again. Only allowed once its text is fully revealed and
        nothing is being spoken.
        """
        if self._closed or self._scene is None or not self._scene.text:
            return False
        if self._is_speaking or not self.reveal_complete:
            return False

        self._cancel_speech()
        self._speech_task = asyncio.create_task(self._narrate([self._scene.text]))
        return True

    def toggle_audio(self) -> bool:
        """
        Stop while speaking, otherwise replay. Returns whether narration was (re)started.
        """
        if self._is_speaking:
            self.stop()
            return False
        return self.replay()

    async def wait_idle(self) -> None:
        """Wait until the current speech chain and text reveal have both finished."""
        pending = {task for task in (self._speech_task, self._reveal_task) if task is not None}
        if pending:
            await asyncio.wait(pending)

    async def close(self) -> None:
        """
        Tear down: cancel speech and the reveal ticker, and ignore any late callbacks.
        """
        if self._closed:
            return
        self._closed = True
        tasks = [task for task in (self._speech_task, self._reveal_task) if task is not None]
        self._cancel_speech()
        self._cancel_reveal()
        if tasks:
            await asyncio.wait(tasks)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("NarrationPlayer has been closed.")

    def _cancel_speech(self) -> None:
        task, self._speech_task = self._speech_task, None
        if task is not None and not task.done():
            task.cancel()
        self._synthesizer.cancel()
        self._is_speaking = False

    def _cancel_reveal(self) -> None:
        task, self._reveal_task = self._reveal_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _reveal(self, text: str) -> None:
        for index in range(1, len(text) + 1):
            await asyncio.sleep(self._reveal_interval)
            self._displayed_text = text[:index]

    async def _narrate(self, texts: Iterable[str]) -> None:
        # Only the end of the whole chain clears the speaking flag.
        try:
            for text in texts:
                if not text or not text.strip():
                    continue
                if not await self._speak_utterance(text):
                    break
        finally:
            if self._speech_task is asyncio.current_task():
                self._is_speaking = False

    async def _speak_utterance(self, text: str) -> bool:
        """
        Submit one utterance and wait for it to end. Returns ``False`` when it never started.
        """
        loop = asyncio.get_running_loop()
        owner = asyncio.current_task()
        started: asyncio.Future[None] = loop.create_future()
        finished: asyncio.Future[None] = loop.create_future()
        active = True

        def on_start() -> None:
            if not active or self._closed or started.done():
                return
            started.set_result(None)
            # A chain that was replaced or stopped must not raise the flag.
            if self._speech_task is owner:
                self._is_speaking = True

        def on_end() -> None:
            if active and not finished.done():
                finished.set_result(None)

        def on_error(error: str) -> None:
            logger.warning("Speech synthesis error %r for text %r.", error, text[:40])
            on_end()

        utterance = Utterance(
            text=text,
            lang=self._language.value,
            voice=select_voice(self._synthesizer.get_voices(), self._language),
            rate=self._rate,
            pitch=self._pitch,
        )
        self._synthesizer.speak(utterance, on_start=on_start, on_end=on_end, on_error=on_error)

        try:
            done, _ = await asyncio.wait(
                {started, finished},
                timeout=self._start_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if not done:
                logger.warning(
                    "Speech synthesis did not start within %.1f seconds.", self._start_timeout
                )
                return False
            await finished
            return True
        finally:
            active = False
            for future in (started, finished):
                if not future.done():
                    future.cancel()
