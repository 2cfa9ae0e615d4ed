"""
Turns a stream of speech recognition results into a single, debounced story choice.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence

from wordtales.common.options import Language

from .recognition import RecognitionResult, SpeechRecognizer

logger = logging.getLogger(__name__)

ChoiceCallback = Callable[[str], Awaitable[Any]]
BlockedCheck = Callable[[], bool]

DEFAULT_DEBOUNCE_SECONDS = 1.0


class VoiceCaptureDebouncer:
    """
    Captures one spoken choice per listening session and forwards it exactly once.

    A final recognition segment stops the recognizer and is forwarded straight away. If the
    recognizer ends without a final segment, the last interim transcript is forwarded instead.
    Forwarded text waits out a quiet period (the "awaiting feedback" state) before
    ``on_choice`` runs. Recognizer errors forward nothing.

    Parameters
    ----------
    recognizer:
        Platform speech engine (``NullSpeechRecognizer`` when there is none).
    on_choice:
        Coroutine function receiving the finalized transcript.
    language:
        Recognition language.
    debounce_seconds:
        Quiet period before ``on_choice`` is invoked.
    is_blocked:
        Optional gate; listening cannot start while it returns ``True`` (e.g. during generation).
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        on_choice: ChoiceCallback,
        language: Language,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        is_blocked: BlockedCheck | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._on_choice = on_choice
        self._language = language
        self._debounce_seconds = debounce_seconds
        self._is_blocked = is_blocked

        self._is_listening = False
        self._transcript = ""
        self._processing = False
        self._session = 0
        self._delivery_task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def is_awaiting_feedback(self) -> bool:
        return self._delivery_task is not None and not self._delivery_task.done()

    def start(self) -> bool:
        """
        Begin a listening session. Returns ``False`` when listening is not currently allowed.
        """
        if self._closed or self._is_listening or self.is_awaiting_feedback:
            return False
        if self._is_blocked is not None and self._is_blocked():
            return False

        self._session += 1
        session = self._session
        self._transcript = ""
        self._processing = False
        self._is_listening = True

        self._recognizer.start(
            language=self._language.value,
            continuous=True,
            interim_results=True,
            on_result=lambda results: self._handle_result(session, results),
            on_error=lambda error: self._handle_error(session, error),
            on_end=lambda: self._handle_end(session),
        )
        return True

    def stop(self) -> None:
        """Stop listening; whatever was heard so far is forwarded when the recognizer ends."""
        if self._is_listening:
            self._recognizer.stop()

    def cancel(self) -> None:
        """
        Abandon the current session and any pending delivery without forwarding anything.
        """
        self._session += 1
        self._processing = True
        if self._is_listening:
            self._is_listening = False
            self._recognizer.stop()
        task, self._delivery_task = self._delivery_task, None
        if task is not None and not task.done():
            task.cancel()

    def close(self) -> None:
        self.cancel()
        self._closed = True

    async def wait_idle(self) -> None:
        """Wait for a pending delivery, if any, to finish."""
        task = self._delivery_task
        if task is not None:
            await asyncio.wait({task})

    def _handle_result(self, session: int, results: Sequence[RecognitionResult]) -> None:
        if session != self._session:
            return

        final = "".join(result.transcript for result in results if result.is_final)
        interim = "".join(result.transcript for result in results if not result.is_final)
        self._transcript = final or interim

        if final and not self._processing:
            self._processing = True
            self._recognizer.stop()
            self._forward(final)

    def _handle_error(self, session: int, error: str) -> None:
        if session != self._session:
            return
        logger.warning("Speech recognition error: %s", error)
        self._is_listening = False
        self._processing = True

    def _handle_end(self, session: int) -> None:
        if session != self._session:
            return
        self._is_listening = False
        if self._processing:
            return
        self._processing = True
        if self._transcript:
            self._forward(self._transcript)

    def _forward(self, text: str) -> None:
        choice = text.strip()
        if not choice or self._closed:
            return
        self._delivery_task = asyncio.get_running_loop().create_task(self._deliver(choice))

    async def _deliver(self, choice: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        try:
            await self._on_choice(choice)
        except Exception:
            logger.exception("Voice choice %r could not be delivered.", choice)
