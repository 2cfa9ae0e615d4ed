"""
Scene progression: decides which scene to generate next and advances the story state.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Callable

from wordtales.ai_generation import GenerationClient
from wordtales.story_generation import ScenePosition, StoryScene, build_scene_prompt

from .session import ProgressCallback, StorySession

logger = logging.getLogger(__name__)

SceneCallback = Callable[[StoryScene], None]
TitleCallback = Callable[[str], None]


class ControllerState(Enum):
    EMPTY = auto()
    GENERATING_INITIAL = auto()
    AWAITING_CHOICE = auto()
    GENERATING_NEXT = auto()
    GENERATING_FINAL = auto()
    COMPLETE = auto()


_GENERATING_STATES = {
    ScenePosition.INITIAL: ControllerState.GENERATING_INITIAL,
    ScenePosition.NEXT: ControllerState.GENERATING_NEXT,
    ScenePosition.FINAL: ControllerState.GENERATING_FINAL,
}


class SceneProgressionController:
    """
    Drives one story from its opening scene to its title.

    Only one generation request is in flight at a time. The busy flag is raised before a request
    is issued and lowered once the resulting scene (generated or fallback) has been appended, so
    choices arriving in between are ignored and the first committed choice wins. Results that
    arrive after ``close()`` are discarded.
    """

    def __init__(
        self,
        session: StorySession,
        client: GenerationClient,
        *,
        on_scene: SceneCallback | None = None,
        on_title: TitleCallback | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._session = session
        self._client = client
        self._on_scene = on_scene
        self._on_title = on_title
        self._progress_callback = progress_callback
        self._state = ControllerState.EMPTY
        self._busy = False

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def session(self) -> StorySession:
        return self._session

    @property
    def is_live(self) -> bool:
        return not self._session.closed

    @property
    def current_scene(self) -> StoryScene | None:
        history = self._session.history
        if not len(history):
            return None
        return history[self._session.current_scene_index]

    def next_position(self) -> ScenePosition:
        """Position of the scene the next choice will produce."""
        history_length = len(self._session.history)
        if history_length == 0:
            return ScenePosition.INITIAL
        if history_length < self._session.target_scene_count - 1:
            return ScenePosition.NEXT
        return ScenePosition.FINAL

    async def start(self) -> StoryScene | None:
        """
        Generate the opening scene. Ignored unless the story has not started yet.
        """
        if self._state is not ControllerState.EMPTY or self._busy or not self.is_live:
            logger.debug("Ignoring start request in state %s.", self._state.name)
            return None
        return await self._advance(ScenePosition.INITIAL, None)

    async def submit_choice(self, choice: str | None) -> StoryScene | None:
        """
        Continue the story with the child's choice. Returns the new scene, or ``None`` when the
        choice was ignored because a scene is being generated or no choice is expected.
        """
        if self._busy or self._state is not ControllerState.AWAITING_CHOICE or not self.is_live:
            logger.debug(
                "Ignoring choice %r in state %s (busy=%s).", choice, self._state.name, self._busy
            )
            return None
        return await self._advance(self.next_position(), choice)

    def close(self) -> None:
        """Stop accepting events; in-flight results will be dropped when they arrive."""
        if not self._session.closed:
            self._session.dispose()

    async def _advance(self, position: ScenePosition, choice: str | None) -> StoryScene | None:
        session = self._session
        self._busy = True
        previous_state = self._state
        self._state = _GENERATING_STATES[position]
        try:
            story_so_far = session.history.story_so_far() or None
            prompt = build_scene_prompt(
                session.language,
                session.tone,
                session.word_strings,
                story_so_far,
                choice,
                position,
                personality=session.personality,
            )
            self._notify(
                "scene:generating",
                position=position.value,
                scene_number=len(session.history) + 1,
            )
            scene = await self._client.generate_scene(
                prompt,
                image_enabled=session.image_generation_enabled,
            )

            if not self.is_live:
                logger.debug("Discarding %s scene for a closed session.", position.value)
                return None

            session.history.append(scene)
            session.current_scene_index = len(session.history) - 1
            self._notify(
                "scene:ready",
                position=position.value,
                scene_number=len(session.history),
                is_fallback=scene.is_fallback,
            )
            if self._on_scene is not None:
                self._on_scene(scene)

            if scene.is_final:
                self._state = ControllerState.COMPLETE
                await self._generate_title()
            else:
                self._state = ControllerState.AWAITING_CHOICE
            return scene
        finally:
            if self._state is _GENERATING_STATES[position]:
                self._state = previous_state
            self._busy = False

    async def _generate_title(self) -> None:
        session = self._session
        title = await self._client.generate_title(session.history.story_so_far(), session.language)
        if not self.is_live:
            return
        session.title = title
        self._notify("story:complete", title=title, total_scenes=len(session.history))
        if self._on_title is not None:
            self._on_title(title)

    def _notify(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, payload)
