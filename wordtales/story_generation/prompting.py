"""
Prompt construction utilities for the WordTales interactive story workflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from wordtales.common.options import AIPersonality, Language, StoryTone

from .scenes import MAX_CHOICES, MIN_CHOICES, ScenePosition
from .vocabulary import WordCategory

DEFAULT_LENGTH_GUIDANCE = "Write 2-4 short, simple sentences (no more than 60 words)."

NO_PREFERENCE_CHOICE = "no specific preference"

SCENE_RESPONSE_SCHEMA = '{"text": "string, the scene narrative", "choices": ["string", ...]}'

DEFAULT_VOCABULARY_SIZE = 10


@dataclass(frozen=True)
class ScenePrompt:
    """
    System and user prompts for one story scene, tagged with the scene's position.
    """

    system: str
    user: str
    position: ScenePosition

    def as_payload(self, *, image_enabled: bool = False) -> dict[str, Any]:
        return {
            "prompt": self.user,
            "storyStylePrompt": self.system,
            "position": self.position.value,
            "isImageGenerationEnabled": image_enabled,
        }


def _language_instruction(language: Language) -> str:
    name = language.display_name
    return (
        f"The story must be in {name}. The choices must be in {name}. "
        "Respond ONLY with the JSON object."
    )


def build_scene_prompt(
    language: Language,
    tone: StoryTone,
    words: Sequence[str],
    story_so_far: str | None,
    user_choice: str | None,
    position: ScenePosition,
    *,
    personality: AIPersonality | None = None,
    length_guidance: str = DEFAULT_LENGTH_GUIDANCE,
) -> ScenePrompt:
    """
    Build the prompt pair for the scene at ``position``.

    ``initial`` ignores ``story_so_far`` and ``user_choice``. ``next`` and ``final`` continue an
    existing story and therefore require ``story_so_far``. A blank ``user_choice`` on a ``next``
    scene means the child expressed no specific preference.
    """
    position = ScenePosition(position)
    if position is not ScenePosition.INITIAL and not (story_so_far and story_so_far.strip()):
        raise ValueError(f"A {position.value} scene needs the story so far.")

    personality_line = ""
    if personality is not None:
        personality_line = f"\n- Tell the story as a {personality.value} narrator."

    system_prompt = f"""You are a creative storyteller for children aged 3-6.
You write one scene at a time of a short, interactive picture-book story.

Writing directives:
- Keep the story very simple, positive, and easy for a young child to understand.
- The overall tone of the story should be: {tone.value}.
- Weave in some of these vocabulary words naturally: {", ".join(words)}.
- {length_guidance}
- Never use Markdown, headings, or labels such as "Scene 1" or "Choice A".{personality_line}
- {_language_instruction(language)}

Output format:
Respond with a single JSON object matching this schema and nothing else:
{SCENE_RESPONSE_SCHEMA}"""

    if position is ScenePosition.INITIAL:
        user_prompt = (
            "This is the very first scene. Introduce a character and a setting with a gentle, "
            f"inviting start. Provide {MIN_CHOICES} or {MAX_CHOICES} simple, distinct choices "
            "for the child."
        )
    elif position is ScenePosition.FINAL:
        user_prompt = (
            "This is the FINAL scene. Write a concluding paragraph with a happy, satisfying "
            "resolution. Do not introduce new problems; the story must feel complete. "
            'Do NOT provide any choices: the "choices" array must be empty.\n'
            f'Story so far: """{story_so_far}"""'
        )
    else:
        choice_text = (user_choice or "").strip() or NO_PREFERENCE_CHOICE
        user_prompt = (
            "Continue the story seamlessly from where it left off without repeating or "
            f"contradicting it. Provide {MIN_CHOICES} or {MAX_CHOICES} simple, distinct choices.\n"
            f'Story so far: """{story_so_far}"""\n'
            f'The child chose: "{choice_text}". Now write the next scene based on their choice.'
        )

    return ScenePrompt(system=system_prompt, user=user_prompt, position=position)


def build_title_prompt(full_story: str, language: Language) -> str:
    """Prompt asking for a short title in the story's language."""
    return (
        "Based on the following children's story, create a short, magical, and fitting title. "
        f"The title should be in {language.display_name}. Respond with only the title text, "
        f'nothing else. Story: """{full_story}""" Title:'
    )


def build_vocabulary_prompt(
    category: WordCategory | str,
    *,
    count: int = DEFAULT_VOCABULARY_SIZE,
) -> str:
    """Prompt asking for a themed word list as a JSON array of thai/english pairs."""
    label = category.value if isinstance(category, WordCategory) else str(category)
    return (
        f"Generate a list of {count} vocabulary words for a 4-7 year old child in the category "
        f'"{label}". The words must be thematically coherent and suitable for creating a single '
        "children's story. Provide the output as a JSON array where each object has a \"thai\" "
        'key (the word in Thai) and an "english" key (the word in English). '
        'Example: [{"thai": "สุนัข", "english": "dog"}]'
    )
