from __future__ import annotations

import pytest

from wordtales.ai_generation import (
    build_scene_image_prompt,
    build_vocab_image_prompt,
    scene_placeholder_image_url,
    vocab_placeholder_image_url,
)
from wordtales.common.options import AIPersonality, Language, StoryTone
from wordtales.story_generation import (
    NO_PREFERENCE_CHOICE,
    ScenePosition,
    build_scene_prompt,
    build_title_prompt,
    build_vocabulary_prompt,
)

WORDS = ["dog", "ball", "tree", "sun"]


def test_initial_prompt_ignores_story_and_choice():
    prompt = build_scene_prompt(
        Language.EN, StoryTone.ADVENTURE, WORDS, "ignored story", "ignored choice",
        ScenePosition.INITIAL,
    )

    assert prompt.position is ScenePosition.INITIAL
    assert "very first scene" in prompt.user
    assert "ignored story" not in prompt.user
    assert "ignored choice" not in prompt.user
    assert "dog, ball, tree, sun" in prompt.system
    assert StoryTone.ADVENTURE.value in prompt.system
    assert "English" in prompt.system


@pytest.mark.parametrize("position", [ScenePosition.NEXT, ScenePosition.FINAL])
def test_continuation_requires_story_so_far(position):
    with pytest.raises(ValueError):
        build_scene_prompt(Language.TH, StoryTone.FUNNY, WORDS, None, "go left", position)
    with pytest.raises(ValueError):
        build_scene_prompt(Language.TH, StoryTone.FUNNY, WORDS, "   ", "go left", position)


def test_next_prompt_uses_no_preference_for_blank_choice():
    prompt = build_scene_prompt(
        Language.EN, StoryTone.ADVENTURE, WORDS, "Once upon a time.", "  ", ScenePosition.NEXT
    )

    assert NO_PREFERENCE_CHOICE in prompt.user
    assert "Once upon a time." in prompt.user


def test_final_prompt_asks_for_resolution_without_choices():
    prompt = build_scene_prompt(
        Language.TH, StoryTone.HEARTWARMING, WORDS, "Once upon a time.", "go left",
        ScenePosition.FINAL, personality=AIPersonality.SILLY,
    )

    assert "FINAL scene" in prompt.user
    assert "choices" in prompt.user
    assert "go left" not in prompt.user
    assert "Thai" in prompt.system
    assert AIPersonality.SILLY.value in prompt.system


def test_scene_prompt_payload_shape():
    prompt = build_scene_prompt(Language.EN, StoryTone.ADVENTURE, WORDS, None, None, "initial")

    payload = prompt.as_payload(image_enabled=True)

    assert payload == {
        "prompt": prompt.user,
        "storyStylePrompt": prompt.system,
        "position": "initial",
        "isImageGenerationEnabled": True,
    }


def test_title_and_vocabulary_prompts():
    title_prompt = build_title_prompt("A dog found a ball.", Language.TH)
    vocabulary_prompt = build_vocabulary_prompt("Food & Drink", count=6)

    assert "A dog found a ball." in title_prompt
    assert "Thai" in title_prompt
    assert "6 vocabulary words" in vocabulary_prompt
    assert '"Food & Drink"' in vocabulary_prompt


def test_image_prompts_reject_empty_subjects():
    with pytest.raises(ValueError):
        build_vocab_image_prompt("  ")
    with pytest.raises(ValueError):
        build_scene_image_prompt("")

    assert "dog" in build_vocab_image_prompt("dog").positive
    assert "A dog ran." in build_scene_image_prompt("A dog ran.", StoryTone.FUNNY).positive


def test_placeholder_urls_are_deterministic():
    assert vocab_placeholder_image_url("ice cream") == vocab_placeholder_image_url("ice cream")
    assert scene_placeholder_image_url("A dog ran.") == scene_placeholder_image_url("A dog ran.")
    assert scene_placeholder_image_url("A dog ran.") != scene_placeholder_image_url("A cat sat.")
    assert vocab_placeholder_image_url("ice cream").startswith("https://loremflickr.com/400/300/")
