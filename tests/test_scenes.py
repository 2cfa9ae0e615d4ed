from __future__ import annotations

import pytest

from wordtales.story_generation import (
    ERROR_WORD,
    VOCABULARY,
    SceneHistory,
    ScenePosition,
    StoryScene,
    Word,
    WordCategory,
    fallback_words,
    parse_scene_payload,
    toggle_word,
)


def _scene(text: str, *choices: str) -> StoryScene:
    return StoryScene(text=text, image_url="https://images.test/x.jpg", choices=choices)


def test_history_concatenates_scenes_in_order():
    history = SceneHistory()
    assert history.story_so_far() == ""
    assert history.last is None

    history.append(_scene("A dog woke up.", "Play", "Sleep"))
    history.append(_scene("It found a ball.", "Kick", "Throw"))
    history.append(_scene("Everyone cheered."))

    assert len(history) == 3
    assert history.story_so_far() == "A dog woke up. It found a ball. Everyone cheered."
    assert history.last.is_final
    assert [scene.text for scene in history][0] == "A dog woke up."


def test_parse_scene_payload_accepts_json_text():
    content = parse_scene_payload(
        '```json\n{"text": " A cat sat. ", "choices": ["Nap", "Eat", " "]}\n```',
        ScenePosition.NEXT,
    )

    assert content.text == "A cat sat."
    assert content.choices == ("Nap", "Eat")
    assert content.image_url is None


def test_parse_scene_payload_keeps_backend_image_url():
    content = parse_scene_payload(
        {"text": "A cat sat.", "choices": ["Nap", "Eat"], "imageUrl": "https://img.test/cat.png"},
        ScenePosition.INITIAL,
    )

    assert content.image_url == "https://img.test/cat.png"


@pytest.mark.parametrize(
    "payload",
    [
        {"text": "", "choices": ["a", "b"]},
        {"text": "Only one choice.", "choices": ["a"]},
        {"text": "Too many.", "choices": ["a", "b", "c", "d"]},
        {"text": "Wrong type.", "choices": "a, b"},
        ["not", "an", "object"],
    ],
)
def test_parse_scene_payload_rejects_invalid_non_final_scenes(payload):
    with pytest.raises(ValueError):
        parse_scene_payload(payload, ScenePosition.NEXT)


def test_parse_scene_payload_drops_final_choices():
    content = parse_scene_payload(
        {"text": "The end.", "choices": ["More?"]}, ScenePosition.FINAL
    )

    assert content.choices == ()


def test_fallback_words_use_category_bank():
    assert fallback_words(WordCategory.FOOD_DRINK) == list(VOCABULARY[WordCategory.FOOD_DRINK])
    assert fallback_words("Animals & Nature") == list(VOCABULARY[WordCategory.ANIMALS_NATURE])
    assert fallback_words("Space Monsters") == [ERROR_WORD]
    assert all(len(bank) >= 4 for bank in VOCABULARY.values())


def test_word_from_mapping_requires_both_languages():
    assert Word.from_mapping({"thai": " แมว ", "english": "cat"}) == Word("แมว", "cat")
    with pytest.raises(ValueError):
        Word.from_mapping({"thai": "แมว"})
    with pytest.raises(ValueError):
        Word.from_mapping({"thai": "แมว", "english": "  "})


def test_toggle_word_respects_limit():
    dog, cat, bird = Word("สุนัข", "dog"), Word("แมว", "cat"), Word("นก", "bird")

    selected = toggle_word([], dog, limit=2)
    selected = toggle_word(selected, cat, limit=2)
    assert toggle_word(selected, bird, limit=2) == [dog, cat]
    assert toggle_word(selected, dog, limit=2) == [cat]
