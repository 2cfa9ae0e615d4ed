"""
Vocabulary words, categories, and the built-in word banks used when generation fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence


@dataclass(frozen=True)
class Word:
    """
    A vocabulary word in Thai with its English reference term.
    """

    thai: str
    english: str

    def as_dict(self) -> dict[str, str]:
        return {"thai": self.thai, "english": self.english}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Word":
        try:
            thai = str(data["thai"]).strip()
            english = str(data["english"]).strip()
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid word payload: {data!r}") from exc

        if not thai or not english:
            raise ValueError(f"Word payload is missing thai or english text: {data!r}")
        return cls(thai=thai, english=english)


@dataclass(frozen=True)
class PreloadedWord:
    """A word together with the illustration shown on its vocabulary card."""

    word: Word
    image_url: str


class WordCategory(str, Enum):
    ANIMALS_NATURE = "Animals & Nature"
    FAMILY_PEOPLE = "Family & People"
    FOOD_DRINK = "Food & Drink"
    THINGS_TOYS = "Things & Toys"
    PLACES_ENVIRONMENT = "Places & Environment"
    ACTIONS_EMOTIONS = "Actions & Emotions"

    @property
    def thai_label(self) -> str:
        return WORD_CATEGORY_THAI[self]


WORD_CATEGORY_THAI: dict[WordCategory, str] = {
    WordCategory.ANIMALS_NATURE: "สัตว์และธรรมชาติ",
    WordCategory.FAMILY_PEOPLE: "ครอบครัวและผู้คน",
    WordCategory.FOOD_DRINK: "อาหารและเครื่องดื่ม",
    WordCategory.THINGS_TOYS: "สิ่งของและของเล่น",
    WordCategory.PLACES_ENVIRONMENT: "สถานที่และสิ่งแวดล้อม",
    WordCategory.ACTIONS_EMOTIONS: "การกระทำและอารมณ์",
}

# Sentinel returned when no word bank exists for a requested category.
ERROR_WORD = Word(thai="ข้อผิดพลาด", english="error")


def _bank(pairs: Iterable[tuple[str, str]]) -> tuple[Word, ...]:
    return tuple(Word(thai=thai, english=english) for thai, english in pairs)


VOCABULARY: dict[WordCategory, tuple[Word, ...]] = {
    WordCategory.ANIMALS_NATURE: _bank(
        [
            ("สุนัข", "dog"),
            ("แมว", "cat"),
            ("ช้าง", "elephant"),
            ("นก", "bird"),
            ("ปลา", "fish"),
            ("ผีเสื้อ", "butterfly"),
            ("ดอกไม้", "flower"),
            ("ต้นไม้", "tree"),
        ]
    ),
    WordCategory.FAMILY_PEOPLE: _bank(
        [
            ("แม่", "mother"),
            ("พ่อ", "father"),
            ("พี่ชาย", "older brother"),
            ("น้องสาว", "younger sister"),
            ("คุณยาย", "grandmother"),
            ("คุณตา", "grandfather"),
            ("เพื่อน", "friend"),
            ("คุณครู", "teacher"),
        ]
    ),
    WordCategory.FOOD_DRINK: _bank(
        [
            ("ข้าว", "rice"),
            ("นม", "milk"),
            ("กล้วย", "banana"),
            ("แอปเปิ้ล", "apple"),
            ("ไข่", "egg"),
            ("น้ำ", "water"),
            ("ขนมปัง", "bread"),
            ("ส้ม", "orange"),
        ]
    ),
    WordCategory.THINGS_TOYS: _bank(
        [
            ("ลูกบอล", "ball"),
            ("ตุ๊กตา", "doll"),
            ("รถ", "car"),
            ("หนังสือ", "book"),
            ("ว่าว", "kite"),
            ("ตัวต่อ", "blocks"),
            ("ดินสอ", "pencil"),
            ("หมวก", "hat"),
        ]
    ),
    WordCategory.PLACES_ENVIRONMENT: _bank(
        [
            ("บ้าน", "house"),
            ("โรงเรียน", "school"),
            ("สวน", "garden"),
            ("ทะเล", "sea"),
            ("ภูเขา", "mountain"),
            ("แม่น้ำ", "river"),
            ("ป่า", "forest"),
            ("ชายหาด", "beach"),
        ]
    ),
    WordCategory.ACTIONS_EMOTIONS: _bank(
        [
            ("วิ่ง", "run"),
            ("กระโดด", "jump"),
            ("กิน", "eat"),
            ("นอน", "sleep"),
            ("มีความสุข", "happy"),
            ("เศร้า", "sad"),
            ("หัวเราะ", "laugh"),
            ("ร้องเพลง", "sing"),
        ]
    ),
}


def fallback_words(category: WordCategory | str) -> list[Word]:
    """
    Return the built-in word bank for ``category``, or ``[ERROR_WORD]`` when there is none.
    """
    try:
        resolved = category if isinstance(category, WordCategory) else WordCategory(category)
    except ValueError:
        return [ERROR_WORD]
    return list(VOCABULARY.get(resolved, (ERROR_WORD,)))


def toggle_word(selected: Sequence[Word], word: Word, *, limit: int) -> list[Word]:
    """
    Add ``word`` to the selection, or remove it if already chosen. Selections never exceed ``limit``.
    """
    if any(item.english == word.english for item in selected):
        return [item for item in selected if item.english != word.english]
    if len(selected) < limit:
        return [*selected, word]
    return list(selected)
