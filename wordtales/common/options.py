"""
Story options chosen by the child or their grown-up before a story starts.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

_E = TypeVar("_E", bound=Enum)


class Language(str, Enum):
    TH = "th-TH"
    EN = "en-US"

    @property
    def prefix(self) -> str:
        """Primary language subtag, e.g. ``th`` for ``th-TH``."""
        return self.value.split("-", 1)[0]

    @property
    def display_name(self) -> str:
        return "Thai" if self is Language.TH else "English"


class StoryTone(str, Enum):
    ADVENTURE = "Adventure"
    HEARTWARMING = "Heartwarming & Moral"
    FUNNY = "Funny & Humorous"
    DREAMY = "Dreamy & Imaginative"
    MYSTERY = "Mystery & Discovery"
    RELATIONSHIPS = "Relationships"

    @property
    def thai_label(self) -> str:
        return STORY_TONE_THAI[self]


class AIPersonality(str, Enum):
    WARM = "Warm & Friendly"
    WISE = "Wise & Calm"
    ENERGETIC = "Excited & Energetic"
    SILLY = "Silly & Playful"
    BRAVE = "Brave Explorer"

    @property
    def thai_label(self) -> str:
        return AI_PERSONALITY_THAI[self]


STORY_TONE_THAI: dict[StoryTone, str] = {
    StoryTone.ADVENTURE: "ผจญภัย",
    StoryTone.HEARTWARMING: "อบอุ่นและให้ข้อคิด",
    StoryTone.FUNNY: "สนุกสนานและเฮฮา",
    StoryTone.DREAMY: "ความฝันและจินตนาการ",
    StoryTone.MYSTERY: "สืบสวนและไขปริศนา",
    StoryTone.RELATIONSHIPS: "ความสัมพันธ์และมิตรภาพ",
}

AI_PERSONALITY_THAI: dict[AIPersonality, str] = {
    AIPersonality.WARM: "อบอุ่นและเป็นมิตร",
    AIPersonality.WISE: "สุขุมและใจเย็น",
    AIPersonality.ENERGETIC: "ตื่นเต้นและกระตือรือร้น",
    AIPersonality.SILLY: "ขี้เล่นและตลก",
    AIPersonality.BRAVE: "นักสำรวจผู้กล้าหาญ",
}


def coerce_enum(enum_cls: type[_E], value: Any) -> _E:
    """
    Resolve ``value`` to a member of ``enum_cls`` by member, value, or member name.
    """
    if isinstance(value, enum_cls):
        return value

    text = str(value).strip()
    for member in enum_cls:
        if text == member.value or text.upper() == member.name:
            return member

    allowed = ", ".join(member.name for member in enum_cls)
    raise ValueError(f"Unknown {enum_cls.__name__} {value!r}. Expected one of: {allowed}.")
