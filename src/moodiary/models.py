"""Session records and the mood scale."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Slot(str, Enum):
    """The two recording windows of a day."""

    MORNING = "morning"
    EVENING = "evening"


class MoodKey(str, Enum):
    """Mood categories, ordered negative to positive."""

    VERY_BAD = "very_bad"
    SAD = "sad"
    ANXIOUS = "anxious"
    ANGRY = "angry"
    CALM = "calm"
    CONTENT = "content"
    GOOD = "good"
    VERY_GOOD = "very_good"


MOOD_ORDER: tuple[MoodKey, ...] = tuple(MoodKey)

MOOD_SCORE: dict[MoodKey, int] = {mood: i + 1 for i, mood in enumerate(MOOD_ORDER)}

MOOD_LABEL_KO: dict[MoodKey, str] = {
    MoodKey.VERY_BAD: "완전↓",
    MoodKey.SAD: "다운",
    MoodKey.ANXIOUS: "불안",
    MoodKey.ANGRY: "짜증",
    MoodKey.CALM: "평온",
    MoodKey.CONTENT: "만족",
    MoodKey.GOOD: "좋음",
    MoodKey.VERY_GOOD: "최고↑",
}

ENERGY_MIN = 1
ENERGY_MAX = 5


def normalize_topics(topics: Any = None, legacy_topic: Any = None) -> tuple[str, ...]:
    """Collapse the multi-topic list and the legacy single topic into one tuple.

    The ``topics`` list wins when it holds at least one usable entry; otherwise
    the legacy ``topic`` string is wrapped. Entries are trimmed, empties are
    dropped and duplicates removed in first-seen order.
    """
    if isinstance(topics, (list, tuple)):
        cleaned = _dedupe(str(t).strip() for t in topics if t is not None)
        if cleaned:
            return cleaned
    if isinstance(legacy_topic, str) and legacy_topic.strip():
        return (legacy_topic.strip(),)
    return ()


def _dedupe(values) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for v in values:
        if v:
            seen.setdefault(v, None)
    return tuple(seen)


def make_entry_id(date: str, slot: Slot | str) -> str:
    """Build the storage key for a session, e.g. ``2026-01-07_morning``."""
    return f"{date}_{Slot(slot).value}"


def parse_entry_id(entry_id: str) -> tuple[str, Slot]:
    """Split an entry id back into ``(date, slot)``."""
    date, sep, slot = entry_id.rpartition("_")
    if not sep or not date:
        raise ValueError(f"Malformed entry id: {entry_id!r}")
    return date, Slot(slot)


@dataclass(frozen=True)
class Session:
    """One recorded mood/energy entry for a date and slot."""

    date: str  # YYYY-MM-DD, local civil date
    slot: Slot
    mood: MoodKey
    energy: int  # 1-5
    topics: tuple[str, ...] = field(default_factory=tuple)
    note: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        # Every construction path goes through here, so topics are always clean
        object.__setattr__(self, "slot", Slot(self.slot))
        object.__setattr__(self, "mood", MoodKey(self.mood))
        object.__setattr__(self, "topics", normalize_topics(list(self.topics or ())))

    @property
    def entry_id(self) -> str:
        return make_entry_id(self.date, self.slot)

    @property
    def mood_score(self) -> int:
        return MOOD_SCORE[self.mood]

    @classmethod
    def from_dict(cls, data: dict) -> Session:
        """Parse a stored document.

        Accepts both the ``topics`` list and the legacy ``topic`` string.
        Raises ValueError on an unknown slot or mood, or energy out of range.
        """
        energy = int(data.get("energy") or 0)
        if not ENERGY_MIN <= energy <= ENERGY_MAX:
            raise ValueError(f"Energy out of range: {energy}")
        return cls(
            date=str(data["date"]),
            slot=Slot(data["slot"]),
            mood=MoodKey(data["mood"]),
            energy=energy,
            topics=normalize_topics(data.get("topics"), data.get("topic")),
            note=str(data.get("note") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )

    def to_dict(self) -> dict:
        """Serialize to the stored document shape.

        The first topic is mirrored into ``topic`` so older readers keep working.
        """
        return {
            "date": self.date,
            "slot": self.slot.value,
            "mood": self.mood.value,
            "energy": self.energy,
            "topics": list(self.topics),
            "topic": self.topics[0] if self.topics else "",
            "note": self.note,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
