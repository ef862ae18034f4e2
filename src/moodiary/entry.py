"""Validation for new or edited diary entries."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date as Date

from .models import ENERGY_MAX, ENERGY_MIN, MoodKey, Session, Slot

MAX_TOPICS = 5
NOTE_MAX = 300

BASE_TOPIC_PRESETS: tuple[str, ...] = (
    "일/업무",
    "공부/성장",
    "운동/건강",
    "식사/체중",
    "수면",
    "가족",
    "연인/소개팅",
    "친구",
    "인간관계",
    "돈/소비",
    "취미/여가",
    "멘탈/불안",
)


class EntryValidationError(ValueError):
    """Raised when an entry cannot be saved as given."""


def clean_topics(values: Iterable[object] | None) -> list[str]:
    """Trim, drop empties and dedupe while keeping the first occurrence."""
    if values is None:
        return []
    cleaned: list[str] = []
    for v in values:
        t = str(v if v is not None else "").strip()
        if t and t not in cleaned:
            cleaned.append(t)
    return cleaned


def topic_choices(user_presets: Iterable[str] = ()) -> list[str]:
    """Built-in topics followed by the user's own presets."""
    return clean_topics([*BASE_TOPIC_PRESETS, *user_presets])


def build_entry(
    date: str,
    slot: str,
    mood: str,
    energy: int,
    topics: Iterable[object],
    note: str = "",
) -> Session:
    """Validate form input and build a Session.

    Raises:
        EntryValidationError: With a message suitable for showing the user.
    """
    try:
        Date.fromisoformat(date)
    except (TypeError, ValueError):
        raise EntryValidationError(f"날짜 형식이 잘못됐어 (YYYY-MM-DD): {date}") from None
    if len(date) != 10:
        raise EntryValidationError(f"날짜 형식이 잘못됐어 (YYYY-MM-DD): {date}")

    try:
        slot_value = Slot(slot)
    except ValueError:
        raise EntryValidationError(f"슬롯은 morning 또는 evening: {slot}") from None

    try:
        mood_value = MoodKey(mood)
    except ValueError:
        choices = ", ".join(m.value for m in MoodKey)
        raise EntryValidationError(f"알 수 없는 무드: {mood} ({choices})") from None

    if not isinstance(energy, int) or not ENERGY_MIN <= energy <= ENERGY_MAX:
        raise EntryValidationError(f"에너지는 {ENERGY_MIN}~{ENERGY_MAX} 사이: {energy}")

    cleaned = clean_topics(topics)
    if len(cleaned) < 1:
        raise EntryValidationError("토픽을 1개 이상 선택해줘")
    if len(cleaned) > MAX_TOPICS:
        raise EntryValidationError(f"토픽은 최대 {MAX_TOPICS}개까지 가능")

    trimmed_note = (note or "").strip()
    if len(trimmed_note) > NOTE_MAX:
        raise EntryValidationError(f"메모는 {NOTE_MAX}자 이내로 적어줘")

    return Session(
        date=date,
        slot=slot_value,
        mood=mood_value,
        energy=energy,
        topics=tuple(cleaned),
        note=trimmed_note,
    )
