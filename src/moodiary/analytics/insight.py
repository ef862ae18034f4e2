"""One-line summary and badges for a single day."""

from __future__ import annotations

from dataclasses import dataclass

from moodiary.models import Session

MAX_BADGES = 3
BIG_DELTA = 2
HIGH_ENERGY = 4
LOW_ENERGY = 2


@dataclass(frozen=True)
class Badge:
    key: str
    label: str
    tone: str  # good / neutral / bad


@dataclass(frozen=True)
class DailyInsight:
    line: str
    badges: tuple[Badge, ...] = ()


def _delta_line(delta: int) -> str:
    if delta >= 2:
        return "아침보다 저녁 에너지가 확실히 높아졌어. 회복한 날이다."
    if delta == 1:
        return "아침보다 저녁 에너지가 조금 올랐어. 흐름이 괜찮다."
    if delta == 0:
        return "아침과 저녁 에너지가 비슷했어. 안정적인 하루다."
    if delta == -1:
        return "저녁에 에너지가 조금 줄었어. 소모가 있었던 날이다."
    return "저녁에 에너지가 크게 줄었어. 무리했을 가능성이 크다."


def _shared_focus(morning: Session, evening: Session) -> str | None:
    """The topic both sessions were about, if each had exactly that one topic."""
    if len(morning.topics) == 1 and morning.topics == evening.topics:
        return morning.topics[0]
    return None


def build_daily_insight(
    morning: Session | None = None,
    evening: Session | None = None,
) -> DailyInsight:
    """Summarise one day from its morning and evening sessions (either may be missing)."""
    if morning is None and evening is None:
        return DailyInsight(
            line="아직 기록이 없다. 아침 또는 저녁부터 가볍게 시작해봐.",
            badges=(Badge("no_record", "미기록", "neutral"),),
        )

    if evening is None:
        return DailyInsight(
            line="아침 기록은 완료. 저녁까지 채우면 ‘변화’가 완성된다.",
            badges=(Badge("half", "부분 기록", "neutral"),),
        )

    if morning is None:
        return DailyInsight(
            line="저녁 기록은 완료. 아침을 추가하면 하루 변화가 더 선명해진다.",
            badges=(Badge("half", "부분 기록", "neutral"),),
        )

    morning_energy = morning.energy or 0
    evening_energy = evening.energy or 0
    delta = evening_energy - morning_energy

    badges: list[Badge] = []
    if delta >= 1:
        badges.append(Badge("recover", "회복형 하루", "good"))
    elif delta <= -1:
        badges.append(Badge("drain", "소모형 하루", "bad"))
    else:
        badges.append(Badge("stable", "안정형 하루", "neutral"))

    if abs(delta) >= BIG_DELTA:
        badges.append(Badge("big_delta", "변화 큼", "good" if delta > 0 else "bad"))

    focus = _shared_focus(morning, evening)
    if focus:
        badges.append(Badge("focus", f"{focus} 집중", "neutral"))

    avg = min(5.0, max(1.0, (morning_energy + evening_energy) / 2))
    if avg >= HIGH_ENERGY:
        badges.append(Badge("high_energy", "고에너지", "good"))
    elif avg <= LOW_ENERGY:
        badges.append(Badge("low_energy", "저에너지", "bad"))

    return DailyInsight(line=_delta_line(delta), badges=tuple(badges[:MAX_BADGES]))
