"""Report statistics over a window of sessions.

Pure aggregation: no I/O, no mutation of inputs. Insufficient data is never
an error here; the gate travels with the result and the caller decides
whether to show the numbers.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from types import MappingProxyType

from moodiary.analytics.distribution import DistItem, build_distribution
from moodiary.analytics.gate import ReportGate, ReportRange, get_gate
from moodiary.models import MOOD_LABEL_KO, MOOD_ORDER, Session, Slot

TOP_N = 2

# Delta classification cutoffs
RECOVERY_CUTOFF = 0.5
DRAIN_CUTOFF = -0.5
STABLE_BAND = 0.3


class DeltaType(str, Enum):
    RECOVERY = "회복형"
    DRAIN = "소모형"
    STABLE = "안정형"
    VOLATILE = "변동형"


@dataclass(frozen=True)
class Volume:
    total_sessions: int
    days_recorded: int
    complete_days: int  # dates with both morning and evening


@dataclass(frozen=True)
class DeltaDays:
    up: int = 0
    flat: int = 0
    down: int = 0


@dataclass(frozen=True)
class EnergyStats:
    morning_avg: float | None
    evening_avg: float | None
    avg_daily_delta: float | None
    delta_type: DeltaType | None
    delta_days: DeltaDays


@dataclass(frozen=True)
class MoodStats:
    order: tuple[str, ...]
    labels_ko: Mapping[str, str]
    distribution: Mapping[str, int]  # all 8 keys, zero-filled
    top: tuple[DistItem, ...]
    avg_score: float | None  # 1-8


@dataclass(frozen=True)
class TopicStats:
    distribution: Mapping[str, int]
    top: tuple[DistItem, ...]


@dataclass(frozen=True)
class ReportStats:
    gate: ReportGate
    volume: Volume
    energy: EnergyStats
    mood: MoodStats
    topic: TopicStats
    range: ReportRange | None = None


def round1(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def percent(ratio: float) -> int:
    """Ratio as a whole percentage, half away from zero (0.125 -> 13)."""
    return int(Decimal(str(ratio * 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def safe_avg(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return round1(sum(values) / len(values))


def classify_delta(avg_daily_delta: float | None) -> DeltaType | None:
    """Map the mean daily delta onto a delta type; first match wins."""
    if avg_daily_delta is None:
        return None
    if avg_daily_delta > RECOVERY_CUTOFF:
        return DeltaType.RECOVERY
    if avg_daily_delta < DRAIN_CUTOFF:
        return DeltaType.DRAIN
    if abs(avg_daily_delta) < STABLE_BAND:
        return DeltaType.STABLE
    # Mixed up/down days and the remaining band both land here
    return DeltaType.VOLATILE


def pair_by_date(sessions: Iterable[Session]) -> dict[str, dict[Slot, Session]]:
    """Group sessions per date and slot. A later duplicate replaces an earlier one."""
    by_date: dict[str, dict[Slot, Session]] = {}
    for s in sessions:
        by_date.setdefault(s.date, {})[s.slot] = s
    return by_date


def _energy_stats(sessions: Sequence[Session]) -> tuple[EnergyStats, int]:
    morning = [s.energy for s in sessions if s.slot == Slot.MORNING]
    evening = [s.energy for s in sessions if s.slot == Slot.EVENING]

    deltas: list[int] = []
    for slots in pair_by_date(sessions).values():
        if Slot.MORNING in slots and Slot.EVENING in slots:
            deltas.append(slots[Slot.EVENING].energy - slots[Slot.MORNING].energy)

    delta_days = DeltaDays(
        up=sum(1 for d in deltas if d > 0),
        flat=sum(1 for d in deltas if d == 0),
        down=sum(1 for d in deltas if d < 0),
    )
    avg_daily_delta = safe_avg(deltas)
    stats = EnergyStats(
        morning_avg=safe_avg(morning),
        evening_avg=safe_avg(evening),
        avg_daily_delta=avg_daily_delta,
        delta_type=classify_delta(avg_daily_delta),
        delta_days=delta_days,
    )
    return stats, len(deltas)


def _mood_stats(sessions: Sequence[Session]) -> MoodStats:
    distribution = {mood.value: 0 for mood in MOOD_ORDER}
    for s in sessions:
        distribution[s.mood.value] += 1

    return MoodStats(
        order=tuple(mood.value for mood in MOOD_ORDER),
        labels_ko=MappingProxyType({mood.value: MOOD_LABEL_KO[mood] for mood in MOOD_ORDER}),
        distribution=MappingProxyType(distribution),
        top=tuple(build_distribution(s.mood.value for s in sessions)[:TOP_N]),
        avg_score=safe_avg([s.mood_score for s in sessions]),
    )


def _topic_stats(sessions: Sequence[Session]) -> TopicStats:
    # Multi-label: a session with N topics contributes N mentions
    mentions = [topic for s in sessions for topic in s.topics]
    distribution: dict[str, int] = {}
    for topic in mentions:
        distribution[topic] = distribution.get(topic, 0) + 1

    return TopicStats(
        distribution=MappingProxyType(distribution),
        top=tuple(build_distribution(mentions)[:TOP_N]),
    )


def build_report_stats(
    mode: str,
    sessions: Sequence[Session],
    date_range: ReportRange | None = None,
) -> ReportStats:
    """Aggregate a window of sessions into one statistics snapshot.

    Args:
        mode: Report mode ("7d" or "30d").
        sessions: Every session inside the window, in any order.
        date_range: Optional window to echo back; its mode is set to ``mode``.

    Returns:
        ReportStats with gate, volume, energy, mood and topic aggregates.
    """
    sessions = list(sessions)
    gate = get_gate(mode, sessions)
    energy, complete_days = _energy_stats(sessions)

    echoed = None
    if date_range is not None:
        echoed = dataclasses.replace(date_range, mode=mode)

    return ReportStats(
        gate=gate,
        volume=Volume(
            total_sessions=gate.total_sessions,
            days_recorded=gate.days_recorded,
            complete_days=complete_days,
        ),
        energy=energy,
        mood=_mood_stats(sessions),
        topic=_topic_stats(sessions),
        range=echoed,
    )
