"""Rule-based coaching over report statistics.

The rule table is a priority-ordered decision list. Exactly one rule fires:
the highest-priority rule whose predicate holds. The table is checked when
it is built: priorities are unique and a priority-1 catch-all closes it.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from moodiary.analytics.report import DeltaType, ReportStats, percent

MAX_CTAS = 2
CATCH_ALL_PRIORITY = 1

STRONG_DELTA = 0.6
TOPIC_SKEW_RATIO = 0.6
LOW_MOOD_SCORE = 3
HIGH_MOOD_SCORE = 6


class CtaId(str, Enum):
    WRITE_MORNING = "WRITE_MORNING"
    WRITE_EVENING = "WRITE_EVENING"
    BREATH_3M = "BREATH_3M"
    WALK_10M = "WALK_10M"
    SLEEP_HYGIENE = "SLEEP_HYGIENE"
    PLAN_RECOVERY_1 = "PLAN_RECOVERY_1"
    REDUCE_LOAD_1 = "REDUCE_LOAD_1"
    REVIEW_TOPIC_TOP = "REVIEW_TOPIC_TOP"


class Intent(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class CoachCTA:
    id: CtaId
    title: str
    intent: Intent
    payload: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class CoachResult:
    rule_id: str
    title: str
    message: str
    evidence: tuple[str, ...] = ()
    ctas: tuple[CoachCTA, ...] = ()


@dataclass(frozen=True)
class Rule:
    id: str
    priority: int
    when: Callable[[ReportStats], bool]
    build: Callable[[ReportStats], CoachResult]


def _primary(cta_id: CtaId, title: str, **payload: Any) -> CoachCTA:
    return CoachCTA(id=cta_id, title=title, intent=Intent.PRIMARY,
                    payload=MappingProxyType(payload))


def _secondary(cta_id: CtaId, title: str, **payload: Any) -> CoachCTA:
    return CoachCTA(id=cta_id, title=title, intent=Intent.SECONDARY,
                    payload=MappingProxyType(payload))


def _result(rule_id: str, title: str, message: str, evidence: list[str],
            ctas: list[CoachCTA]) -> CoachResult:
    return CoachResult(
        rule_id=rule_id,
        title=title,
        message=message,
        evidence=tuple(evidence),
        ctas=tuple(ctas[:MAX_CTAS]),
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _needs_complete_days(s: ReportStats) -> bool:
    target = max(2, math.floor(s.volume.days_recorded * 0.5))
    return s.volume.complete_days < target


def _delta_down_strong(s: ReportStats) -> bool:
    return (s.energy.avg_daily_delta or 0) <= -STRONG_DELTA


def _delta_up_strong(s: ReportStats) -> bool:
    return (s.energy.avg_daily_delta or 0) >= STRONG_DELTA


def _delta_volatile(s: ReportStats) -> bool:
    return s.energy.delta_type == DeltaType.VOLATILE


def _mood_low(s: ReportStats) -> bool:
    score = s.mood.avg_score if s.mood.avg_score is not None else 99
    return score <= LOW_MOOD_SCORE


def _topic_skewed(s: ReportStats) -> bool:
    return bool(s.topic.top) and s.topic.top[0].ratio >= TOPIC_SKEW_RATIO


def _mood_high(s: ReportStats) -> bool:
    score = s.mood.avg_score if s.mood.avg_score is not None else 0
    return score >= HIGH_MOOD_SCORE


def _stable(s: ReportStats) -> bool:
    return s.energy.delta_type == DeltaType.STABLE


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def _build_need_complete_days(s: ReportStats) -> CoachResult:
    return _result(
        "need_complete_days",
        "아침+저녁 세트를 늘리면 분석이 확 좋아져",
        "Delta는 아침+저녁이 모두 있는 날만 계산돼. 이번 기간엔 ‘완성된 날’이 적어서 "
        "패턴 확정은 아직 이르다. 먼저 저녁 기록부터 고정해봐.",
        [f"완성된 날: {s.volume.complete_days}일", f"기록한 날: {s.volume.days_recorded}일"],
        [
            _primary(CtaId.WRITE_EVENING, "오늘 저녁 기록하기", slot="evening"),
            _secondary(CtaId.WRITE_MORNING, "내일 아침 기록하기", slot="morning"),
        ],
    )


def _build_delta_down_strong(s: ReportStats) -> CoachResult:
    return _result(
        "delta_down_strong",
        "저녁으로 갈수록 에너지 소모가 누적돼",
        "최근 기간에서 아침 대비 저녁 에너지가 평균적으로 내려갔어. "
        "‘수면/식사/과부하’ 중 하나만 고정해서 원인을 좁혀보자.",
        [f"평균 Δ: {s.energy.avg_daily_delta}", f"하락일: {s.energy.delta_days.down}일"],
        [
            _primary(CtaId.SLEEP_HYGIENE, "오늘 수면 루틴 1개 고정"),
            _secondary(CtaId.BREATH_3M, "3분 호흡"),
        ],
    )


def _build_delta_up_strong(s: ReportStats) -> CoachResult:
    return _result(
        "delta_up_strong",
        "회복 요인이 반복되고 있어",
        "최근 기간에서 저녁 에너지가 더 높게 끝나는 날이 많아. "
        "지금의 회복 조건을 ‘주제’와 같이 기록하면 재현이 쉬워진다.",
        [f"평균 Δ: {s.energy.avg_daily_delta}", f"상승일: {s.energy.delta_days.up}일"],
        [
            _primary(CtaId.REVIEW_TOPIC_TOP, "회복됐던 날 주제 확인하기"),
            _secondary(CtaId.PLAN_RECOVERY_1, "내일 회복 1개 예약"),
        ],
    )


def _build_delta_volatile(s: ReportStats) -> CoachResult:
    days = s.energy.delta_days
    return _result(
        "delta_volatile",
        "상승/하락이 섞여 있어. 변수 1개만 줄이자",
        "평균만 보면 애매하지만 상승과 하락이 같이 나타나고 있어. "
        "‘고정 루틴 1개’를 넣으면 원인 후보를 빠르게 걸러낼 수 있다.",
        [f"상승/하락: {days.up}/{days.down}일"],
        [
            _primary(CtaId.PLAN_RECOVERY_1, "내일 회복 루틴 1개 고정"),
            _secondary(CtaId.WALK_10M, "10분 걷기"),
        ],
    )


def _build_mood_low(s: ReportStats) -> CoachResult:
    return _result(
        "mood_low",
        "기분 점수가 낮은 구간이야",
        "에너지랑 별개로, 긴장 완충 행동(짧은 호흡/걷기)을 먼저 넣는 게 효율적이야.",
        [f"평균 무드 점수: {s.mood.avg_score}/8"],
        [
            _primary(CtaId.BREATH_3M, "3분 호흡"),
            _secondary(CtaId.WALK_10M, "10분 걷기"),
        ],
    )


def _build_topic_skewed(s: ReportStats) -> CoachResult:
    top = s.topic.top[0]
    return _result(
        "topic_skewed",
        f"이번 기간은 ‘{top.key}’에 많이 쏠렸어",
        "주제가 쏠리면 에너지/기분 변동도 그 주제 영향일 가능성이 커져. "
        "‘부하 1개 줄이기’나 ‘회복 1개 추가’를 실험해봐.",
        [f"Top 주제: {top.key} ({percent(top.ratio)}%)"],
        [
            _primary(CtaId.REDUCE_LOAD_1, "부하 1개 줄이기", topic=top.key),
            _secondary(CtaId.REVIEW_TOPIC_TOP, "해당 주제 모아보기", topic=top.key),
        ],
    )


def _build_mood_high(s: ReportStats) -> CoachResult:
    return _result(
        "mood_high",
        "기분 흐름은 꽤 안정적이야",
        "좋음 쪽 분포가 우세해. 저녁 기록을 빼먹지 않고 회복 조건을 계속 수집하면 더 좋아진다.",
        [f"평균 무드 점수: {s.mood.avg_score}/8"],
        [
            _primary(CtaId.WRITE_EVENING, "오늘 저녁 기록하기", slot="evening"),
            _secondary(CtaId.PLAN_RECOVERY_1, "내일 회복 1개 예약"),
        ],
    )


def _build_stable(s: ReportStats) -> CoachResult:
    return _result(
        "stable_next_step",
        "큰 변화는 없고, 이제는 ‘실험’이 효율적이야",
        "안정형이면 유지에는 강점이 있어. 다음 단계는 ‘작은 실험 1개’를 넣어서 "
        "더 좋아질 여지를 찾는 거다.",
        [f"deltaType: {DeltaType.STABLE.value}"],
        [
            _primary(CtaId.PLAN_RECOVERY_1, "내일 작은 회복 실험 1개"),
            _secondary(CtaId.WALK_10M, "10분 걷기 실험"),
        ],
    )


def _build_fallback(s: ReportStats) -> CoachResult:
    return _result(
        "fallback",
        "다음 기록으로 패턴을 더 선명하게 만들자",
        "오늘은 기록 1회만 더 해도 다음 리포트 품질이 오른다.",
        [],
        [_primary(CtaId.WRITE_EVENING, "오늘 저녁 기록하기", slot="evening")],
    )


def build_rule_table(rules: Iterable[Rule]) -> tuple[Rule, ...]:
    """Sort rules by priority and validate the table.

    Raises:
        ValueError: If two rules share a priority or no catch-all exists.
    """
    ordered = tuple(sorted(rules, key=lambda r: r.priority, reverse=True))
    seen: dict[int, str] = {}
    for rule in ordered:
        if rule.priority in seen:
            raise ValueError(
                f"Rules {seen[rule.priority]!r} and {rule.id!r} share priority {rule.priority}"
            )
        seen[rule.priority] = rule.id
    if not ordered or ordered[-1].priority != CATCH_ALL_PRIORITY:
        raise ValueError(f"Rule table needs a catch-all rule with priority {CATCH_ALL_PRIORITY}")
    return ordered


RULES: tuple[Rule, ...] = build_rule_table([
    Rule("need_complete_days", 100, _needs_complete_days, _build_need_complete_days),
    Rule("delta_down_strong", 90, _delta_down_strong, _build_delta_down_strong),
    Rule("delta_up_strong", 80, _delta_up_strong, _build_delta_up_strong),
    Rule("delta_volatile", 70, _delta_volatile, _build_delta_volatile),
    Rule("mood_low", 65, _mood_low, _build_mood_low),
    Rule("topic_skewed", 60, _topic_skewed, _build_topic_skewed),
    Rule("mood_high", 55, _mood_high, _build_mood_high),
    Rule("stable_next_step", 40, _stable, _build_stable),
    Rule("fallback", CATCH_ALL_PRIORITY, lambda s: True, _build_fallback),
])


def select_rule(stats: ReportStats, rules: tuple[Rule, ...] = RULES) -> Rule:
    """Return the highest-priority rule whose predicate holds."""
    for rule in rules:
        if rule.when(stats):
            return rule
    raise RuntimeError("Rule table has no matching rule")  # unreachable with a catch-all


def run_coach(stats: ReportStats, rules: tuple[Rule, ...] = RULES) -> CoachResult | None:
    """Pick one coaching message, or None when the gate has not passed."""
    if not stats.gate.ok:
        return None
    return select_rule(stats, rules).build(stats)
