"""Tests for the coach rule engine."""

from __future__ import annotations

import pytest

from moodiary.analytics.coach import (
    CATCH_ALL_PRIORITY,
    MAX_CTAS,
    RULES,
    CtaId,
    Intent,
    Rule,
    build_rule_table,
    run_coach,
)
from moodiary.analytics.distribution import DistItem
from moodiary.analytics.gate import ReportGate
from moodiary.analytics.report import (
    DeltaDays,
    DeltaType,
    EnergyStats,
    MoodStats,
    ReportStats,
    TopicStats,
    Volume,
    build_report_stats,
)
from moodiary.models import MoodKey, Session, Slot


def _stats(
    ok: bool = True,
    days_recorded: int = 3,
    complete_days: int = 3,
    avg_daily_delta: float | None = None,
    delta_type: DeltaType | None = None,
    delta_days: DeltaDays = DeltaDays(),
    avg_score: float | None = 5.0,
    topic_top: list[DistItem] | None = None,
) -> ReportStats:
    """Stats that pass the gate and trigger nothing but the fallback by default."""
    return ReportStats(
        gate=ReportGate(
            ok=ok,
            required_days=3,
            required_sessions=4,
            days_recorded=days_recorded,
            total_sessions=days_recorded * 2,
        ),
        volume=Volume(
            total_sessions=days_recorded * 2,
            days_recorded=days_recorded,
            complete_days=complete_days,
        ),
        energy=EnergyStats(
            morning_avg=3.0,
            evening_avg=3.0,
            avg_daily_delta=avg_daily_delta,
            delta_type=delta_type,
            delta_days=delta_days,
        ),
        mood=MoodStats(
            order=(),
            labels_ko={},
            distribution={},
            top=[],
            avg_score=avg_score,
        ),
        topic=TopicStats(distribution={}, top=topic_top or []),
    )


def _rule_id(stats: ReportStats) -> str:
    result = run_coach(stats)
    assert result is not None
    return result.rule_id


class TestRuleTable:
    def test_priorities_are_distinct(self) -> None:
        priorities = [r.priority for r in RULES]
        assert len(priorities) == len(set(priorities))

    def test_sorted_descending_with_catch_all_last(self) -> None:
        priorities = [r.priority for r in RULES]
        assert priorities == sorted(priorities, reverse=True)
        assert RULES[-1].priority == CATCH_ALL_PRIORITY
        assert RULES[-1].id == "fallback"

    def test_rejects_shared_priority(self) -> None:
        rules = [
            Rule("a", 10, lambda s: True, lambda s: None),
            Rule("b", 10, lambda s: True, lambda s: None),
            Rule("c", 1, lambda s: True, lambda s: None),
        ]
        with pytest.raises(ValueError, match="share priority"):
            build_rule_table(rules)

    def test_rejects_missing_catch_all(self) -> None:
        with pytest.raises(ValueError, match="catch-all"):
            build_rule_table([Rule("a", 10, lambda s: True, lambda s: None)])

    def test_orders_unsorted_input(self) -> None:
        rules = [
            Rule("low", 1, lambda s: True, lambda s: None),
            Rule("high", 50, lambda s: True, lambda s: None),
        ]
        assert [r.id for r in build_rule_table(rules)] == ["high", "low"]


def test_gate_not_passed_returns_none() -> None:
    assert run_coach(_stats(ok=False, avg_daily_delta=-2.0)) is None


def test_fallback() -> None:
    result = run_coach(_stats())
    assert result is not None
    assert result.rule_id == "fallback"
    assert result.evidence == ()
    assert len(result.ctas) == 1
    assert result.ctas[0].id == CtaId.WRITE_EVENING
    assert result.ctas[0].intent == Intent.PRIMARY


def test_need_complete_days_wins_over_everything() -> None:
    stats = _stats(days_recorded=6, complete_days=2, avg_daily_delta=-2.0, avg_score=1.0)
    result = run_coach(stats)
    assert result is not None
    assert result.rule_id == "need_complete_days"
    assert [c.id for c in result.ctas] == [CtaId.WRITE_EVENING, CtaId.WRITE_MORNING]
    assert "완성된 날: 2일" in result.evidence


def test_need_complete_days_minimum_of_two() -> None:
    assert _rule_id(_stats(days_recorded=3, complete_days=1)) == "need_complete_days"
    assert _rule_id(_stats(days_recorded=3, complete_days=2)) == "fallback"


def test_delta_down_strong() -> None:
    result = run_coach(_stats(avg_daily_delta=-0.6, delta_type=DeltaType.DRAIN))
    assert result is not None
    assert result.rule_id == "delta_down_strong"
    assert [(c.id, c.intent) for c in result.ctas] == [
        (CtaId.SLEEP_HYGIENE, Intent.PRIMARY),
        (CtaId.BREATH_3M, Intent.SECONDARY),
    ]


def test_delta_up_strong() -> None:
    result = run_coach(_stats(avg_daily_delta=0.6, delta_type=DeltaType.RECOVERY))
    assert result is not None
    assert result.rule_id == "delta_up_strong"
    assert [c.id for c in result.ctas] == [CtaId.REVIEW_TOPIC_TOP, CtaId.PLAN_RECOVERY_1]


def test_moderate_recovery_is_not_strong() -> None:
    # 0.55 classifies as recovery but is below the strong-delta cutoff
    stats = _stats(avg_daily_delta=0.55, delta_type=DeltaType.RECOVERY)
    assert _rule_id(stats) == "fallback"


def test_delta_volatile() -> None:
    stats = _stats(
        avg_daily_delta=0.4,
        delta_type=DeltaType.VOLATILE,
        delta_days=DeltaDays(up=2, flat=0, down=1),
    )
    result = run_coach(stats)
    assert result is not None
    assert result.rule_id == "delta_volatile"
    assert result.evidence == ("상승/하락: 2/1일",)
    assert [c.id for c in result.ctas] == [CtaId.PLAN_RECOVERY_1, CtaId.WALK_10M]


def test_mood_low() -> None:
    result = run_coach(_stats(avg_score=3.0))
    assert result is not None
    assert result.rule_id == "mood_low"
    assert [c.id for c in result.ctas] == [CtaId.BREATH_3M, CtaId.WALK_10M]


def test_null_mood_score_fires_neither_mood_rule() -> None:
    assert _rule_id(_stats(avg_score=None)) == "fallback"


def test_topic_skewed_carries_topic() -> None:
    top = [DistItem(key="work", count=6, ratio=0.6), DistItem(key="sleep", count=4, ratio=0.4)]
    result = run_coach(_stats(topic_top=top))
    assert result is not None
    assert result.rule_id == "topic_skewed"
    assert "work" in result.title
    assert result.evidence == ("Top 주제: work (60%)",)
    assert [(c.id, c.payload) for c in result.ctas] == [
        (CtaId.REDUCE_LOAD_1, {"topic": "work"}),
        (CtaId.REVIEW_TOPIC_TOP, {"topic": "work"}),
    ]


def test_topic_below_threshold() -> None:
    top = [DistItem(key="work", count=5, ratio=0.5)]
    assert _rule_id(_stats(topic_top=top)) == "fallback"


def test_mood_low_outranks_topic_skew() -> None:
    top = [DistItem(key="work", count=9, ratio=0.9)]
    assert _rule_id(_stats(avg_score=2.0, topic_top=top)) == "mood_low"


def test_topic_skew_outranks_mood_high() -> None:
    top = [DistItem(key="work", count=9, ratio=0.9)]
    assert _rule_id(_stats(avg_score=7.0, topic_top=top)) == "topic_skewed"


def test_mood_high() -> None:
    result = run_coach(_stats(avg_score=6.0))
    assert result is not None
    assert result.rule_id == "mood_high"
    assert [c.id for c in result.ctas] == [CtaId.WRITE_EVENING, CtaId.PLAN_RECOVERY_1]


def test_stable_next_step() -> None:
    result = run_coach(_stats(avg_daily_delta=0.0, delta_type=DeltaType.STABLE))
    assert result is not None
    assert result.rule_id == "stable_next_step"
    assert [c.id for c in result.ctas] == [CtaId.PLAN_RECOVERY_1, CtaId.WALK_10M]


@pytest.mark.parametrize(
    "stats",
    [
        _stats(),
        _stats(days_recorded=6, complete_days=0),
        _stats(avg_daily_delta=-1.0),
        _stats(avg_daily_delta=1.0),
        _stats(avg_daily_delta=0.4, delta_type=DeltaType.VOLATILE),
        _stats(avg_score=1.0),
        _stats(avg_score=8.0),
        _stats(topic_top=[DistItem(key="t", count=1, ratio=1.0)]),
        _stats(avg_daily_delta=0.0, delta_type=DeltaType.STABLE),
    ],
)
def test_every_result_is_well_formed(stats: ReportStats) -> None:
    result = run_coach(stats)
    assert result is not None
    assert 1 <= len(result.ctas) <= MAX_CTAS
    assert result.ctas[0].intent == Intent.PRIMARY
    assert all(c.intent == Intent.SECONDARY for c in result.ctas[1:])
    assert run_coach(stats) == result


def test_topic_concentration_from_sessions() -> None:
    def s(day: str, slot: Slot, topics: tuple[str, ...]) -> Session:
        return Session(date=day, slot=slot, mood=MoodKey.CALM, energy=3, topics=topics)

    sessions = [
        s("2026-01-05", Slot.MORNING, ("work",)),
        s("2026-01-05", Slot.EVENING, ("work", "sleep")),
        s("2026-01-06", Slot.MORNING, ("work",)),
        s("2026-01-06", Slot.EVENING, ("work",)),
        s("2026-01-07", Slot.MORNING, ("family",)),
    ]
    stats = build_report_stats("7d", sessions)
    assert stats.gate.ok is True
    assert stats.topic.top[0].key == "work"
    assert stats.topic.top[0].ratio >= 0.6

    result = run_coach(stats)
    assert result is not None
    assert result.rule_id == "topic_skewed"
    assert all(c.payload["topic"] == "work" for c in result.ctas)


def test_result_is_read_only() -> None:
    top = [DistItem(key="work", count=6, ratio=0.6)]
    result = run_coach(_stats(topic_top=top))
    assert result is not None
    with pytest.raises(AttributeError):
        result.evidence.append("extra")
    with pytest.raises(AttributeError):
        result.ctas.clear()
    with pytest.raises(TypeError):
        result.ctas[0].payload["topic"] = "sleep"
    assert result.ctas[0].payload == {"topic": "work"}


def test_topic_percent_rounds_half_up() -> None:
    top = [DistItem(key="work", count=5, ratio=0.625)]
    result = run_coach(_stats(topic_top=top))
    assert result is not None
    assert result.evidence == ("Top 주제: work (63%)",)
