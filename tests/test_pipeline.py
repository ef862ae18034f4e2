"""Tests for report orchestration and Markdown formatting."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from moodiary.analytics.report import build_report_stats
from moodiary.formatter import format_daily_insight, format_month, format_report
from moodiary.models import MoodKey, Session, Slot
from moodiary.pipeline import ReportBundle, run_month, run_report, run_today
from moodiary.store import JsonStore

TODAY = date(2026, 1, 10)


def _seed(store: JsonStore, days: list[tuple[str, int, int]], topics=("work",)) -> None:
    for day, morning, evening in days:
        for slot, energy in ((Slot.MORNING, morning), (Slot.EVENING, evening)):
            store.upsert_session(
                "u1",
                Session(date=day, slot=slot, mood=MoodKey.GOOD, energy=energy, topics=topics),
            )


def test_report_below_gate(tmp_path: Path) -> None:
    store = JsonStore(tmp_path / "diary.json")
    _seed(store, [("2026-01-09", 2, 4)])

    bundle = run_report(store, "u1", "7d", TODAY)
    assert bundle.stats.gate.ok is False
    assert bundle.coach is None
    assert len(bundle.sessions) == 2

    text = format_report(bundle)
    assert "데이터가 부족해" in text
    assert "진행: 1/3일 · 세션 2/4" in text
    assert "## 에너지" not in text


def test_report_window_excludes_older_sessions(tmp_path: Path) -> None:
    store = JsonStore(tmp_path / "diary.json")
    _seed(store, [("2026-01-01", 1, 5), ("2026-01-04", 3, 3)])

    bundle = run_report(store, "u1", "7d", TODAY)
    assert [s.date for s in bundle.sessions] == ["2026-01-04", "2026-01-04"]
    assert bundle.stats.range.start == "2026-01-04"
    assert bundle.stats.range.end == "2026-01-10"


def test_report_with_coach(tmp_path: Path) -> None:
    store = JsonStore(tmp_path / "diary.json")
    _seed(store, [("2026-01-07", 2, 4), ("2026-01-08", 2, 3), ("2026-01-09", 3, 4)])

    bundle = run_report(store, "u1", "7d", TODAY)
    assert bundle.stats.gate.ok is True
    assert bundle.stats.energy.avg_daily_delta == 1.3
    assert bundle.coach is not None
    assert bundle.coach.rule_id == "delta_up_strong"

    text = format_report(bundle)
    assert "최근 7일: 2026-01-04 ~ 2026-01-10 (7일)" in text
    assert "- 완성된 날(아침+저녁): 3일" in text
    assert "- 평균 Δ: 1.3" in text
    assert "- 유형: 회복형" in text
    assert "- 좋음: 6" in text
    assert "- work: 6 (100%)" in text
    assert "## 코치: 회복 요인이 반복되고 있어" in text
    assert "[REVIEW_TOPIC_TOP] **회복됐던 날 주제 확인하기**" in text
    assert "[PLAN_RECOVERY_1] 내일 회복 1개 예약" in text


def test_today(tmp_path: Path) -> None:
    store = JsonStore(tmp_path / "diary.json")
    _seed(store, [("2026-01-10", 2, 4)])

    insight = run_today(store, "u1", "2026-01-10")
    assert [b.key for b in insight.badges] == ["recover", "big_delta", "focus"]

    text = format_daily_insight("2026-01-10", insight)
    assert text.startswith("# 2026-01-10")
    assert "+ 회복형 하루" in text
    assert "· work 집중" in text


def test_today_empty(tmp_path: Path) -> None:
    insight = run_today(JsonStore(tmp_path / "diary.json"), "u1", "2026-01-10")
    assert [b.key for b in insight.badges] == ["no_record"]


def test_topic_percentages_round_half_up() -> None:
    sessions = [
        Session(date=f"2026-01-0{day}", slot=slot, mood=MoodKey.CALM, energy=3, topics=("work",))
        for day in (6, 7, 8, 9)
        for slot in Slot
    ]
    sessions[-1] = Session(
        date="2026-01-09", slot=Slot.EVENING, mood=MoodKey.CALM, energy=3, topics=("sleep",)
    )
    text = format_report(ReportBundle(stats=build_report_stats("7d", sessions)))
    # 7/8 and 1/8 of the mentions
    assert "- work: 7 (88%)" in text
    assert "- sleep: 1 (13%)" in text


def test_month_filters_by_topic(tmp_path: Path) -> None:
    store = JsonStore(tmp_path / "diary.json")
    _seed(store, [("2026-01-07", 2, 4)], topics=("work",))
    _seed(store, [("2026-01-08", 3, 3)], topics=("family",))
    _seed(store, [("2026-02-01", 3, 3)], topics=("work",))

    assert [s.date for s in run_month(store, "u1", "2026-01")] == [
        "2026-01-07", "2026-01-07", "2026-01-08", "2026-01-08",
    ]
    sessions = run_month(store, "u1", "2026-01", " work ")
    assert {s.date for s in sessions} == {"2026-01-07"}

    text = format_month("2026-01", sessions, "work")
    assert text.startswith("# 2026-01 · work")
    assert "- 2026-01-07: 아침 좋음 2 · 저녁 좋음 4 ✓" in text
    assert "2026-01-08" not in text


def test_month_empty(tmp_path: Path) -> None:
    sessions = run_month(JsonStore(tmp_path / "diary.json"), "u1", "2026-01")
    assert sessions == []
    assert "- (no entries)" in format_month("2026-01", sessions)
