"""Markdown rendering for reports, the today view and the month view."""

from __future__ import annotations

from .analytics.coach import CoachResult
from .analytics.gate import ReportGate
from .analytics.insight import DailyInsight
from .analytics.report import ReportStats, pair_by_date, percent
from .models import MOOD_LABEL_KO, Session, Slot
from .pipeline import ReportBundle

_MODE_TITLE = {"7d": "최근 7일", "30d": "최근 30일"}

_TONE_MARK = {"good": "+", "neutral": "·", "bad": "-"}

_SLOT_TITLE = {Slot.MORNING: "아침", Slot.EVENING: "저녁"}


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}"


def format_report(bundle: ReportBundle) -> str:
    """Format a report bundle as Markdown.

    The statistics sections are only rendered when the gate passed.
    """
    stats = bundle.stats
    lines: list[str] = []

    lines.append("# Report")
    if stats.range:
        r = stats.range
        title = _MODE_TITLE.get(r.mode, r.mode)
        lines.append(f"{title}: {r.start} ~ {r.end} ({r.days}일)")
    lines.append("")

    if not stats.gate.ok:
        mode = stats.range.mode if stats.range else ""
        _format_gate(lines, stats.gate, mode)
        return "\n".join(lines)

    _format_kpi(lines, stats)
    _format_energy(lines, stats)
    _format_mood(lines, stats)
    _format_topic(lines, stats)
    if bundle.coach:
        _format_coach(lines, bundle.coach)

    return "\n".join(lines)


def _format_gate(lines: list[str], gate: ReportGate, mode: str) -> None:
    lines.append("## 아직 리포트를 만들기엔 데이터가 부족해")
    title = _MODE_TITLE.get(mode, "이 기간")
    lines.append(
        f"{title} 리포트는 최소 {gate.required_days}일 이상 기록"
        f"(세션 {gate.required_sessions}개 이상)이 필요하다."
    )
    lines.append(
        f"진행: {gate.days_recorded}/{gate.required_days}일 · "
        f"세션 {gate.total_sessions}/{gate.required_sessions}"
    )
    lines.append("")


def _format_kpi(lines: list[str], stats: ReportStats) -> None:
    v = stats.volume
    lines.append("## 요약")
    lines.append(f"- 기록한 날: {v.days_recorded}일")
    lines.append(f"- 세션: {v.total_sessions}개")
    lines.append(f"- 완성된 날(아침+저녁): {v.complete_days}일")
    lines.append("")


def _format_energy(lines: list[str], stats: ReportStats) -> None:
    e = stats.energy
    lines.append("## 에너지")
    lines.append(f"- 아침 평균: {_fmt(e.morning_avg)}")
    lines.append(f"- 저녁 평균: {_fmt(e.evening_avg)}")
    lines.append(f"- 평균 Δ: {_fmt(e.avg_daily_delta)}")
    lines.append(f"- 유형: {e.delta_type.value if e.delta_type else '-'}")
    d = e.delta_days
    lines.append(f"- 상승/유지/하락: {d.up}/{d.flat}/{d.down}일")
    lines.append("")


def _format_mood(lines: list[str], stats: ReportStats) -> None:
    m = stats.mood
    lines.append("## 무드")
    lines.append(f"- 평균 점수: {_fmt(m.avg_score)}/8")
    for key in m.order:
        count = m.distribution[key]
        if count:
            lines.append(f"- {m.labels_ko[key]}: {count}")
    if m.top:
        tops = ", ".join(f"{m.labels_ko.get(t.key, t.key)} {t.count}" for t in m.top)
        lines.append(f"- Top: {tops}")
    lines.append("")


def _format_topic(lines: list[str], stats: ReportStats) -> None:
    t = stats.topic
    lines.append("## 주제")
    if t.top:
        for item in t.top:
            lines.append(f"- {item.key}: {item.count} ({percent(item.ratio)}%)")
    else:
        lines.append("- (none)")
    lines.append("")


def _format_coach(lines: list[str], coach: CoachResult) -> None:
    lines.append(f"## 코치: {coach.title}")
    lines.append(coach.message)
    for ev in coach.evidence:
        lines.append(f"- {ev}")
    for cta in coach.ctas:
        marker = "**" if cta.intent.value == "primary" else ""
        lines.append(f"- [{cta.id.value}] {marker}{cta.title}{marker}")
    lines.append("")


def format_daily_insight(date: str, insight: DailyInsight) -> str:
    """Format the today view for one date."""
    lines = [f"# {date}", insight.line, ""]
    for badge in insight.badges:
        mark = _TONE_MARK.get(badge.tone, "·")
        lines.append(f"{mark} {badge.label}")
    return "\n".join(lines)


def format_month(month: str, sessions: list[Session], topic: str = "") -> str:
    """Format the calendar view of a month, one line per recorded date."""
    title = f"# {month}"
    if topic:
        title += f" · {topic}"
    lines = [title, ""]

    by_date = pair_by_date(sessions)
    if not by_date:
        lines.append("- (no entries)")
        return "\n".join(lines)

    for day in sorted(by_date):
        parts = []
        for slot in Slot:
            s = by_date[day].get(slot)
            if s is not None:
                parts.append(f"{_SLOT_TITLE[slot]} {MOOD_LABEL_KO[s.mood]} {s.energy}")
        mark = " ✓" if len(by_date[day]) == len(Slot) else ""
        lines.append(f"- {day}: {' · '.join(parts)}{mark}")
    return "\n".join(lines)
