"""Fetch sessions from the store and run the analytics over them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as Date

from .analytics.coach import CoachResult, run_coach
from .analytics.gate import report_range
from .analytics.insight import DailyInsight, build_daily_insight
from .analytics.report import ReportStats, build_report_stats
from .models import Session
from .store import JsonStore

logger = logging.getLogger(__name__)


@dataclass
class ReportBundle:
    """Everything the report view needs."""

    stats: ReportStats
    coach: CoachResult | None = None
    sessions: list[Session] = field(default_factory=list)


def run_report(store: JsonStore, user_id: str, mode: str, today: Date) -> ReportBundle:
    """Build the report for the ``mode`` window ending on ``today``.

    Args:
        store: Session storage.
        user_id: Whose sessions to read.
        mode: "7d" or "30d".
        today: Last day of the window (inclusive).

    Returns:
        ReportBundle; ``coach`` is None when the gate did not pass.
    """
    window = report_range(mode, today)
    sessions = store.list_sessions(user_id, window.start, window.end)
    logger.info(
        "Building %s report for %s (%s..%s, %d session(s))",
        mode, user_id, window.start, window.end, len(sessions),
    )

    stats = build_report_stats(mode, sessions, window)
    if not stats.gate.ok:
        logger.info(
            "Gate not met: %d/%d day(s), %d/%d session(s)",
            stats.gate.days_recorded, stats.gate.required_days,
            stats.gate.total_sessions, stats.gate.required_sessions,
        )

    coach = run_coach(stats)
    if coach is not None:
        logger.debug("Coach rule selected: %s", coach.rule_id)

    return ReportBundle(stats=stats, coach=coach, sessions=sessions)


def run_today(store: JsonStore, user_id: str, date: str) -> DailyInsight:
    """Daily insight for one date."""
    morning, evening = store.get_day(user_id, date)
    return build_daily_insight(morning, evening)


def run_month(store: JsonStore, user_id: str, month: str, topic: str = "") -> list[Session]:
    """Sessions of a ``YYYY-MM`` month, narrowed to one topic when given."""
    sessions = store.list_month(user_id, month)
    topic = topic.strip()
    if topic:
        sessions = [s for s in sessions if topic in s.topics]
    logger.debug("Month %s for %s: %d session(s), topic=%r", month, user_id, len(sessions), topic)
    return sessions
