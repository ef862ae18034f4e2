"""Minimum-data gate and report windows.

The mode table below is the only place report granularity is defined.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from moodiary.models import Session


@dataclass(frozen=True)
class ModePolicy:
    days: int  # window length
    required_days: int
    required_sessions: int


MODE_POLICY: dict[str, ModePolicy] = {
    "7d": ModePolicy(days=7, required_days=3, required_sessions=4),
    "30d": ModePolicy(days=30, required_days=7, required_sessions=10),
}

REPORT_MODES: tuple[str, ...] = tuple(MODE_POLICY)


@dataclass(frozen=True)
class ReportGate:
    ok: bool
    required_days: int
    required_sessions: int
    days_recorded: int
    total_sessions: int


@dataclass(frozen=True)
class ReportRange:
    start: str
    end: str
    days: int
    mode: str


def get_policy(mode: str) -> ModePolicy:
    try:
        return MODE_POLICY[mode]
    except KeyError:
        raise ValueError(
            f"Unknown report mode {mode!r} (expected one of {', '.join(REPORT_MODES)})"
        ) from None


def get_gate(mode: str, sessions: Sequence[Session]) -> ReportGate:
    """Decide whether the window holds enough data for a report."""
    policy = get_policy(mode)
    total_sessions = len(sessions)
    days_recorded = len({s.date for s in sessions})
    ok = (
        days_recorded >= policy.required_days
        and total_sessions >= policy.required_sessions
    )
    return ReportGate(
        ok=ok,
        required_days=policy.required_days,
        required_sessions=policy.required_sessions,
        days_recorded=days_recorded,
        total_sessions=total_sessions,
    )


def report_range(mode: str, today: date) -> ReportRange:
    """Window of ``mode`` days ending on ``today`` (inclusive)."""
    days = get_policy(mode).days
    start = today - timedelta(days=days - 1)
    return ReportRange(
        start=start.isoformat(),
        end=today.isoformat(),
        days=days,
        mode=mode,
    )
