"""Turn coach call-to-actions into navigation targets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date as Date

from .analytics.coach import CoachCTA, CtaId
from .analytics.report import pair_by_date
from .models import Session, Slot, make_entry_id

_WRITE_SLOTS = {
    CtaId.WRITE_MORNING: Slot.MORNING,
    CtaId.WRITE_EVENING: Slot.EVENING,
}


@dataclass(frozen=True)
class CtaTarget:
    """Where a CTA leads.

    kind is one of:
        "entry": open the entry form for (date, slot)
        "detail": open an existing entry (entry_id)
        "calendar": open the month view, optionally focused on a topic
    """

    kind: str
    cta_id: CtaId
    date: str = ""
    slot: Slot | None = None
    entry_id: str = ""
    month: str = ""
    topic: str = ""


def pick_topic_day(sessions: Sequence[Session], topic: str) -> tuple[str, Slot] | None:
    """Representative (date, slot) for a topic.

    Latest complete day mentioning the topic wins, else the latest day at all.
    The evening session is preferred when present.
    """
    by_date = pair_by_date(s for s in sessions if topic in s.topics)
    if not by_date:
        return None

    dates = sorted(by_date, reverse=True)
    complete = [d for d in dates if len(by_date[d]) == len(Slot)]
    picked = complete[0] if complete else dates[0]
    slot = Slot.EVENING if Slot.EVENING in by_date[picked] else Slot.MORNING
    return picked, slot


def resolve_cta(cta: CoachCTA, sessions: Sequence[Session], today: Date) -> CtaTarget:
    """Resolve a CTA against the sessions the report was built from."""
    today_str = today.isoformat()
    month = today_str[:7]

    if cta.id in _WRITE_SLOTS:
        return CtaTarget(kind="entry", cta_id=cta.id, date=today_str, slot=_WRITE_SLOTS[cta.id])

    if cta.id == CtaId.REVIEW_TOPIC_TOP:
        topic = str(cta.payload.get("topic") or "").strip()
        if not topic:
            return CtaTarget(kind="calendar", cta_id=cta.id, month=month)

        picked = pick_topic_day(sessions, topic)
        if picked is None:
            return CtaTarget(kind="calendar", cta_id=cta.id, month=month, topic=topic)

        date, slot = picked
        return CtaTarget(
            kind="detail",
            cta_id=cta.id,
            date=date,
            slot=slot,
            entry_id=make_entry_id(date, slot),
            topic=topic,
        )

    # Behavioural CTAs lead to tonight's entry with the hint attached
    return CtaTarget(
        kind="entry",
        cta_id=cta.id,
        date=today_str,
        slot=Slot.EVENING,
        topic=str(cta.payload.get("topic") or ""),
    )
