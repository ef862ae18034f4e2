"""CLI entry point for moodiary."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from collections.abc import Mapping
from datetime import date as Date

from .actions import resolve_cta
from .analytics.gate import REPORT_MODES
from .config import Config
from .entry import EntryValidationError, build_entry, topic_choices
from .formatter import format_daily_insight, format_month, format_report
from .models import MoodKey, Slot, parse_entry_id
from .pipeline import run_month, run_report, run_today
from .store import JsonStore, StoreError


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(message)s",
        level=level,
        stream=sys.stderr,
    )


def _parse_date(value: str | None) -> Date:
    if not value:
        return Date.today()
    return Date.fromisoformat(value)


def _dump(data: dict) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _plain(obj):
    """Dataclasses, read-only mappings and tuples as JSON-ready dicts and lists."""
    if dataclasses.is_dataclass(obj):
        return {f.name: _plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Mapping):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


def _entry_key(args: argparse.Namespace) -> tuple[str, str]:
    """(date, slot) from a positional entry id or from --date/--slot."""
    if args.entry_id:
        day, slot = parse_entry_id(args.entry_id)
        return day, slot.value
    if not args.slot:
        raise ValueError("--slot is required without an entry id")
    return _parse_date(args.date).isoformat(), args.slot


def _handle_record(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle record command."""
    day = _parse_date(args.date).isoformat()
    try:
        session = build_entry(
            date=day,
            slot=args.slot,
            mood=args.mood,
            energy=args.energy,
            topics=args.topic or [],
            note=args.note or "",
        )
    except EntryValidationError as e:
        print(f"Invalid entry: {e}")
        return 1

    store.ensure_user(config.user_id)
    known = set(topic_choices(store.get_user_topic_presets(config.user_id)))
    for topic in session.topics:
        if topic not in known:
            store.add_topic_preset(config.user_id, topic)

    entry_id = store.upsert_session(config.user_id, session)
    print(f"Saved {entry_id}")
    return 0


def _handle_show(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle show command."""
    day, slot = _entry_key(args)
    session = store.get_session(config.user_id, day, slot)
    if session is None:
        print(f"No entry for {day} {slot}")
        return 1
    _dump(session.to_dict())
    return 0


def _handle_delete(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle delete command."""
    day, slot = _entry_key(args)
    if store.delete_session(config.user_id, day, slot):
        print(f"Deleted {day}_{slot}")
        return 0
    print(f"No entry for {day} {slot}")
    return 1


def _handle_report(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle report command."""
    mode = args.mode or config.default_mode
    if mode not in REPORT_MODES:
        print(f"Unknown report mode: {mode}")
        return 1
    today = _parse_date(args.date)
    bundle = run_report(store, config.user_id, mode, today)

    if args.json:
        targets = []
        if bundle.coach:
            targets = [_plain(resolve_cta(c, bundle.sessions, today)) for c in bundle.coach.ctas]
        _dump({
            "stats": _plain(bundle.stats),
            "coach": _plain(bundle.coach) if bundle.coach else None,
            "ctaTargets": targets,
        })
    else:
        print(format_report(bundle))
    return 0


def _handle_today(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle today command."""
    day = _parse_date(args.date).isoformat()
    insight = run_today(store, config.user_id, day)
    if args.json:
        _dump({"date": day, **_plain(insight)})
    else:
        print(format_daily_insight(day, insight))
    return 0


def _handle_month(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle month command."""
    month = args.month or Date.today().isoformat()[:7]
    topic = (args.topic or "").strip()
    sessions = run_month(store, config.user_id, month, topic)
    if args.json:
        _dump({
            "month": month,
            "topic": topic,
            "sessions": [s.to_dict() for s in sessions],
        })
    else:
        print(format_month(month, sessions, topic))
    return 0


def _handle_topics(args: argparse.Namespace, config: Config, store: JsonStore) -> int:
    """Handle topics command."""
    if args.topics_command == "add":
        if store.add_topic_preset(config.user_id, args.topic):
            print(f"Added topic: {args.topic.strip()}")
        else:
            print("Topic unchanged")
        return 0
    if args.topics_command == "remove":
        if store.remove_topic_preset(config.user_id, args.topic):
            print(f"Removed topic: {args.topic.strip()}")
            return 0
        print(f"Topic not found: {args.topic}")
        return 1

    for topic in topic_choices(store.get_user_topic_presets(config.user_id)):
        print(topic)
    return 0


_HANDLERS = {
    "record": _handle_record,
    "show": _handle_show,
    "delete": _handle_delete,
    "report": _handle_report,
    "today": _handle_today,
    "month": _handle_month,
    "topics": _handle_topics,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="moodiary",
        description="Morning/evening mood and energy journal with weekly reports",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--store", type=str, help="Override store file path")
    common.add_argument("--user", type=str, help="Override user id")
    common.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command")
    slots = [s.value for s in Slot]

    # record subcommand
    record_parser = subparsers.add_parser("record", parents=[common], help="Record a session")
    record_parser.add_argument("--date", type=str, help="Entry date (YYYY-MM-DD, default: today)")
    record_parser.add_argument("--slot", choices=slots, required=True)
    record_parser.add_argument("--mood", choices=[m.value for m in MoodKey], required=True)
    record_parser.add_argument("--energy", type=int, required=True, help="Energy level 1-5")
    record_parser.add_argument(
        "--topic", action="append", help="Topic tag (repeatable, up to 5)"
    )
    record_parser.add_argument("--note", type=str, default="", help="Free-text note")

    # show / delete subcommands
    for name, help_text in (("show", "Show a session"), ("delete", "Delete a session")):
        p = subparsers.add_parser(name, parents=[common], help=help_text)
        p.add_argument("entry_id", nargs="?", help="Entry id, e.g. 2026-01-07_morning")
        p.add_argument("--date", type=str, help="Entry date (YYYY-MM-DD, default: today)")
        p.add_argument("--slot", choices=slots, help="Required unless an entry id is given")

    # report subcommand
    report_parser = subparsers.add_parser("report", parents=[common], help="Show the report")
    report_parser.add_argument(
        "--mode", choices=list(REPORT_MODES), default=None,
        help="Report window (default from config: 7d)"
    )
    report_parser.add_argument("--date", type=str, help="Last day of the window (default: today)")
    report_parser.add_argument("--json", action="store_true", help="Print JSON instead of Markdown")

    # today subcommand
    today_parser = subparsers.add_parser("today", parents=[common], help="Daily insight")
    today_parser.add_argument("--date", type=str, help="Date (YYYY-MM-DD, default: today)")
    today_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")

    # month subcommand
    month_parser = subparsers.add_parser("month", parents=[common], help="Month calendar view")
    month_parser.add_argument("--month", type=str, help="Month (YYYY-MM, default: this month)")
    month_parser.add_argument("--topic", type=str, help="Only sessions tagged with this topic")
    month_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")

    # topics subcommand group
    topics_parser = subparsers.add_parser("topics", parents=[common], help="Topic presets")
    topics_subparsers = topics_parser.add_subparsers(dest="topics_command")
    topics_subparsers.add_parser("list", help="List available topics")
    topics_add = topics_subparsers.add_parser("add", help="Add a custom topic")
    topics_add.add_argument("topic")
    topics_remove = topics_subparsers.add_parser("remove", help="Remove a custom topic")
    topics_remove.add_argument("topic")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _setup_logging(getattr(args, "verbose", False))

    overrides = {}
    if args.store:
        overrides["store_file"] = args.store
    if args.user:
        overrides["user_id"] = args.user
    if args.verbose:
        overrides["verbose"] = True
    config = Config.load(overrides)
    store = JsonStore(config.store_file)

    try:
        return _HANDLERS[args.command](args, config, store)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    except StoreError as e:
        print(f"Store error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
