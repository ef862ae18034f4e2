"""File-backed document store for sessions and user documents.

Layout of the JSON file::

    {
      "users": {
        "<user_id>": {
          "uid": "...", "displayName": "...", "createdAt": "...",
          "topicPresets": ["..."],
          "entries": {"2026-01-07_morning": {...session...}}
        }
      }
    }

Entries are keyed by entry id, so writes are upserts: one document per
(date, slot).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import date as Date
from datetime import datetime, timedelta, timezone
from pathlib import Path

from .entry import clean_topics
from .models import Session, Slot, make_entry_id

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store file cannot be written."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_state(store_file: Path) -> dict:
    """Load the store file, starting fresh if it is missing or corrupt."""
    if store_file.exists():
        try:
            with open(store_file, encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Unexpected store layout in %s, starting fresh", store_file)
        except (json.JSONDecodeError, OSError):
            logger.warning("Corrupt store file, starting fresh: %s", store_file)
    return {}


def _save_state(store_file: Path, state: dict) -> None:
    """Write the store file atomically."""
    try:
        store_file.parent.mkdir(parents=True, exist_ok=True)
        tmp = store_file.with_suffix(store_file.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2, ensure_ascii=False)
        tmp.replace(store_file)
    except OSError as e:
        raise StoreError(f"Failed to write {store_file}: {e}") from e


class JsonStore:
    """Sessions and user settings for any number of users in one JSON file."""

    def __init__(self, store_file: Path, clock: Callable[[], str] = _utc_now) -> None:
        self.store_file = store_file
        self._clock = clock

    # -- helpers ------------------------------------------------------------

    def _user(self, state: dict, user_id: str) -> dict:
        return state.setdefault("users", {}).setdefault(user_id, {"uid": user_id})

    def _entries(self, user_id: str) -> dict:
        state = _load_state(self.store_file)
        return state.get("users", {}).get(user_id, {}).get("entries", {})

    def _parse(self, entry_id: str, data: dict) -> Session | None:
        try:
            return Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable entry %s: %s", entry_id, e)
            return None

    # -- sessions -----------------------------------------------------------

    def list_sessions(self, user_id: str, start: str, end: str) -> list[Session]:
        """All sessions with ``start <= date <= end``, ordered by date then slot."""
        sessions = []
        for entry_id, data in self._entries(user_id).items():
            if not isinstance(data, dict):
                logger.warning("Skipping malformed entry %s", entry_id)
                continue
            date = str(data.get("date", ""))
            if not start <= date <= end:
                continue
            session = self._parse(entry_id, data)
            if session is not None:
                sessions.append(session)
        sessions.sort(key=lambda s: (s.date, list(Slot).index(s.slot)))
        logger.debug("Loaded %d session(s) for %s..%s", len(sessions), start, end)
        return sessions

    def list_month(self, user_id: str, month: str) -> list[Session]:
        """Sessions of a calendar month given as ``YYYY-MM``."""
        first = Date.fromisoformat(f"{month}-01")
        last = (first.replace(day=28) + timedelta(days=4)).replace(day=1) - timedelta(days=1)
        return self.list_sessions(user_id, first.isoformat(), last.isoformat())

    def get_session(self, user_id: str, date: str, slot: Slot | str) -> Session | None:
        entry_id = make_entry_id(date, slot)
        data = self._entries(user_id).get(entry_id)
        if data is None:
            return None
        return self._parse(entry_id, data)

    def get_day(self, user_id: str, date: str) -> tuple[Session | None, Session | None]:
        """The ``(morning, evening)`` pair of a date."""
        return (
            self.get_session(user_id, date, Slot.MORNING),
            self.get_session(user_id, date, Slot.EVENING),
        )

    def upsert_session(self, user_id: str, session: Session) -> str:
        """Create or replace the session for its (date, slot).

        ``createdAt`` survives updates; ``updatedAt`` is refreshed.
        Returns the entry id.
        """
        state = _load_state(self.store_file)
        entries = self._user(state, user_id).setdefault("entries", {})
        entry_id = session.entry_id

        now = self._clock()
        payload = session.to_dict()
        previous = entries.get(entry_id)
        payload["createdAt"] = (previous or {}).get("createdAt") or now
        payload["updatedAt"] = now
        entries[entry_id] = payload

        _save_state(self.store_file, state)
        logger.info("Saved %s for %s", entry_id, user_id)
        return entry_id

    def delete_session(self, user_id: str, date: str, slot: Slot | str) -> bool:
        """Remove a session. Returns False if there was nothing to delete."""
        state = _load_state(self.store_file)
        entries = state.get("users", {}).get(user_id, {}).get("entries", {})
        entry_id = make_entry_id(date, slot)
        if entry_id not in entries:
            return False
        del entries[entry_id]
        _save_state(self.store_file, state)
        logger.info("Deleted %s for %s", entry_id, user_id)
        return True

    # -- user documents -----------------------------------------------------

    def ensure_user(self, user_id: str, display_name: str = "") -> dict:
        """Create the user document if missing; an existing one is returned untouched."""
        state = _load_state(self.store_file)
        users = state.setdefault("users", {})
        if user_id in users and users[user_id].get("createdAt"):
            return _user_view(users[user_id])

        user = users.setdefault(user_id, {"uid": user_id})
        now = self._clock()
        user.setdefault("displayName", display_name)
        user.setdefault("topicPresets", [])
        user["createdAt"] = now
        user["updatedAt"] = now
        _save_state(self.store_file, state)
        return _user_view(user)

    def get_user_topic_presets(self, user_id: str) -> list[str]:
        state = _load_state(self.store_file)
        user = state.get("users", {}).get(user_id, {})
        return clean_topics(user.get("topicPresets", []))

    def add_topic_preset(self, user_id: str, topic: str) -> bool:
        """Add a custom topic. Returns True if the preset list changed."""
        t = str(topic or "").strip()
        if not t:
            return False
        state = _load_state(self.store_file)
        user = self._user(state, user_id)
        presets = clean_topics(user.get("topicPresets", []))
        if t in presets:
            return False
        presets.append(t)
        user["topicPresets"] = presets
        user["updatedAt"] = self._clock()
        _save_state(self.store_file, state)
        return True

    def remove_topic_preset(self, user_id: str, topic: str) -> bool:
        """Remove a custom topic. Returns True if it was present."""
        t = str(topic or "").strip()
        if not t:
            return False
        state = _load_state(self.store_file)
        user = state.get("users", {}).get(user_id)
        if not user:
            return False
        presets = clean_topics(user.get("topicPresets", []))
        if t not in presets:
            return False
        user["topicPresets"] = [p for p in presets if p != t]
        user["updatedAt"] = self._clock()
        _save_state(self.store_file, state)
        return True


def _user_view(user: dict) -> dict:
    """User document without the entries collection."""
    return {k: v for k, v in user.items() if k != "entries"}
