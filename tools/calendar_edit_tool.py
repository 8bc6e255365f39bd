"""Calendar tool applying parsed create/update/delete payloads to a JSON store."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from app.config import get_calendar_storage_path
from core.event_resolver import DEFAULT_TITLE, build_event_record, build_update_fields
from core.event_time import parse_local
from core.json_storage import atomic_write_json, read_json

logger = logging.getLogger(__name__)

_ACTION_ALIASES = {
    "list_events": "list",
    "add": "create",
    "remove": "delete",
}


@dataclass
class CalendarEvent:
    """A stored event; instants are ISO-8601 UTC strings."""

    id: str
    title: str
    startTime: str
    endTime: str
    allDay: bool
    created_at: str
    updated_at: str
    description: str = ""
    location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CalendarStore:
    """File-backed storage for calendar events."""

    def __init__(self, storage_path: Path | None = None) -> None:
        self._storage_path = storage_path or get_calendar_storage_path()

    def list_events(self) -> List[Dict[str, Any]]:
        events = self._load_events()
        events.sort(key=lambda event: event.startTime)
        return [event.to_dict() for event in events]

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        for event in self._load_events():
            if event.id == event_id:
                return event.to_dict()
        return None

    def create_event(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        now = _utc_timestamp()
        event = CalendarEvent(
            id=uuid.uuid4().hex,
            title=str(record.get("title") or DEFAULT_TITLE),
            startTime=_to_iso(record["startTime"]),
            endTime=_to_iso(record["endTime"]),
            allDay=bool(record.get("allDay")),
            created_at=now,
            updated_at=now,
            description=str(record.get("description") or ""),
            location=str(record.get("location") or ""),
        )
        events = self._load_events()
        events.append(event)
        self._write_events(events)
        return event.to_dict()

    def update_event(self, event_id: str, fields: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        events = self._load_events()
        for idx, event in enumerate(events):
            if event.id != event_id:
                continue
            changes: Dict[str, Any] = {}
            for key, value in fields.items():
                if key in ("startTime", "endTime"):
                    changes[key] = _to_iso(value)
                elif key == "allDay":
                    changes[key] = bool(value)
                elif key in ("title", "description", "location"):
                    changes[key] = str(value)
            events[idx] = replace(event, updated_at=_utc_timestamp(), **changes)
            self._write_events(events)
            return events[idx].to_dict()
        return None

    def delete_event(self, event_id: str) -> bool:
        events = self._load_events()
        filtered = [event for event in events if event.id != event_id]
        if len(filtered) == len(events):
            return False
        self._write_events(filtered)
        return True

    def _load_events(self) -> List[CalendarEvent]:
        payload = read_json(self._storage_path, {"events": []})
        raw = payload.get("events", [])
        if not isinstance(raw, list):
            raise ValueError("Invalid calendar format: 'events' must be a list")

        events: List[CalendarEvent] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            event_id = str(item.get("id", "")).strip()
            start = parse_local(item.get("startTime"))
            end = parse_local(item.get("endTime"))
            if not event_id or start is None or end is None:
                logger.debug("Skipping unreadable calendar entry %r", item.get("id"))
                continue
            events.append(
                CalendarEvent(
                    id=event_id,
                    title=str(item.get("title") or DEFAULT_TITLE),
                    startTime=_to_iso(start),
                    endTime=_to_iso(end),
                    allDay=bool(item.get("allDay")),
                    created_at=str(item.get("created_at") or "") or _utc_timestamp(),
                    updated_at=str(item.get("updated_at") or "") or _utc_timestamp(),
                    description=str(item.get("description") or ""),
                    location=str(item.get("location") or ""),
                )
            )
        return events

    def _write_events(self, events: List[CalendarEvent]) -> None:
        atomic_write_json(self._storage_path, {"events": [event.to_dict() for event in events]})


def run(payload: Dict[str, Any], *, store: CalendarStore | None = None, now: datetime | None = None) -> Dict[str, Any]:
    """Entry point for calendar operations.

    ``create`` accepts either a pre-resolved ``event`` record (as produced by
    ``core.parsers.calendar``) or raw tool-call fields at the top level.
    ``update`` resolves ``updates`` against the stored record so a partial
    time change keeps the remaining fields of the triple.
    """

    action_raw = str(payload.get("action", "list")).strip().lower()
    action = _ACTION_ALIASES.get(action_raw, action_raw or "list")
    store = store or CalendarStore()

    if action == "list":
        events = store.list_events()
        return {"type": "calendar_edit", "domain": "calendar", "action": "list", "events": events, "count": len(events)}

    if action == "create":
        record = payload.get("event")
        if not isinstance(record, Mapping):
            record = build_event_record(payload, now=now)
        event = store.create_event(record)
        logger.info("Created calendar event %s", event["id"])
        return {"type": "calendar_edit", "domain": "calendar", "action": "create", "event": event}

    event_id = str(payload.get("id") or "").strip()
    if action == "update":
        if not event_id:
            return _error_response("update", "missing_id", "Event ID is required to update an entry.")
        current = store.get_event(event_id)
        if current is None:
            return _error_response("update", "not_found", f"Event '{event_id}' was not found.")
        updates = payload.get("updates")
        if not isinstance(updates, Mapping):
            updates = {key: value for key, value in payload.items() if key not in ("action", "domain", "id")}
        fields = build_update_fields(updates, current=current, now=now)
        if not fields:
            return _error_response("update", "missing_updates", "Provide at least one field to update.")
        updated = store.update_event(event_id, fields)
        if updated is None:
            return _error_response("update", "not_found", f"Event '{event_id}' was not found.")
        return {"type": "calendar_edit", "domain": "calendar", "action": "update", "event": updated}

    if action == "delete":
        if not event_id:
            return _error_response("delete", "missing_id", "Event ID is required to delete an entry.")
        if not store.delete_event(event_id):
            return _error_response("delete", "not_found", f"Event '{event_id}' was not found.")
        return {"type": "calendar_edit", "domain": "calendar", "action": "delete", "deleted": True, "id": event_id}

    return _error_response(action, "unsupported_action", f"Unsupported calendar action '{action}'.")


def _to_iso(value: Any) -> str:
    parsed = parse_local(value)
    if parsed is None:
        raise ValueError(f"Invalid event instant {value!r}")
    return parsed.astimezone(timezone.utc).isoformat()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_response(action: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "type": "calendar_edit",
        "domain": "calendar",
        "action": action,
        "error": code,
        "message": message,
    }


__all__ = ["run", "CalendarStore", "CalendarEvent"]
