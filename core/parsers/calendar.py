"""Calendar tool-call parsing.

The assistant and webhook both receive model function calls named
``createCalendarEvent``, ``updateCalendarEvent`` and ``deleteCalendarEvent``.
This parser normalizes their arguments once so the calendar tool only ever
sees resolved instants.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from core.event_resolver import build_event_record
from core.parsers.types import CommandResult

_CALL_ACTIONS = {
    "createcalendarevent": "create",
    "updatecalendarevent": "update",
    "deletecalendarevent": "delete",
}


def matches(name: str) -> bool:
    """Return True for the calendar function-call names."""
    return _action_for(name) is not None


def parse(name: str, args: Optional[Mapping[str, Any]], *, now: Optional[datetime] = None) -> Optional[CommandResult]:
    """Build a ``calendar_edit`` payload from a single function call."""
    action = _action_for(name)
    if action is None:
        return None
    args = dict(args or {})
    payload: Dict[str, object] = {"domain": "calendar", "action": action}

    if action == "create":
        payload["event"] = build_event_record(args, now=now)
        return CommandResult(tool="calendar_edit", payload=payload, source=name)

    event_id = str(args.get("id") or "").strip()
    if event_id:
        payload["id"] = event_id

    if action == "update":
        # Normalization of updates needs the stored event, so the raw fields
        # travel as-is and the tool resolves them against the current record.
        updates = {key: value for key, value in args.items() if key != "id" and value is not None}
        payload["updates"] = updates

    return CommandResult(tool="calendar_edit", payload=payload, source=name)


def _action_for(name: str) -> Optional[str]:
    return _CALL_ACTIONS.get((name or "").strip().lower())


__all__ = ["matches", "parse"]
