"""Final start/end/all-day resolution for AI-created and AI-updated events.

Both the interactive assistant and the messaging webhook call into this
module with the raw tool-call arguments, so both paths store identical times.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from core.event_time import DEFAULT_DURATION, NormalizedEventTime, resolve_triple
from core.text_parsing import extract_embedded_datetime

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Event"
TIME_FIELDS = ("startTime", "endTime", "allDay")
TEXT_FIELDS = ("title", "description", "location")


def resolve(args: Mapping[str, Any], *, now: Optional[datetime] = None) -> NormalizedEventTime:
    """Resolve tool-call arguments into a :class:`NormalizedEventTime`.

    The ``行程日期``/``行程時間`` pair in the description beats the model's own
    ``startTime``/``endTime``; an explicit ``allDay`` request still snaps the
    result to local midnight afterwards.
    """

    all_day = bool(args.get("allDay"))
    resolved = resolve_triple(args.get("startTime"), args.get("endTime"), all_day, now=now)

    override = extract_embedded_datetime(_as_text(args.get("description")))
    if override is not None:
        if override != resolved.start:
            logger.debug("Description date %s overrides model start %s.", override.isoformat(), resolved.start.isoformat())
        resolved = resolve_triple(override, override + DEFAULT_DURATION, False, now=now)

    if all_day:
        resolved = resolve_triple(resolved.start, None, True, now=now)
    return resolved


def build_event_record(args: Mapping[str, Any], *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Full record for a create call, ready for the persistence collaborator."""

    times = resolve(args, now=now)
    return {
        "title": _as_text(args.get("title")).strip() or DEFAULT_TITLE,
        "description": _as_text(args.get("description")),
        "location": _as_text(args.get("location")),
        "allDay": times.all_day,
        "startTime": times.start,
        "endTime": times.end,
    }


def build_update_fields(
    args: Mapping[str, Any],
    *,
    current: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Partial record for an update call; absent keys stay absent.

    When any of ``startTime``/``endTime``/``allDay`` is present, all three are
    re-resolved together so the stored triple keeps ``end > start``. Time
    fields missing from ``args`` are taken from ``current`` (the stored event)
    when it is given. Only a description supplied in the same update can
    override the times.
    """

    fields: Dict[str, Any] = {}
    for key in TEXT_FIELDS:
        if key in args and args.get(key) is not None:
            fields[key] = _as_text(args.get(key))

    if any(args.get(key) is not None for key in TIME_FIELDS):
        merged = {key: args.get(key) for key in TIME_FIELDS}
        for key in TIME_FIELDS:
            if merged[key] is None and current is not None:
                merged[key] = current.get(key)
        merged["description"] = args.get("description")
        times = resolve(merged, now=now)
        fields["startTime"] = times.start
        fields["endTime"] = times.end
        fields["allDay"] = times.all_day
    return fields


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


__all__ = ["DEFAULT_TITLE", "build_event_record", "build_update_fields", "resolve"]
