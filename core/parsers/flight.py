"""Flight lookup parsing for stored calendar events."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from core.event_time import parse_local
from core.parsers.types import CommandResult
from core.text_parsing import describe_flight


def matches(event: Mapping[str, Any]) -> bool:
    """Fast guard: only events mentioning a flight identifier qualify."""
    return describe_flight(event.get("title"), event.get("description")) is not None


def parse(event: Mapping[str, Any], *, arrivals_only: bool = True) -> Optional[CommandResult]:
    """Build a ``flight_status`` payload from an event's title, description and start.

    Only airport pickups (arrivals) are correlated unless ``arrivals_only`` is off.
    """
    reference = describe_flight(event.get("title"), event.get("description"))
    if reference is None:
        return None
    if arrivals_only and reference.kind != "arr":
        return None
    start = parse_local(event.get("startTime"))
    if start is None:
        return None
    payload: Dict[str, object] = {
        "flight": reference.ident,
        "date": start.isoformat(),
        "kind": reference.kind,
        "terminal": reference.terminal,
    }
    return CommandResult(tool="flight_status", payload=payload, source="event")


__all__ = ["matches", "parse"]
