"""Command-line helpers for normalizing event text and checking flights."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from app.config import configure_logging, get_midstop_attach_side
from core.event_resolver import resolve
from core.parsers import flight as flight_event
from core.stop_reconciler import ATTACH_DROPOFF, ATTACH_PICKUP, augment_description, reconcile
from tools import flight_status_tool


def _read_description(value: Optional[str]) -> str:
    if value is None or value == "-":
        return sys.stdin.read()
    return value


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Transfer calendar helpers")
    sub = parser.add_subparsers(dest="command", required=True)

    normalize_parser = sub.add_parser("normalize", help="Resolve start/end/all-day for an event.")
    normalize_parser.add_argument("--start", type=str, default=None)
    normalize_parser.add_argument("--end", type=str, default=None)
    normalize_parser.add_argument("--all-day", action="store_true")
    normalize_parser.add_argument("--description", type=str, default=None, help="Event text; '-' reads stdin.")

    stops_parser = sub.add_parser("stops", help="Summarize pickup, drop-off and mid stops from event text.")
    stops_parser.add_argument("--description", type=str, default="-", help="Event text; '-' reads stdin.")
    stops_parser.add_argument("--attach-to", choices=(ATTACH_PICKUP, ATTACH_DROPOFF), default=None)

    flight_parser = sub.add_parser("flight", help="Look up the Taiwan arrival for a flight on a date.")
    flight_parser.add_argument("--flight", type=str, default=None)
    flight_parser.add_argument("--date", type=str, required=True)
    flight_parser.add_argument("--description", type=str, default=None, help="Read the flight number from event text.")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "normalize":
        description = _read_description(args.description) if args.description is not None else None
        times = resolve(
            {"startTime": args.start, "endTime": args.end, "allDay": args.all_day, "description": description}
        )
        _print_json(times.to_dict())
    elif args.command == "stops":
        description = _read_description(args.description)
        summary = reconcile(description)
        attach_to = args.attach_to or get_midstop_attach_side()
        _print_json({**summary.to_dict(), "description": augment_description(description, summary, attach_to=attach_to)})
    elif args.command == "flight":
        payload: Dict[str, Any] = {"flight": args.flight, "date": args.date}
        if not args.flight and args.description is not None:
            event = {"description": _read_description(args.description), "startTime": args.date}
            command = flight_event.parse(event, arrivals_only=False)
            if command is not None:
                payload = dict(command.payload)
        result = flight_status_tool.run(payload)
        _print_json(result)
        if "error" in result:
            return 1
    else:  # pragma: no cover - safeguarded by argparse
        parser.error("Unknown command")
    return 0


if __name__ == "__main__":
    sys.exit(main())
