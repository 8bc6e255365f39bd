import json
from datetime import datetime, timezone

import core.parsers.flight as flight_parser
from core.command_parser import parse_tool_call, parse_tool_calls

NOW = datetime(2024, 8, 1, 2, 0, tzinfo=timezone.utc)


def test_create_call_is_resolved_into_event_record():
    result = parse_tool_call(
        {
            "name": "createCalendarEvent",
            "args": {
                "title": "桃園機場接機",
                "startTime": "2024-08-16T09:00",
                "description": "行程日期：2024年8月15日\n行程時間：14:30",
            },
        },
        now=NOW,
    )
    assert result is not None
    assert result.tool == "calendar_edit"
    assert result.source == "createCalendarEvent"
    event = result.payload["event"]
    assert result.payload["action"] == "create"
    assert event["title"] == "桃園機場接機"
    assert event["startTime"] == datetime(2024, 8, 15, 6, 30, tzinfo=timezone.utc)


def test_arguments_as_json_string():
    call = {"name": "updateCalendarEvent", "arguments": json.dumps({"id": "abc", "title": "改時間", "location": None})}
    result = parse_tool_call(call, now=NOW)

    assert result.payload == {"domain": "calendar", "action": "update", "id": "abc", "updates": {"title": "改時間"}}


def test_unreadable_arguments_fall_back_to_empty():
    result = parse_tool_call({"name": "deleteCalendarEvent", "arguments": "{not json"}, now=NOW)
    assert result.payload == {"domain": "calendar", "action": "delete"}


def test_unknown_calls_are_skipped():
    results = parse_tool_calls(
        [
            {"name": "sendPushNotification", "args": {}},
            {"name": "deleteCalendarEvent", "args": {"id": "evt-1"}},
            "not a call",
        ],
        now=NOW,
    )
    assert [result.payload["action"] for result in results] == ["delete"]
    assert results[0].payload["id"] == "evt-1"


def test_flight_parser_builds_arrival_lookup():
    event = {
        "title": "桃園機場接機",
        "description": "航班：BR 192",
        "startTime": "2024-08-15T06:30:00+00:00",
    }
    assert flight_parser.matches(event)
    result = flight_parser.parse(event)

    assert result.tool == "flight_status"
    assert result.payload == {
        "flight": "BR192",
        "date": "2024-08-15T06:30:00+00:00",
        "kind": "arr",
        "terminal": "T2",
    }


def test_flight_parser_skips_departures_by_default():
    event = {"title": "送機 CI 100", "startTime": "2024-08-15T06:30:00+00:00"}
    assert flight_parser.parse(event) is None
    assert flight_parser.parse(event, arrivals_only=False).payload["kind"] == "dep"
