from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.event_resolver import DEFAULT_TITLE, build_event_record, build_update_fields, resolve

NOW = datetime(2024, 8, 1, 2, 0, tzinfo=timezone.utc)
DESCRIPTION = "行程日期：2024年8月15日\n行程時間：14:30\n上車地址：桃園機場第一航廈"


def test_embedded_date_overrides_model_times():
    times = resolve(
        {"startTime": "2024-08-16T09:00", "endTime": "2024-08-16T12:00", "description": DESCRIPTION},
        now=NOW,
    )

    assert times.start == datetime(2024, 8, 15, 6, 30, tzinfo=timezone.utc)
    assert times.end == times.start + timedelta(hours=1)
    assert times.all_day is False


def test_single_embedded_line_does_not_override():
    times = resolve({"startTime": "2024-08-16T09:00", "description": "行程時間：14:30"}, now=NOW)
    assert times.start == datetime(2024, 8, 16, 1, 0, tzinfo=timezone.utc)


def test_explicit_all_day_snaps_after_override():
    times = resolve({"startTime": "2024-08-16", "allDay": True, "description": DESCRIPTION}, now=NOW)

    assert times.all_day is True
    assert times.start == datetime(2024, 8, 14, 16, 0, tzinfo=timezone.utc)
    assert times.end - times.start == timedelta(hours=24)


def test_build_event_record_defaults_title():
    record = build_event_record({"startTime": "2024-08-15T14:00", "location": "TPE"}, now=NOW)

    assert record["title"] == DEFAULT_TITLE
    assert record["description"] == ""
    assert record["location"] == "TPE"
    assert record["startTime"] == datetime(2024, 8, 15, 6, 0, tzinfo=timezone.utc)
    assert record["endTime"] == datetime(2024, 8, 15, 7, 0, tzinfo=timezone.utc)


def test_update_without_time_fields_leaves_times_absent():
    fields = build_update_fields({"title": "接機", "description": DESCRIPTION}, now=NOW)
    assert fields == {"title": "接機", "description": DESCRIPTION}


def test_update_merges_missing_time_fields_from_current():
    current = {
        "startTime": "2024-08-15T06:00:00+00:00",
        "endTime": "2024-08-15T08:00:00+00:00",
        "allDay": False,
    }
    fields = build_update_fields({"endTime": "2024-08-15T18:00"}, current=current, now=NOW)

    assert fields["startTime"] == datetime(2024, 8, 15, 6, 0, tzinfo=timezone.utc)
    assert fields["endTime"] == datetime(2024, 8, 15, 10, 0, tzinfo=timezone.utc)
    assert fields["allDay"] is False

    all_day = build_update_fields({"allDay": True}, current=current, now=NOW)
    assert all_day["startTime"] == datetime(2024, 8, 14, 16, 0, tzinfo=timezone.utc)
    assert all_day["endTime"] - all_day["startTime"] == timedelta(hours=24)
