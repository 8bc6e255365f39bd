from __future__ import annotations

import io
import json

from app import main as cli


def test_normalize_command(capsys):
    exit_code = cli.main(["normalize", "--start", "2025-11-30", "--all-day"])
    output = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert output == {
        "startTime": "2025-11-29T16:00:00+00:00",
        "endTime": "2025-11-30T16:00:00+00:00",
        "allDay": True,
    }


def test_stops_command_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("上車地址：松山機場\n→忠孝東路一段1號\n"))
    cli.main(["stops"])
    output = json.loads(capsys.readouterr().out)

    assert output["pickup"] == ["松山機場"]
    assert output["midStops"] == ["忠孝東路一段1號"]
    assert output["description"].splitlines()[1] == "中途停靠：忠孝東路一段1號"


def test_flight_command_reports_errors(monkeypatch, capsys):
    monkeypatch.delenv("FLIGHTAWARE_API_KEY", raising=False)
    exit_code = cli.main(["flight", "--description", "航班：BR 87", "--date", "2024-08-15"])
    output = json.loads(capsys.readouterr().out)

    assert exit_code == 1
    assert output["error"] == "not_configured"


def test_flight_command_reads_ident_from_description(monkeypatch, capsys):
    seen = {}

    def fake_run(payload):
        seen.update(payload)
        return {"type": "flight_status", "flight": {"flightNumber": payload["flight"]}}

    monkeypatch.setattr(cli.flight_status_tool, "run", fake_run)
    exit_code = cli.main(["flight", "--description", "送機 航班：BR 87", "--date", "2024-08-15"])
    output = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert output["flight"]["flightNumber"] == "BR87"
    assert seen["kind"] == "dep"
    assert seen["date"] == "2024-08-15T00:00:00+08:00"
