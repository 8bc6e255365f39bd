from __future__ import annotations

import logging
from pathlib import Path

from app import config


def test_flight_settings_defaults():
    env: dict[str, str] = {}
    assert config.get_flightaware_api_key(env) is None
    assert config.get_flightaware_base_url(env) == "https://aeroapi.flightaware.com/aeroapi"
    assert config.get_flight_lookup_timeout(env) == 5.0
    assert config.get_flight_window_hours(env) == 18


def test_flight_settings_overrides_and_bad_values():
    env = {
        "FLIGHTAWARE_API_KEY": "  abc ",
        "FLIGHTAWARE_BASE_URL": "https://aero.example",
        "FLIGHT_LOOKUP_TIMEOUT": "2.5",
        "FLIGHT_WINDOW_HOURS": "12",
    }
    assert config.get_flightaware_api_key(env) == "abc"
    assert config.get_flightaware_base_url(env) == "https://aero.example"
    assert config.get_flight_lookup_timeout(env) == 2.5
    assert config.get_flight_window_hours(env) == 12

    assert config.get_flight_lookup_timeout({"FLIGHT_LOOKUP_TIMEOUT": "soon"}) == 5.0
    assert config.get_flight_lookup_timeout({"FLIGHT_LOOKUP_TIMEOUT": "-1"}) == 5.0
    assert config.get_flight_window_hours({"FLIGHT_WINDOW_HOURS": "0"}) == 18


def test_calendar_and_runtime_settings():
    assert config.get_calendar_storage_path({}) == Path("data_pipeline/calendar.json")
    assert config.get_calendar_storage_path({"CALENDAR_STORAGE_PATH": "/tmp/c.json"}) == Path("/tmp/c.json")
    assert config.get_midstop_attach_side({}) == "pickup"
    assert config.get_midstop_attach_side({"MIDSTOP_ATTACH_SIDE": "DropOff"}) == "dropoff"
    assert config.get_midstop_attach_side({"MIDSTOP_ATTACH_SIDE": "middle"}) == "pickup"
    assert config.get_log_level({"LOG_LEVEL": "debug"}) == logging.DEBUG
    assert config.get_log_level({"LOG_LEVEL": "chatty"}) == logging.INFO
    assert config.get_web_ui_port({"WEB_UI_PORT": "8080"}) == 8080
    assert config.get_web_ui_port({"WEB_UI_PORT": "99999"}) == 9000
    assert config.get_web_ui_host({}) == "127.0.0.1"
