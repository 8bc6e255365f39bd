"""Centralize defaults and environment lookups for the calendar services."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

try:
    from dotenv import load_dotenv  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    load_dotenv = None
else:
    load_dotenv()

# ---------------------------------------------------------------------------
# Default configuration values
# ---------------------------------------------------------------------------
_DEFAULT_FLIGHTAWARE_BASE_URL = "https://aeroapi.flightaware.com/aeroapi"
_DEFAULT_FLIGHT_LOOKUP_TIMEOUT: float = 5.0
_DEFAULT_FLIGHT_WINDOW_HOURS: int = 18
_DEFAULT_CALENDAR_STORAGE_PATH = "data_pipeline/calendar.json"
_DEFAULT_MIDSTOP_ATTACH_SIDE = "pickup"
_MIDSTOP_ATTACH_SIDES = {"pickup", "dropoff"}
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_WEB_UI_HOST = "127.0.0.1"
_DEFAULT_WEB_UI_PORT = 9000


# ---------------------------------------------------------------------------
# Flight provider settings
# ---------------------------------------------------------------------------
def get_flightaware_api_key(env: Dict[str, str] | None = None) -> str | None:
    """Return the AeroAPI key used for flight status lookups.

    Args:
        env: Optional mapping used instead of ``os.environ`` to simplify testing.

    Returns:
        The API key string if present and non-blank, otherwise ``None``.
    """

    source = env if env is not None else os.environ
    value = (source.get("FLIGHTAWARE_API_KEY") or "").strip()
    return value or None


def get_flightaware_base_url(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    value = (source.get("FLIGHTAWARE_BASE_URL") or "").strip()
    return value or _DEFAULT_FLIGHTAWARE_BASE_URL


def get_flight_lookup_timeout(env: Dict[str, str] | None = None) -> float:
    """Return the per-request timeout (seconds) for the flight provider."""

    source = env if env is not None else os.environ
    raw = source.get("FLIGHT_LOOKUP_TIMEOUT")
    if raw is None:
        return _DEFAULT_FLIGHT_LOOKUP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return _DEFAULT_FLIGHT_LOOKUP_TIMEOUT
    return value if value > 0 else _DEFAULT_FLIGHT_LOOKUP_TIMEOUT


def get_flight_window_hours(env: Dict[str, str] | None = None) -> int:
    """Return the half-width of the provider query window around the event time."""

    source = env if env is not None else os.environ
    raw = source.get("FLIGHT_WINDOW_HOURS")
    if raw is None:
        return _DEFAULT_FLIGHT_WINDOW_HOURS
    try:
        value = int(raw)
    except ValueError:
        return _DEFAULT_FLIGHT_WINDOW_HOURS
    return value if value > 0 else _DEFAULT_FLIGHT_WINDOW_HOURS


# ---------------------------------------------------------------------------
# Calendar settings
# ---------------------------------------------------------------------------
def get_calendar_storage_path(env: Dict[str, str] | None = None) -> Path:
    """Return the JSON file backing the local event store."""

    source = env if env is not None else os.environ
    override = source.get("CALENDAR_STORAGE_PATH")
    return Path(override) if override else Path(_DEFAULT_CALENDAR_STORAGE_PATH)


def get_midstop_attach_side(env: Dict[str, str] | None = None) -> str:
    """Return which primary line (``pickup``/``dropoff``) mid stops are rendered under."""

    source = env if env is not None else os.environ
    raw = (source.get("MIDSTOP_ATTACH_SIDE") or "").strip().lower()
    return raw if raw in _MIDSTOP_ATTACH_SIDES else _DEFAULT_MIDSTOP_ATTACH_SIDE


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------
def get_log_level(env: Dict[str, str] | None = None) -> int:
    source = env if env is not None else os.environ
    raw = (source.get("LOG_LEVEL") or _DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(env: Dict[str, str] | None = None) -> None:
    """Install the root handler once for CLI and web entry points."""

    logging.basicConfig(
        level=get_log_level(env),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_web_ui_host(env: Dict[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    return source.get("WEB_UI_HOST", _DEFAULT_WEB_UI_HOST)


def get_web_ui_port(env: Dict[str, str] | None = None) -> int:
    source = env if env is not None else os.environ
    raw = source.get("WEB_UI_PORT")
    if raw is None:
        return _DEFAULT_WEB_UI_PORT
    try:
        value = int(raw)
    except ValueError:
        return _DEFAULT_WEB_UI_PORT
    return value if 0 < value <= 65535 else _DEFAULT_WEB_UI_PORT
