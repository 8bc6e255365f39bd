"""Flight status tool wrapping the correlator with configured provider settings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from app.config import (
    get_flight_lookup_timeout,
    get_flight_window_hours,
    get_flightaware_api_key,
    get_flightaware_base_url,
)
from core import flight_service
from core.event_time import parse_local

logger = logging.getLogger(__name__)


def build_provider() -> flight_service.FlightAwareClient:
    return flight_service.FlightAwareClient(
        get_flightaware_api_key(),
        base_url=get_flightaware_base_url(),
        timeout=get_flight_lookup_timeout(),
    )


def run(
    payload: Dict[str, Any],
    *,
    provider: Optional[flight_service.FlightProvider] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Look up ``payload["flight"]`` around ``payload["date"]``.

    Returns ``{"type", "flight": {...}}`` on success and the usual error
    payload otherwise (``missing_flight``, ``invalid_date``,
    ``not_configured``, ``provider_error``, ``not_found``).
    """

    ident = flight_service.normalize_ident(str(payload.get("flight") or payload.get("ident") or ""))
    if not ident:
        return _error_response("missing_flight", "A flight number is required.")
    target = parse_local(payload.get("date"))
    if target is None:
        return _error_response("invalid_date", f"Unreadable date {payload.get('date')!r}.")

    try:
        status = flight_service.lookup(
            ident,
            target,
            provider=provider or build_provider(),
            window_hours=get_flight_window_hours(),
            now=now,
        )
    except flight_service.FlightLookupNotConfigured as exc:
        return _error_response("not_configured", str(exc))
    except flight_service.FlightProviderError as exc:
        logger.warning("Flight lookup for %s failed: %s", ident, exc)
        return _error_response("provider_error", str(exc))

    if status is None:
        return _error_response("not_found", f"No Taiwan arrival found for {ident}.")

    result: Dict[str, Any] = {"type": "flight_status", "flight": status.to_dict()}
    for key in ("kind", "terminal"):
        if payload.get(key):
            result[key] = payload[key]
    return result


def _error_response(code: str, message: str) -> Dict[str, Any]:
    return {
        "type": "flight_status",
        "domain": "flight",
        "action": "lookup",
        "error": code,
        "message": message,
    }


__all__ = ["build_provider", "run"]
