"""Flight status correlation for airport-pickup events.

Given a flight identifier and the event's approximate local time, this module
asks the flight-data provider for instances in a window around that time and
picks the arrival into Taiwan that lands on the same local calendar date and
closest to the event. No match is a normal outcome and returns ``None``;
transport failures raise :class:`FlightProviderError`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence
from urllib.parse import quote

import requests

from core.event_time import local_date_of, parse_local

logger = logging.getLogger(__name__)

PROVIDER_NAME = "flightaware"
DEFAULT_BASE_URL = "https://aeroapi.flightaware.com/aeroapi"
DEFAULT_TIMEOUT = 5.0
DEFAULT_WINDOW_HOURS = 18
TRACKING_URL = "https://flightaware.com/live/flight/{ident}"

TAIWAN_AIRPORT_CODES = frozenset(
    {
        "TPE", "TSA", "KHH", "RMQ", "TTT", "HUN", "KNH", "MZG", "LZN", "GNI", "MFK", "KYD", "CYI", "TNN", "PIF",
        "RCTP", "RCSS", "RCKH", "RCMQ", "RCNN", "RCYU", "RCFN", "RCQC", "RCBS", "RCMT", "RCFG", "RCGI", "RCLY",
    }
)

# Best-known instant preference: actual, then estimated, gate ("in"/"out")
# before runway ("on"/"off"), scheduled last.
ARRIVAL_FIELDS = ("actual_in", "estimated_in", "actual_on", "estimated_on", "scheduled_in", "scheduled_on")
DEPARTURE_FIELDS = ("actual_out", "estimated_out", "actual_off", "estimated_off", "scheduled_out", "scheduled_off")

# ---------------------------------------------------------------------------
# HTTP session (no retries: one call per lookup, callers decide what to show)
# ---------------------------------------------------------------------------
_session = requests.Session()
_session.headers.update({"Accept": "application/json"})


def _http_get(url: str, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    return _session.get(url, **kwargs)


class FlightProviderError(Exception):
    """Raised when the flight-data provider cannot be reached or answers with an error."""


class FlightLookupNotConfigured(FlightProviderError):
    """Raised when no provider credentials are configured."""


class FlightProvider(Protocol):
    def fetch_flights(self, ident: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        ...


class FlightAwareClient:
    """Minimal AeroAPI client returning raw flight records for one page."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def fetch_flights(self, ident: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        if not self.configured:
            raise FlightLookupNotConfigured("FlightAware API key is not configured")
        url = f"{self._base_url}/flights/{quote(ident, safe='')}"
        params = {"start": _format_utc(start), "end": _format_utc(end), "max_pages": 1}
        try:
            response = _http_get(url, params=params, headers={"x-apikey": self._api_key}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FlightProviderError(f"FlightAware request failed: {exc}") from exc
        if response.status_code == 404:
            return []
        if not response.ok:
            raise FlightProviderError(f"FlightAware returned HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise FlightProviderError("FlightAware returned invalid JSON") from exc
        flights = data.get("flights") if isinstance(data, dict) else None
        return [flight for flight in flights or [] if isinstance(flight, dict)]


@dataclass
class FlightEndpoint:
    code: Optional[str] = None
    alternateCode: Optional[str] = None
    airportName: Optional[str] = None
    city: Optional[str] = None
    terminal: Optional[str] = None
    gate: Optional[str] = None
    timezone: Optional[str] = None


@dataclass
class FlightStatusPayload:
    """Provider-agnostic flight status; keys mirror the JSON the UI consumes."""

    ident: str
    status: str
    provider: str
    fetchedAt: str
    origin: FlightEndpoint = field(default_factory=FlightEndpoint)
    destination: FlightEndpoint = field(default_factory=FlightEndpoint)
    operator: Optional[str] = None
    flightNumber: Optional[str] = None
    statusText: Optional[str] = None
    scheduledDeparture: Optional[str] = None
    estimatedDeparture: Optional[str] = None
    scheduledArrival: Optional[str] = None
    estimatedArrival: Optional[str] = None
    actualArrival: Optional[str] = None
    gateDeparture: Optional[str] = None
    gateArrival: Optional[str] = None
    terminalDeparture: Optional[str] = None
    terminalArrival: Optional[str] = None
    baggage: Optional[str] = None
    durationMinutes: Optional[int] = None
    arrivalDelayMinutes: Optional[int] = None
    trackingUrl: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def normalize_ident(value: Optional[str]) -> str:
    return "".join((value or "").split()).upper()


def lookup(
    ident: str,
    local_date: datetime,
    *,
    provider: FlightProvider,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    now: Optional[datetime] = None,
) -> Optional[FlightStatusPayload]:
    """Return the best-matching Taiwan arrival for ``ident`` around ``local_date``."""

    flight_ident = normalize_ident(ident)
    if not flight_ident:
        return None
    target = parse_local(local_date)
    if target is None:
        return None
    window = timedelta(hours=window_hours)
    flights = provider.fetch_flights(flight_ident, target - window, target + window)
    if not flights:
        logger.info("No provider records for %s around %s", flight_ident, target.isoformat())
        return None
    best = select_best_match(flights, target)
    if best is None:
        logger.info("No Taiwan arrival for %s on %s", flight_ident, local_date_of(target).isoformat())
        return None
    return map_flight_to_status(best, now=now)


def select_best_match(flights: Sequence[Mapping[str, Any]], target: datetime) -> Optional[Mapping[str, Any]]:
    """Same-local-date Taiwan arrival closest to ``target``; provider order breaks ties."""

    target_date = local_date_of(target)
    matches = []
    for flight in flights:
        if not is_taiwan_arrival(flight):
            continue
        arrival = _parse_instant(_first_present(flight, ARRIVAL_FIELDS))
        if arrival is None or local_date_of(arrival) != target_date:
            continue
        matches.append((abs((arrival - target).total_seconds()), flight))
    if not matches:
        return None
    # min() keeps the first of equal distances.
    return min(matches, key=lambda item: item[0])[1]


def is_taiwan_arrival(flight: Mapping[str, Any]) -> bool:
    destination = flight.get("destination")
    if not isinstance(destination, Mapping):
        return False
    for key in ("code", "code_iata", "code_icao", "code_lid"):
        code = destination.get(key)
        if isinstance(code, str) and code.upper() in TAIWAN_AIRPORT_CODES:
            return True
    return False


def map_flight_to_status(flight: Mapping[str, Any], *, now: Optional[datetime] = None) -> FlightStatusPayload:
    best_departure = _first_present(flight, DEPARTURE_FIELDS)
    best_arrival = _first_present(flight, ARRIVAL_FIELDS)
    ident = str(flight.get("ident") or "")
    status = str(flight.get("status") or "")
    fetched = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    origin = _endpoint(flight.get("origin"), flight.get("terminal_origin"), flight.get("gate_origin"))
    destination = _endpoint(flight.get("destination"), flight.get("terminal_destination"), flight.get("gate_destination"))

    return FlightStatusPayload(
        ident=ident,
        status=status,
        provider=PROVIDER_NAME,
        fetchedAt=fetched.isoformat().replace("+00:00", "Z"),
        origin=origin,
        destination=destination,
        operator=flight.get("operator"),
        flightNumber=flight.get("ident_iata") or flight.get("ident_icao") or ident or None,
        statusText=status or None,
        scheduledDeparture=_first_present(flight, ("scheduled_out", "scheduled_off")),
        estimatedDeparture=best_departure,
        scheduledArrival=_first_present(flight, ("scheduled_in", "scheduled_on")),
        estimatedArrival=best_arrival,
        actualArrival=_first_present(flight, ("actual_in", "actual_on")),
        gateDeparture=flight.get("gate_origin"),
        gateArrival=flight.get("gate_destination"),
        terminalDeparture=flight.get("terminal_origin"),
        terminalArrival=flight.get("terminal_destination"),
        baggage=flight.get("baggage_claim"),
        durationMinutes=_duration_minutes(best_departure, best_arrival, flight.get("filed_ete")),
        arrivalDelayMinutes=_seconds_to_minutes(flight.get("arrival_delay")),
        trackingUrl=TRACKING_URL.format(ident=quote(ident, safe="")) if ident else None,
    )


def _endpoint(airport: Any, terminal: Any, gate: Any) -> FlightEndpoint:
    if not isinstance(airport, Mapping):
        return FlightEndpoint()
    return FlightEndpoint(
        code=airport.get("code") or airport.get("code_iata") or airport.get("code_icao"),
        alternateCode=airport.get("code_iata") or airport.get("code_icao") or airport.get("code_lid"),
        airportName=airport.get("name"),
        city=airport.get("city"),
        terminal=terminal if isinstance(terminal, str) else None,
        gate=gate if isinstance(gate, str) else None,
        timezone=airport.get("timezone"),
    )


def _first_present(flight: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = flight.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _parse_instant(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return parse_local(value)


def _duration_minutes(departure: Optional[str], arrival: Optional[str], filed_ete: Any) -> Optional[int]:
    dep = _parse_instant(departure)
    arr = _parse_instant(arrival)
    if dep is not None and arr is not None:
        minutes = round((arr - dep).total_seconds() / 60)
        if minutes > 0:
            return minutes
    return _seconds_to_minutes(filed_ete)


def _seconds_to_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return round(value / 60)


def _format_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


__all__ = [
    "FlightAwareClient",
    "FlightEndpoint",
    "FlightLookupNotConfigured",
    "FlightProvider",
    "FlightProviderError",
    "FlightStatusPayload",
    "TAIWAN_AIRPORT_CODES",
    "is_taiwan_arrival",
    "lookup",
    "map_flight_to_status",
    "normalize_ident",
    "select_best_match",
]
