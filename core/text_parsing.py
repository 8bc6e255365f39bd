"""Labeled-field extraction for transport-booking descriptions.

Descriptions arrive as loosely formatted Traditional Chinese blocks, usually
one ``標籤：內容`` pair per line. The label vocabulary is closed, so matching
is a fixed, ordered rule list rather than a grammar: the first rule whose
label anchors the start of a line wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from core.event_time import local_datetime
from core.parser_utils.text import MARKDOWN_LINK_PATTERN, split_delimited, unique_in_order

TRIP_DATE = "trip_date"
TRIP_TIME = "trip_time"
PICKUP = "pickup"
DROPOFF = "dropoff"
MID_STOP = "mid_stop"
MID_PICKUP = "mid_pickup"
REMARKS = "remarks"
PHONE = "phone"
FLIGHT = "flight"
ADDRESS = "address"

_LINE_PREFIX = r"^\s*(?:[-*●・•]\s*)?"
_LINE_SEPARATOR = r"\s*[:：]\s*(?P<body>.*)$"


def _rule(kind: str, labels: str) -> Tuple[str, Pattern[str]]:
    return kind, re.compile(_LINE_PREFIX + rf"(?P<label>{labels})" + _LINE_SEPARATOR, re.IGNORECASE)


# Most specific labels first; e.g. "聯絡電話" must win over a bare "電話".
LABEL_RULES: Sequence[Tuple[str, Pattern[str]]] = (
    _rule(TRIP_DATE, r"行程日期"),
    _rule(TRIP_TIME, r"行程時間"),
    _rule(PICKUP, r"上車地址\d*"),
    _rule(DROPOFF, r"下車地址\d*"),
    _rule(MID_STOP, r"中途停靠"),
    _rule(MID_PICKUP, r"中途接送"),
    _rule(REMARKS, r"其他備註|備註|Notes?"),
    _rule(PHONE, r"聯絡電話|(?:乘客|司機|客服|報到|聯絡)?(?:電話|tel|phone)|Contact"),
    _rule(FLIGHT, r"航班編號|航班號碼|航班|班機"),
    _rule(ADDRESS, r"集合地點|集合地址|司機地址|乘客地址|終點地址|起點地址|地址|地點"),
)

_TRIP_DATE_PATTERN = re.compile(r"(\d{4})\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日")
_TRIP_TIME_PATTERN = re.compile(r"(?<!\d)([0-2]?\d):([0-5]\d)(?!\d)")
_FLIGHT_PATTERN = re.compile(r"(?<![A-Za-z0-9])([A-Za-z]{2})[ -]?(\d{2,4})(?![A-Za-z0-9])")
_FREE_TEXT_PHONE_PATTERN = re.compile(
    r"(?:\+|00)\d{1,3}[-\s]?\d{1,4}[-\s]?\d{3,4}[-\s]?\d{3,4}"
    r"|(?<!\d)09\d{2}(?:-?\d{3}-?\d{3}|\d{6})(?!\d)"
    r"|(?<!\d)0\d{1,2}-?\d{3,4}-?\d{4}(?!\d)"
    r"|(?<!\d)8869\d{7,8}(?!\d)"
)
_URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
_ARRIVAL_PATTERN = re.compile(r"接機|入境|arrival", re.IGNORECASE)
_DEPARTURE_PATTERN = re.compile(r"送機|出境|depart", re.IGNORECASE)
_TAOYUAN_PATTERN = re.compile(r"桃園機場|TPE|Taoyuan", re.IGNORECASE)
MIN_PHONE_DIGITS = 6

TPE_TERMINAL_BY_AIRLINE = {
    "CI": "T1",
    "BR": "T2",
    "JX": "T1",
    "IT": "T1",
    "MM": "T1",
    "TR": "T1",
    "CX": "T1",
    "JL": "T2",
    "NH": "T2",
    "KE": "T2",
    "OZ": "T2",
    "SQ": "T1",
    "UA": "T2",
    "DL": "T2",
    "AA": "T2",
}


@dataclass(frozen=True)
class LabeledField:
    """One ``label：body`` line recognized in a description."""

    kind: str
    label: str
    body: str
    line_index: int


@dataclass(frozen=True)
class FlightReference:
    ident: str
    airline: str
    kind: Optional[str] = None
    terminal: Optional[str] = None


def split_lines(description: Optional[str]) -> List[str]:
    return (description or "").splitlines()


def match_label(line: str, line_index: int = 0) -> Optional[LabeledField]:
    """Return the first rule that anchors ``line``, or ``None`` for free text."""

    text = (line or "").strip()
    if not text:
        return None
    for kind, pattern in LABEL_RULES:
        match = pattern.match(text)
        if match:
            return LabeledField(
                kind=kind,
                label=match.group("label"),
                body=match.group("body").strip(),
                line_index=line_index,
            )
    return None


def extract_fields(description: Optional[str]) -> List[LabeledField]:
    """All labeled fields in line order; repeated labels are kept."""

    fields: List[LabeledField] = []
    for index, line in enumerate(split_lines(description)):
        field = match_label(line, index)
        if field is not None:
            fields.append(field)
    return fields


def fields_of_kind(fields: Iterable[LabeledField], *kinds: str) -> List[LabeledField]:
    wanted = set(kinds)
    return [field for field in fields if field.kind in wanted]


def extract_embedded_datetime(description: Optional[str]) -> Optional[datetime]:
    """Return the ``行程日期`` + ``行程時間`` instant, or ``None`` unless both are present."""

    fields = extract_fields(description)
    date_parts = _first_match(fields_of_kind(fields, TRIP_DATE), _TRIP_DATE_PATTERN)
    time_parts = _first_match(fields_of_kind(fields, TRIP_TIME), _TRIP_TIME_PATTERN)
    if date_parts is None or time_parts is None:
        return None
    year, month, day = (int(part) for part in date_parts)
    hour, minute = (int(part) for part in time_parts)
    return local_datetime(year, month, day, hour, minute)


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Reduce a phone string to digits, keeping or adding an international ``+``."""

    text = (value or "").strip()
    if not text:
        return None
    digits = re.sub(r"\D", "", text)
    if not digits:
        return None
    if text.startswith("+"):
        normalized = f"+{digits}"
    elif digits.startswith("00") and len(digits) > 2:
        normalized = f"+{digits[2:]}"
    elif digits.startswith("886"):
        normalized = f"+{digits}"
    else:
        normalized = digits
    if len(normalized.lstrip("+")) < MIN_PHONE_DIGITS:
        return None
    return normalized


def extract_phone_numbers(description: Optional[str]) -> List[str]:
    """Phones from labeled lines first, then phone-shaped tokens in free text."""

    labeled: List[str] = []
    free_text: List[str] = []
    for index, line in enumerate(split_lines(description)):
        field = match_label(line, index)
        if field is not None and field.kind == PHONE:
            labeled.extend(filter(None, (normalize_phone(part) for part in split_delimited(field.body))))
            continue
        if field is not None and field.kind in {TRIP_DATE, TRIP_TIME}:
            continue
        scrubbed = _URL_PATTERN.sub(" ", MARKDOWN_LINK_PATTERN.sub(r"\1", line))
        for token in _FREE_TEXT_PHONE_PATTERN.findall(scrubbed):
            normalized = normalize_phone(token)
            if normalized:
                free_text.append(normalized)
    return unique_in_order(labeled + free_text)


def extract_flight_ident(title: Optional[str], description: Optional[str]) -> Optional[str]:
    """First ``XX123``-shaped identifier in title then description, uppercased, no separator."""

    match = _FLIGHT_PATTERN.search(f"{title or ''}\n{description or ''}")
    if not match:
        return None
    return f"{match.group(1).upper()}{match.group(2)}"


def describe_flight(title: Optional[str], description: Optional[str]) -> Optional[FlightReference]:
    """Flight identifier plus arrival/departure hint and TPE terminal, when a flight is mentioned."""

    ident = extract_flight_ident(title, description)
    if not ident:
        return None
    text = f"{title or ''}\n{description or ''}"
    if _ARRIVAL_PATTERN.search(text):
        kind: Optional[str] = "arr"
    elif _DEPARTURE_PATTERN.search(text):
        kind = "dep"
    else:
        kind = None
    airline = ident[:2]
    terminal = TPE_TERMINAL_BY_AIRLINE.get(airline) if _TAOYUAN_PATTERN.search(text) else None
    return FlightReference(ident=ident, airline=airline, kind=kind, terminal=terminal)


def _first_match(fields: Iterable[LabeledField], pattern: Pattern[str]) -> Optional[Tuple[str, ...]]:
    for field in fields:
        match = pattern.search(field.body)
        if match:
            return match.groups()
    return None


__all__ = [
    "ADDRESS",
    "DROPOFF",
    "FLIGHT",
    "FlightReference",
    "LABEL_RULES",
    "LabeledField",
    "MID_PICKUP",
    "MID_STOP",
    "PHONE",
    "PICKUP",
    "REMARKS",
    "TPE_TERMINAL_BY_AIRLINE",
    "TRIP_DATE",
    "TRIP_TIME",
    "describe_flight",
    "extract_embedded_datetime",
    "extract_fields",
    "extract_flight_ident",
    "extract_phone_numbers",
    "fields_of_kind",
    "match_label",
    "normalize_phone",
    "split_lines",
]
