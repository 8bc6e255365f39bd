"""Date/time normalization shared by the assistant and webhook handlers.

Every incoming time is interpreted under one fixed local offset (UTC+8) so the
same tool-call arguments produce the same instants regardless of where the
code runs. Nothing here reads the machine timezone; the only ambient value is
the "current instant" fallback, and callers can pass ``now`` explicitly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

LOCAL_OFFSET = timezone(timedelta(hours=8), "Asia/Taipei")
DEFAULT_DURATION = timedelta(hours=1)
ALL_DAY_DURATION = timedelta(hours=24)

_EXPLICIT_OFFSET_PATTERN = re.compile(r"T.*(?:Z|[+-]\d{2}(?::?\d{2})?)$", re.IGNORECASE)
_LOCAL_MINUTE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2})$")
_DATE_ONLY_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})$")
_FRACTION_PATTERN = re.compile(r"\.(\d+)")
_COMPACT_OFFSET_PATTERN = re.compile(r"([+-]\d{2})(\d{2})$")
_SPACED_COLON_PATTERN = re.compile(r"\s*:\s*")
_FALLBACK_FORMATS = (
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
)


@dataclass(frozen=True)
class NormalizedEventTime:
    """Canonical ``(start, end, all_day)`` triple; instants are UTC-aware."""

    start: datetime
    end: datetime
    all_day: bool = False

    def to_dict(self) -> dict:
        return {
            "startTime": self.start.isoformat(),
            "endTime": self.end.isoformat(),
            "allDay": self.all_day,
        }


def parse_local(value: Any) -> Optional[datetime]:
    """Return an aware instant for ``value`` or ``None`` when nothing matches.

    Rules are tried in order: explicit ``Z``/offset suffix, ``YYYY-MM-DD HH:mm``
    (local), bare ``YYYY-MM-DD`` (local midnight), then a plain ISO parse where
    a missing offset means local time.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=LOCAL_OFFSET)
    if isinstance(value, date):
        return datetime.combine(value, time(0, 0), tzinfo=LOCAL_OFFSET)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None

    if _EXPLICIT_OFFSET_PATTERN.search(text):
        return _from_iso(text)

    minute_match = _LOCAL_MINUTE_PATTERN.match(text)
    if minute_match:
        return _from_iso(f"{minute_match.group(1)}T{minute_match.group(2)}+08:00")

    date_match = _DATE_ONLY_PATTERN.match(text)
    if date_match:
        return _from_iso(f"{date_match.group(1)}T00:00+08:00")

    return _from_iso(text)


def resolve_triple(
    start_raw: Any,
    end_raw: Any = None,
    all_day: Any = False,
    *,
    now: Optional[datetime] = None,
) -> NormalizedEventTime:
    """Compose start/end/all-day into a triple that always satisfies ``end > start``.

    Applying this to its own output returns the same triple.
    """

    is_all_day = bool(all_day)
    start = parse_local(start_raw)
    end = parse_local(end_raw)

    if start is None and _is_present(start_raw):
        start = _lenient_parse(start_raw)
    if end is None and _is_present(end_raw):
        end = _lenient_parse(end_raw)

    if start is None:
        if _is_present(start_raw):
            logger.debug("Unparseable start time %r; defaulting to the current instant.", start_raw)
        start = _current_instant(now)
    if end is None:
        end = start + DEFAULT_DURATION

    if is_all_day:
        start = snap_to_local_midnight(start)
        end = start + ALL_DAY_DURATION

    if end <= start:
        end = start + DEFAULT_DURATION

    return NormalizedEventTime(start=_to_utc(start), end=_to_utc(end), all_day=is_all_day)


def snap_to_local_midnight(value: datetime) -> datetime:
    """Return local (UTC+8) midnight of the calendar date ``value`` falls on."""

    local = value.astimezone(LOCAL_OFFSET)
    return datetime.combine(local.date(), time(0, 0), tzinfo=LOCAL_OFFSET)


def local_date_of(value: datetime) -> date:
    return value.astimezone(LOCAL_OFFSET).date()


def local_datetime(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> Optional[datetime]:
    """Build a local instant, returning ``None`` for impossible calendar values."""

    try:
        return datetime(year, month, day, hour, minute, tzinfo=LOCAL_OFFSET)
    except ValueError:
        return None


def _from_iso(text: str) -> Optional[datetime]:
    candidate = text.strip()
    if candidate[-1:] in {"Z", "z"}:
        candidate = candidate[:-1] + "+00:00"
    candidate = _COMPACT_OFFSET_PATTERN.sub(r"\1:\2", candidate) if "T" in candidate else candidate
    candidate = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), candidate, count=1)
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=LOCAL_OFFSET)
    return parsed


def _lenient_parse(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    # Models sometimes emit "13: 00" or slash-separated dates.
    text = _SPACED_COLON_PATTERN.sub(":", value.strip())
    parsed = parse_local(text)
    if parsed is not None:
        return parsed
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=LOCAL_OFFSET)
        except ValueError:
            continue
    return None


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _current_instant(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=LOCAL_OFFSET)


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


__all__ = [
    "ALL_DAY_DURATION",
    "DEFAULT_DURATION",
    "LOCAL_OFFSET",
    "NormalizedEventTime",
    "local_date_of",
    "local_datetime",
    "parse_local",
    "resolve_triple",
    "snap_to_local_midnight",
]
