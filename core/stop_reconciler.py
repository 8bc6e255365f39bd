"""Merge pickup, drop-off, and intermediate stops found in a description.

Addresses show up in several notations: labeled lines, Markdown links inside
those lines, arrow or "第一站" style sequences, and remarks. ``reconcile``
folds them into three ordered, de-duplicated lists. The summary lists are
capped for display; the description text itself is never trimmed, so every
recovered stop is still there on the next pass.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.parser_utils.text import (
    MARKDOWN_LINK_PATTERN,
    REMARK_DELIMITERS,
    looks_like_address,
    markdown_labels,
    split_address_body,
    split_delimited,
    strip_markdown_link,
    strip_urls,
    unique_in_order,
)
from core.text_parsing import (
    DROPOFF,
    MID_PICKUP,
    MID_STOP,
    PICKUP,
    REMARKS,
    LabeledField,
    match_label,
    split_lines,
)

logger = logging.getLogger(__name__)

DISPLAY_CAP = 3
MID_STOP_LABEL = "中途停靠"
ATTACH_PICKUP = "pickup"
ATTACH_DROPOFF = "dropoff"

SOURCE_LABELED_LINE = "labeled-line"
SOURCE_MARKDOWN_LINK = "markdown-link"
SOURCE_ARROW_SEQUENCE = "arrow-sequence"
SOURCE_REMARK_SCAN = "remark-scan"

_ARROW_LINE_PATTERN = re.compile(r"^(?:[-*●・\d.]+\s*)?(?:→|->)\s*(.+)$")
_ARROW_SPLIT_PATTERN = re.compile(r"\s*(?:→|->)\s*")
_SEQUENCE_KEYWORDS = ("第一站", "第二站", "第三站", "先到", "再到", "途經", "經停", "途中", "轉送", "接續")
_SEQUENCE_PATTERN = re.compile("|".join(_SEQUENCE_KEYWORDS))
_SEQUENCE_PREFIX_PATTERN = re.compile(rf"^(?:{'|'.join(_SEQUENCE_KEYWORDS)})[:：\s-]*")
_PRIMARY_LINE_PATTERNS = {
    PICKUP: re.compile(r"^\s*(?:[-*●・•]\s*)?上車地址\s*[:：]"),
    DROPOFF: re.compile(r"^\s*(?:[-*●・•]\s*)?下車地址\s*[:：]"),
}


@dataclass(frozen=True)
class AddressCandidate:
    text: str
    source_kind: str
    source_label: Optional[str] = None


@dataclass
class StopSummary:
    """Display-ready stop lists, each capped at ``DISPLAY_CAP`` entries."""

    pickup: List[str] = field(default_factory=list)
    dropoff: List[str] = field(default_factory=list)
    mid_stops: List[str] = field(default_factory=list)
    all_mid_stops: List[str] = field(default_factory=list, repr=False)
    candidates: List[AddressCandidate] = field(default_factory=list, repr=False)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"pickup": list(self.pickup), "dropoff": list(self.dropoff), "midStops": list(self.mid_stops)}


def collect_candidates(description: Optional[str]) -> List[AddressCandidate]:
    """Every address candidate in line order, before de-duplication."""

    candidates: List[AddressCandidate] = []
    for index, line in enumerate(split_lines(description)):
        labeled = match_label(line, index)
        if labeled is not None and labeled.kind in {PICKUP, DROPOFF, MID_STOP, MID_PICKUP}:
            candidates.extend(_labeled_candidates(labeled))
            continue
        if labeled is not None and labeled.kind == REMARKS:
            candidates.extend(_remark_candidates(labeled))
            continue
        candidates.extend(_sequence_candidates(line.strip()))
    return candidates


def reconcile(description: Optional[str]) -> StopSummary:
    """Return de-duplicated pickup, drop-off, and mid-stop lists for ``description``."""

    candidates = collect_candidates(description)
    pickup = unique_in_order(c.text for c in candidates if c.source_label == PICKUP)
    dropoff = unique_in_order(c.text for c in candidates if c.source_label == DROPOFF)
    primary = set(pickup) | set(dropoff)
    mid_stops = unique_in_order(
        c.text for c in candidates if c.source_label not in {PICKUP, DROPOFF} and c.text not in primary
    )
    if len(pickup) > DISPLAY_CAP or len(dropoff) > DISPLAY_CAP or len(mid_stops) > DISPLAY_CAP:
        logger.debug(
            "Stop lists exceed display cap (pickup=%d, dropoff=%d, mid=%d); description keeps the rest.",
            len(pickup),
            len(dropoff),
            len(mid_stops),
        )
    return StopSummary(
        pickup=pickup[:DISPLAY_CAP],
        dropoff=dropoff[:DISPLAY_CAP],
        mid_stops=mid_stops[:DISPLAY_CAP],
        all_mid_stops=mid_stops,
        candidates=candidates,
    )


def augment_description(
    description: Optional[str],
    summary: Optional[StopSummary] = None,
    *,
    attach_to: str = ATTACH_PICKUP,
) -> str:
    """Render ``description`` with numbered extra addresses and an explicit mid-stop line.

    The mid-stop line goes directly beneath the first pickup line (or the first
    drop-off line when ``attach_to`` is ``"dropoff"`` or there is no pickup).
    An existing ``中途停靠：`` line is rewritten in place. The input is not
    modified; a new string is returned.
    """

    raw = description or ""
    summary = summary or reconcile(raw)
    lines = split_lines(raw)
    out: List[str] = []
    # Stored text must keep every stop, so the line uses the uncapped list.
    mid_stops = summary.all_mid_stops or summary.mid_stops
    mid_text = f"{MID_STOP_LABEL}：{'、'.join(mid_stops)}"
    has_mid_line = any(_is_mid_line(line) for line in lines)
    anchor = _mid_anchor_index(lines, attach_to) if mid_stops and not has_mid_line else None
    existing = {line.strip() for line in lines}
    seen_primary = set()
    mid_written = False

    for index, line in enumerate(lines):
        if has_mid_line and mid_stops and _is_mid_line(line):
            # First mid line is rewritten; later ones are folded into it.
            if not mid_written:
                out.append(mid_text)
                mid_written = True
            continue
        out.append(line)
        if index == anchor:
            out.append(mid_text)
        for kind, pattern in _PRIMARY_LINE_PATTERNS.items():
            if kind in seen_primary or not pattern.match(line):
                continue
            seen_primary.add(kind)
            out.extend(extra for extra in _numbered_lines(kind, line, summary) if extra not in existing)

    if mid_stops and not has_mid_line and anchor is None:
        out.append(mid_text)
    return "\n".join(out)


def _labeled_candidates(labeled: LabeledField) -> List[AddressCandidate]:
    side = labeled.kind if labeled.kind in {PICKUP, DROPOFF} else MID_STOP
    kind = SOURCE_MARKDOWN_LINK if markdown_labels(labeled.body) else SOURCE_LABELED_LINE
    return [AddressCandidate(text=text, source_kind=kind, source_label=side) for text in split_address_body(labeled.body)]


def _remark_candidates(labeled: LabeledField) -> List[AddressCandidate]:
    found = [AddressCandidate(text, SOURCE_REMARK_SCAN, REMARKS) for text in markdown_labels(labeled.body)]
    for part in split_delimited(strip_urls(MARKDOWN_LINK_PATTERN.sub(" ", labeled.body)), REMARK_DELIMITERS):
        text = strip_markdown_link(_SEQUENCE_PREFIX_PATTERN.sub("", part))
        found.append(AddressCandidate(text, SOURCE_REMARK_SCAN, REMARKS))
    return _address_shaped(found)


def _sequence_candidates(line: str) -> List[AddressCandidate]:
    if not line:
        return []
    arrow = _ARROW_LINE_PATTERN.match(line)
    if arrow:
        body = arrow.group(1)
    elif _SEQUENCE_PATTERN.search(line):
        body = line
    else:
        return []
    # Pieces are split exactly like a labeled body so the rendered mid line re-parses to the same stops.
    found = []
    for piece in _ARROW_SPLIT_PATTERN.split(body):
        for part in split_address_body(piece):
            text = strip_markdown_link(_SEQUENCE_PREFIX_PATTERN.sub("", part))
            found.append(AddressCandidate(text, SOURCE_ARROW_SEQUENCE))
    return _address_shaped(found)


def _is_mid_line(line: str) -> bool:
    labeled = match_label(line)
    return labeled is not None and labeled.kind == MID_STOP


def _address_shaped(candidates) -> List[AddressCandidate]:
    kept: List[AddressCandidate] = []
    for candidate in candidates:
        if looks_like_address(candidate.text):
            kept.append(candidate)
        elif candidate.text:
            logger.debug("Dropping non-address fragment %r", candidate.text)
    return kept


def _mid_anchor_index(lines: List[str], attach_to: str) -> Optional[int]:
    order = (DROPOFF, PICKUP) if attach_to == ATTACH_DROPOFF else (PICKUP, DROPOFF)
    for kind in order:
        pattern = _PRIMARY_LINE_PATTERNS[kind]
        for index, line in enumerate(lines):
            if pattern.match(line):
                return index
    return None


def _numbered_lines(kind: str, line: str, summary: StopSummary) -> List[str]:
    """Extra ``上車地址2：`` style lines for addresses packed into the first labeled line."""

    labeled = match_label(line)
    if labeled is None:
        return []
    packed = split_address_body(labeled.body)
    addresses = summary.pickup if kind == PICKUP else summary.dropoff
    label = "上車地址" if kind == PICKUP else "下車地址"
    extra = [address for address in packed[1:] if address in addresses]
    return [f"{label}{position}：{address}" for position, address in enumerate(extra, start=2)]


__all__ = [
    "ATTACH_DROPOFF",
    "ATTACH_PICKUP",
    "AddressCandidate",
    "DISPLAY_CAP",
    "StopSummary",
    "augment_description",
    "collect_candidates",
    "reconcile",
]
