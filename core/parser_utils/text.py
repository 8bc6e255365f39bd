"""Common text-processing helpers shared by the extractor and stop reconciler."""

from __future__ import annotations

import re
from typing import Iterable, List

ADDRESS_DELIMITERS = re.compile(r"[、，,；;/]")
REMARK_DELIMITERS = re.compile(r"[、，,；;/\s]+")
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_WHOLE_MARKDOWN_LINK = re.compile(r"^\[([^\]]+)\]\(([^)]+)\)$")
_ADDRESS_SHAPE_PATTERN = re.compile(
    r"[一-龥0-9].*(?:路|街|大道|巷|弄|段|號|樓|館|站|機場|航廈|里|社區|園區)"
)
_NOISE_PATTERN = re.compile(r"^https?:|^www\.|api=1&query=", re.IGNORECASE)
_URL_PATTERN = re.compile(r"(?:https?://|www\.)[^\s、，,；;]+", re.IGNORECASE)


def split_delimited(body: str, pattern: re.Pattern[str] = ADDRESS_DELIMITERS) -> List[str]:
    """Split ``body`` on list delimiters, dropping empty fragments."""

    return [part.strip() for part in pattern.split(body or "") if part.strip()]


def markdown_labels(body: str) -> List[str]:
    """Return the label text of every ``[label](url)`` link in ``body``."""

    return [match.group(1).strip() for match in MARKDOWN_LINK_PATTERN.finditer(body or "") if match.group(1).strip()]


def strip_markdown_link(value: str) -> str:
    """Return the label when ``value`` is exactly one Markdown link, else ``value`` trimmed."""

    text = (value or "").strip()
    match = _WHOLE_MARKDOWN_LINK.match(text)
    return match.group(1).strip() if match else text


def strip_urls(body: str) -> str:
    """Blank out bare URLs so their slashes are not read as list delimiters."""

    return _URL_PATTERN.sub(" ", body or "")


def split_address_body(body: str) -> List[str]:
    """Turn a labeled address body into individual address strings.

    Markdown link labels win over the raw text; otherwise the body is split on
    the list delimiters. URLs and placeholder words never survive.
    """

    labels = markdown_labels(body)
    items = labels if labels else split_delimited(strip_urls(body))
    return [item for item in items if not is_noise(item)]


def is_noise(value: str) -> bool:
    text = (value or "").strip()
    if not text:
        return True
    if text.lower() == "search":
        return True
    return bool(_NOISE_PATTERN.search(text))


def looks_like_address(value: str) -> bool:
    """Heuristic for Taiwanese addresses: CJK/digit followed by a street/landmark suffix."""

    text = (value or "").strip()
    if is_noise(text) or "http" in text.lower():
        return False
    return bool(_ADDRESS_SHAPE_PATTERN.search(text))


def unique_in_order(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


__all__ = [
    "ADDRESS_DELIMITERS",
    "MARKDOWN_LINK_PATTERN",
    "REMARK_DELIMITERS",
    "is_noise",
    "looks_like_address",
    "markdown_labels",
    "split_address_body",
    "split_delimited",
    "strip_markdown_link",
    "strip_urls",
    "unique_in_order",
]
