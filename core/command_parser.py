"""Command parser that turns model function calls into tool payloads."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from core.parsers import calendar
from core.parsers.types import CommandResult

logger = logging.getLogger(__name__)


def parse_tool_call(call: Mapping[str, Any], *, now: Optional[datetime] = None) -> Optional[CommandResult]:
    """Parse one ``{"name": ..., "args": ...}`` function call.

    Unknown call names return ``None`` so the caller can fall back to the
    model's text reply.
    """
    if not isinstance(call, Mapping):
        return None
    name = str(call.get("name") or "").strip()
    args = call.get("args")
    if args is None:
        args = call.get("arguments")
    if isinstance(args, str):
        # OpenAI-style calls carry arguments as a JSON string.
        try:
            args = json.loads(args)
        except json.JSONDecodeError:
            logger.debug("Function call %r has unreadable arguments", name)
            args = {}
    if not isinstance(args, Mapping):
        args = {}

    if calendar.matches(name):
        return calendar.parse(name, args, now=now)

    logger.debug("Ignoring unsupported function call %r", name)
    return None


def parse_tool_calls(calls: Iterable[Mapping[str, Any]], *, now: Optional[datetime] = None) -> List[CommandResult]:
    """Parse every supported call, preserving order."""
    results: List[CommandResult] = []
    for call in calls or []:
        result = parse_tool_call(call, now=now)
        if result is not None:
            results.append(result)
    return results


__all__ = ["parse_tool_call", "parse_tool_calls", "CommandResult"]
