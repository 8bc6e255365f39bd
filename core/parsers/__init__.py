"""Parsers turning AI tool calls and stored events into tool payloads."""

from . import calendar, flight

__all__ = ["calendar", "flight"]
