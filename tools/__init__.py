"""Register the calendar and flight tools with the shared registry."""

from __future__ import annotations

from core.tool_registry import ToolRegistry
from tools import calendar_edit_tool, flight_status_tool


def load_all_core_tools(registry: ToolRegistry) -> None:
    registry.register_tool("calendar_edit", calendar_edit_tool.run)
    registry.register_tool("flight_status", flight_status_tool.run)
