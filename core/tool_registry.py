"""Name-to-callable registry so parsed commands only reach known tools."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from core.parsers.types import CommandResult


class ToolFn(Protocol):
    def __call__(self, payload: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        ...


class ToolRegistry:
    """Registry that maps tool names to callables."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolFn] = {}
        self._bound: Dict[str, Dict[str, Any]] = {}

    def register_tool(self, name: str, fn: ToolFn) -> None:
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = fn

    def bind(self, name: str, **kwargs: Any) -> None:
        """Attach keyword arguments (store, provider) passed on every call to ``name``."""
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' is not registered")
        self._bound.setdefault(name, {}).update(kwargs)

    def run_tool(self, name: str, payload: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        try:
            tool_fn = self._tools[name]
        except KeyError as exc:
            raise KeyError(f"Tool '{name}' is not registered") from exc
        return tool_fn(payload, **{**self._bound.get(name, {}), **kwargs})

    def run_commands(self, commands: List[CommandResult], **kwargs: Any) -> List[Dict[str, Any]]:
        """Apply parsed commands in order; keyword arguments go to every tool."""
        return [self.run_tool(command.tool, dict(command.payload), **kwargs) for command in commands]

    def available_tools(self) -> Dict[str, ToolFn]:
        return dict(self._tools)


__all__ = ["ToolFn", "ToolRegistry"]
