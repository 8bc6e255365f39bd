"""FastAPI service exposing normalization, stop summaries, and flight status."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from app.config import configure_logging, get_calendar_storage_path, get_midstop_attach_side
from core import flight_service
from core.command_parser import parse_tool_calls
from core.event_resolver import resolve
from core.parsers import flight as flight_parser
from core.stop_reconciler import ATTACH_DROPOFF, ATTACH_PICKUP, augment_description, reconcile
from core.text_parsing import describe_flight, extract_phone_numbers
from core.tool_registry import ToolRegistry
from tools import calendar_edit_tool, load_all_core_tools

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    "missing_flight": 400,
    "invalid_date": 400,
    "not_found": 404,
    "provider_error": 502,
    "not_configured": 503,
}


class NormalizeRequest(BaseModel):
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    allDay: bool = False
    description: Optional[str] = None


class StopsRequest(BaseModel):
    description: str = ""
    attachTo: Optional[str] = None


class ToolCallsRequest(BaseModel):
    calls: List[Dict[str, Any]] = Field(default_factory=list)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_app(
    *,
    calendar_store: calendar_edit_tool.CalendarStore | None = None,
    flight_provider: flight_service.FlightProvider | None = None,
    clock: Callable[[], datetime] = _utc_now,
) -> FastAPI:
    """Build the API; collaborators are injectable so tests avoid disk and network."""

    configure_logging()
    app = FastAPI(title="Transfer Calendar API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    store = calendar_store or calendar_edit_tool.CalendarStore(get_calendar_storage_path())
    registry = ToolRegistry()
    load_all_core_tools(registry)
    registry.bind("calendar_edit", store=store)
    if flight_provider is not None:
        registry.bind("flight_status", provider=flight_provider)

    app.state.calendar_store = store
    app.state.registry = registry

    @app.get("/api/health")
    def health_check() -> Dict[str, Any]:
        return {"status": "ok", "tools": sorted(registry.available_tools())}

    @app.get("/api/flight-status")
    def flight_status(
        flight: Optional[str] = None,
        ident: Optional[str] = None,
        f: Optional[str] = None,
        date: Optional[str] = None,
    ) -> Dict[str, Any]:
        requested = flight_service.normalize_ident(flight or ident or f)
        if not requested:
            raise HTTPException(status_code=400, detail="Query parameter 'flight' is required.")
        if not date:
            raise HTTPException(status_code=400, detail="Query parameter 'date' is required.")
        return _lookup_flight({"flight": requested, "date": date})

    @app.get("/api/events/{event_id}/flight")
    def event_flight_status(event_id: str) -> Dict[str, Any]:
        event = store.get_event(event_id)
        if event is None:
            raise HTTPException(status_code=404, detail=f"Event '{event_id}' was not found.")
        if not flight_parser.matches(event):
            raise HTTPException(status_code=404, detail="Event does not mention a flight.")
        command = flight_parser.parse(event)
        if command is None:
            raise HTTPException(status_code=404, detail="Event is not an airport pickup.")
        return _lookup_flight(command.payload)

    def _lookup_flight(payload: Dict[str, Any]) -> Dict[str, Any]:
        result = registry.run_tool("flight_status", dict(payload), now=clock())
        if "error" in result:
            raise HTTPException(status_code=_ERROR_STATUS.get(result["error"], 500), detail=result["message"])
        return {key: value for key, value in result.items() if key != "type"}

    @app.post("/api/events/normalize")
    def normalize_event(payload: NormalizeRequest) -> Dict[str, Any]:
        times = resolve(payload.model_dump(), now=clock())
        reference = describe_flight(None, payload.description)
        return {
            **times.to_dict(),
            "phones": extract_phone_numbers(payload.description),
            "flight": reference.ident if reference else None,
        }

    @app.post("/api/stops")
    def stop_summary(payload: StopsRequest) -> Dict[str, Any]:
        summary = reconcile(payload.description)
        attach_to = (payload.attachTo or get_midstop_attach_side()).strip().lower()
        if attach_to not in (ATTACH_PICKUP, ATTACH_DROPOFF):
            raise HTTPException(status_code=400, detail="attachTo must be 'pickup' or 'dropoff'.")
        return {
            **summary.to_dict(),
            "description": augment_description(payload.description, summary, attach_to=attach_to),
        }

    @app.post("/api/tool-calls")
    def apply_tool_calls(payload: ToolCallsRequest) -> Dict[str, Any]:
        now = clock()
        commands = parse_tool_calls(payload.calls, now=now)
        results = registry.run_commands(commands, now=now)
        logger.info("Applied %d of %d tool calls", len(results), len(payload.calls))
        return {"results": results}

    @app.get("/api/events")
    def list_events() -> Dict[str, Any]:
        return registry.run_tool("calendar_edit", {"action": "list"})

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from app.config import get_web_ui_host, get_web_ui_port

    uvicorn.run(
        "app.web_api:app",
        host=get_web_ui_host(),
        port=get_web_ui_port(),
        reload=False,
    )
