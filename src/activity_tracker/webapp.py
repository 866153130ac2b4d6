"""FastAPI application exposing the activity tracker as a local JSON API."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .aggregation import aggregate_range
from .config import MAX_ACTIVITIES, AppSettings, ThemeConfig
from .dates import AggregationUnit, parse_day, range_for_unit, to_day_string
from .db import (
    clear_records,
    database_connection,
    delete_activity,
    delete_record,
    fetch_activity,
    insert_activity,
    load_settings,
    save_settings,
    seed_default_activities,
    update_activity,
)
from .models import Activity, ActivityRecord, AggregatedEntry, TimeBlock
from .paths import get_db_path
from .recording import ActivityRecorder
from .reporting import day_timeline, load_catalog, records_for_range

logger = logging.getLogger(__name__)


class ActivityCreate(BaseModel):
    name: str = Field(min_length=1)
    color: str
    icon: str = ""

    model_config = ConfigDict(extra="forbid")


class ActivityUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class StartPayload(BaseModel):
    activity_id: str

    model_config = ConfigDict(extra="forbid")


class ThemePayload(BaseModel):
    primary_color: str = "#6366f1"
    dark_mode: bool = False


class SettingsPayload(BaseModel):
    theme: ThemePayload = Field(default_factory=ThemePayload)
    max_activities: int = Field(default=MAX_ACTIVITIES, ge=1)

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_clock = clock or datetime.now

    app = FastAPI(title="Activity Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path

    with database_connection(resolved_db_path) as conn:
        seed_default_activities(conn, resolved_clock())

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        logger.info("Serving activity data from %s", resolved_db_path)

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            ongoing = ActivityRecorder(conn, resolved_clock).ongoing()
        return {
            "database_path": str(request.app.state.db_path),
            "recording": ongoing is not None,
        }

    @app.get("/api/activities")
    def list_activities(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            catalog = load_catalog(conn)
        return {"activities": [_activity_payload(a) for a in catalog.values()]}

    @app.post("/api/activities", status_code=201)
    def create_activity(payload: ActivityCreate, request: Request) -> Dict[str, Any]:
        name = payload.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="name is required")
        with database_connection(request.app.state.db_path) as conn:
            settings = load_settings(conn)
            try:
                activity = insert_activity(
                    conn,
                    name,
                    payload.color,
                    payload.icon,
                    created_at=resolved_clock(),
                    max_activities=settings.max_activities,
                )
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _activity_payload(activity)

    @app.patch("/api/activities/{activity_id}")
    def update_activity_endpoint(
        activity_id: str, payload: ActivityUpdate, request: Request
    ) -> Dict[str, Any]:
        updates = payload.model_dump(exclude_unset=True)
        with database_connection(request.app.state.db_path) as conn:
            try:
                update_activity(conn, activity_id, **updates)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Activity not found") from exc
            activity = fetch_activity(conn, activity_id)
        if activity is None:
            raise HTTPException(status_code=404, detail="Activity not found")
        return _activity_payload(activity)

    @app.delete("/api/activities/{activity_id}", status_code=204)
    def delete_activity_endpoint(activity_id: str, request: Request) -> None:
        with database_connection(request.app.state.db_path) as conn:
            try:
                delete_activity(conn, activity_id)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Activity not found") from exc

    @app.get("/api/records")
    def records(
        request: Request,
        date: Optional[str] = Query(default=None, description="Day in YYYY-MM-DD format."),
        start: Optional[str] = Query(default=None, description="Range start (inclusive)."),
        end: Optional[str] = Query(default=None, description="Range end (inclusive)."),
    ) -> Dict[str, Any]:
        now = resolved_clock()
        if start or end:
            first = _parse_date(start, now)
            last = _parse_date(end, now) if end else first
        else:
            first = last = _parse_date(date, now)
        _require_ordered(first, last)
        with database_connection(request.app.state.db_path) as conn:
            rows = records_for_range(conn, first, last, now)
        return {
            "start": to_day_string(first),
            "end": to_day_string(last),
            "records": [_record_payload(record) for record in rows],
        }

    @app.delete("/api/records/{record_id}", status_code=204)
    def delete_record_endpoint(record_id: str, request: Request) -> None:
        with database_connection(request.app.state.db_path) as conn:
            try:
                delete_record(conn, record_id)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Record not found") from exc

    @app.delete("/api/records", status_code=204)
    def reset_records(request: Request) -> None:
        with database_connection(request.app.state.db_path) as conn:
            clear_records(conn)
        logger.info("All records cleared.")

    @app.get("/api/ongoing")
    def ongoing(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            current = ActivityRecorder(conn, resolved_clock).ongoing()
        return {"ongoing": _record_payload(current) if current else None}

    @app.post("/api/start")
    def start(payload: StartPayload, request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            try:
                record = ActivityRecorder(conn, resolved_clock).start(payload.activity_id)
            except ValueError as exc:
                raise HTTPException(status_code=404, detail="Activity not found") from exc
        return {"ongoing": _record_payload(record)}

    @app.post("/api/stop")
    def stop(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            pieces = ActivityRecorder(conn, resolved_clock).stop()
        return {"records": [_record_payload(piece) for piece in pieces or []]}

    @app.get("/api/stats")
    def stats(
        request: Request,
        date: Optional[str] = Query(default=None, description="Reference day in YYYY-MM-DD format."),
        unit: AggregationUnit = Query(default=AggregationUnit.DAY),
        start: Optional[str] = Query(default=None, description="Explicit range start."),
        end: Optional[str] = Query(default=None, description="Explicit range end."),
    ) -> Dict[str, Any]:
        now = resolved_clock()
        if start or end:
            first = _parse_date(start, now)
            last = _parse_date(end, now) if end else first
            _require_ordered(first, last)
        else:
            first, last = range_for_unit(unit, _parse_date(date, now))
        with database_connection(request.app.state.db_path) as conn:
            rows = records_for_range(conn, first, last, now)
            catalog = load_catalog(conn)
        entries = aggregate_range(rows, catalog, first, last, now)
        return {
            "start": to_day_string(first),
            "end": to_day_string(last),
            "total_minutes": sum(entry.total_minutes for entry in entries),
            "entries": [_entry_payload(entry) for entry in entries],
        }

    @app.get("/api/timeline")
    def timeline(
        request: Request,
        date: Optional[str] = Query(default=None, description="Target date in YYYY-MM-DD format."),
    ) -> Dict[str, Any]:
        now = resolved_clock()
        target = _parse_date(date, now)
        with database_connection(request.app.state.db_path) as conn:
            blocks = day_timeline(conn, target, now)
        return {
            "date": to_day_string(target),
            "blocks": [_block_payload(block) for block in blocks],
        }

    @app.get("/api/settings")
    def get_settings(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            return load_settings(conn).to_dict()

    @app.put("/api/settings")
    def put_settings(payload: SettingsPayload, request: Request) -> Dict[str, Any]:
        settings = AppSettings(
            theme=ThemeConfig(**payload.theme.model_dump()),
            max_activities=payload.max_activities,
        )
        with database_connection(request.app.state.db_path) as conn:
            save_settings(conn, settings)
        return settings.to_dict()

    return app


def _parse_date(value: Optional[str], now: datetime) -> date:
    if not value:
        return now.date()
    try:
        return parse_day(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


def _require_ordered(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(status_code=400, detail="end date must be on or after start date")


def _activity_payload(activity: Activity) -> Dict[str, Any]:
    return {
        "id": activity.id,
        "name": activity.name,
        "color": activity.color,
        "icon": activity.icon,
        "sort_order": activity.sort_order,
        "created_at": activity.created_at.isoformat(),
    }


def _record_payload(record: ActivityRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "activity_id": record.activity_id,
        "start_time": record.start_time.isoformat(),
        "end_time": record.end_time.isoformat() if record.end_time else None,
        "calendar_day": to_day_string(record.calendar_day),
        "duration_seconds": record.duration_seconds,
    }


def _entry_payload(entry: AggregatedEntry) -> Dict[str, Any]:
    return {
        "kind": entry.kind.value,
        "activity_id": entry.activity_id,
        "name": entry.name,
        "color": entry.color,
        "total_minutes": entry.total_minutes,
        "percentage": entry.percentage,
    }


def _block_payload(block: TimeBlock) -> Dict[str, Any]:
    return {
        "kind": block.kind.value,
        "activity_id": block.activity_id,
        "name": block.name,
        "color": block.color,
        "start_minute": block.start_minute,
        "end_minute": block.end_minute,
        "duration_minutes": block.duration_minutes,
    }
