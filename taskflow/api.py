"""FastAPI routes over TrackerService.

Error values returned by the service map to HTTP status codes through
``_STATUS_CODES``; a RepositoryError raised by a read becomes a 503.
"""

from __future__ import annotations

import asyncio
from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response

from taskflow.errors import (
    MalformedImportError,
    NotFoundError,
    PersistenceError,
    RepositoryError,
    TrackerError,
    ValidationError,
)
from taskflow.filters import task_flags
from taskflow.service import TrackerService
from taskflow.workspace import configure_logging, load_settings

CollectionKind = Literal["tasks", "habits"]

_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    PersistenceError: 503,
    MalformedImportError: 400,
}


def get_service() -> TrackerService:
    """Service bound to the workspace in TASKFLOW_ROOT; overridden in tests."""
    return TrackerService.from_workspace()


def _fail(error: TrackerError) -> HTTPException:
    return HTTPException(status_code=_STATUS_CODES.get(type(error), 400), detail=error.to_dict())


def _not_found(entity: str, entity_id: str) -> HTTPException:
    return _fail(NotFoundError.for_id(entity, entity_id))


def _ids(payload: dict[str, Any]) -> list[str]:
    ids = payload.get("ids")
    if not isinstance(ids, list) or not ids:
        raise HTTPException(status_code=400, detail="Missing ids")
    return [str(i) for i in ids]


router = APIRouter()


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


# ── Tasks ─────────────────────────────────────────────────────


@router.get("/api/tasks")
def api_list_tasks(
    search: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    start: str | None = None,
    end: str | None = None,
    sort_by: str = Query("dueDate", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    service: TrackerService = Depends(get_service),
) -> dict[str, Any]:
    """List tasks, filtered and sorted, with computed display fields."""
    criteria: dict[str, Any] = {
        "search": search,
        "status": status,
        "priority": priority,
        "category": category,
    }
    if start or end:
        criteria["dateRange"] = {"start": start, "end": end}
    today = service.today()
    tasks = service.filtered_tasks(criteria, sort_by, sort_order)
    return {"tasks": [task_flags(t, today) for t in tasks]}


@router.post("/api/tasks")
def api_create_task(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    task, error = service.create_task(payload)
    if error:
        raise _fail(error)
    return {"ok": True, "task": task.to_dict()}


@router.get("/api/tasks/stats")
def api_task_stats(service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    return {
        "stats": service.task_stats().to_dict(),
        "productivity": service.productivity_metrics().to_dict(),
        "progress": service.progress_summary().to_dict(),
    }


@router.get("/api/tasks/by-due-date")
def api_tasks_by_due_date(service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    today = service.today()
    groups = service.tasks_by_due_date()
    return {"groups": {name: [task_flags(t, today) for t in tasks] for name, tasks in groups.items()}}


@router.post("/api/tasks/bulk-update")
def api_bulk_update_tasks(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    task_ids = _ids(payload)
    updates = payload.get("updates")
    if not isinstance(updates, dict):
        raise HTTPException(status_code=400, detail="Missing updates")
    tasks, error = service.bulk_update_tasks(task_ids, updates)
    if error:
        raise _fail(error)
    return {"ok": True, "tasks": [t.to_dict() for t in tasks]}


@router.post("/api/tasks/bulk-complete")
def api_bulk_complete_tasks(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    tasks, error = service.bulk_complete_tasks(_ids(payload))
    if error:
        raise _fail(error)
    return {"ok": True, "tasks": [t.to_dict() for t in tasks]}


@router.post("/api/tasks/bulk-delete")
def api_bulk_delete_tasks(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    deleted, error = service.bulk_delete_tasks(_ids(payload))
    if error:
        raise _fail(error)
    return {"ok": True, "deleted": deleted}


@router.put("/api/tasks/{task_id}")
def api_update_task(task_id: str, payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    task, error = service.update_task(task_id, payload)
    if error:
        raise _fail(error)
    return {"ok": True, "task": task.to_dict()}


@router.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    _, error = service.delete_task(task_id)
    if error:
        raise _fail(error)
    return {"ok": True, "task_id": task_id}


# ── Habits ────────────────────────────────────────────────────


@router.get("/api/habits")
def api_list_habits(
    search: str | None = None,
    frequency: str | None = None,
    category: str | None = None,
    completed_today: str | None = Query(None, alias="completedToday"),
    service: TrackerService = Depends(get_service),
) -> dict[str, Any]:
    habits = service.filtered_habits({
        "search": search,
        "frequency": frequency,
        "category": category,
        "completedToday": completed_today,
    })
    return {"habits": [h.to_dict() for h in habits]}


@router.post("/api/habits")
def api_create_habit(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    habit, error = service.create_habit(payload)
    if error:
        raise _fail(error)
    return {"ok": True, "habit": habit.to_dict()}


@router.get("/api/habits/stats")
def api_habit_stats(service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    return {
        "stats": service.habit_stats().to_dict(),
        "performance": service.habit_performance().to_dict(),
    }


@router.post("/api/habits/bulk-toggle")
def api_bulk_toggle_habits(payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    """Set completion for payload["date"] (default today) on every listed habit."""
    completed = payload.get("completed", True)
    if not isinstance(completed, bool):
        raise HTTPException(status_code=400, detail="completed must be true or false")
    habits, error = service.bulk_toggle_habits(_ids(payload), completed, payload.get("date"))
    if error:
        raise _fail(error)
    return {"ok": True, "habits": [h.to_dict() for h in habits]}


@router.put("/api/habits/{habit_id}")
def api_update_habit(habit_id: str, payload: dict[str, Any] = Body(...), service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    habit, error = service.update_habit(habit_id, payload)
    if error:
        raise _fail(error)
    return {"ok": True, "habit": habit.to_dict()}


@router.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str, service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    _, error = service.delete_habit(habit_id)
    if error:
        raise _fail(error)
    return {"ok": True, "habit_id": habit_id}


@router.post("/api/habits/{habit_id}/toggle")
def api_toggle_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    service: TrackerService = Depends(get_service),
) -> dict[str, Any]:
    """Toggle completion for payload["date"], or today when absent."""
    habit, error = service.toggle_habit_completion(habit_id, payload.get("date"))
    if error:
        raise _fail(error)
    return {"ok": True, "habit": habit.to_dict()}


@router.get("/api/habits/{habit_id}/streak")
def api_habit_streak(habit_id: str, service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    info = service.habit_streak(habit_id)
    if info is None:
        raise _not_found("habit", habit_id)
    return {"habit_id": habit_id, "streak": info.to_dict()}


@router.get("/api/habits/{habit_id}/calendar")
def api_habit_calendar(
    habit_id: str,
    year: int | None = Query(None, ge=1, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    service: TrackerService = Depends(get_service),
) -> dict[str, Any]:
    cal = service.habit_calendar(habit_id, year, month)
    if cal is None:
        raise _not_found("habit", habit_id)
    return cal.to_dict()


@router.get("/api/categories")
def api_categories(service: TrackerService = Depends(get_service)) -> dict[str, list[str]]:
    return service.categories()


# ── Export / import ───────────────────────────────────────────


@router.get("/api/export/{kind}")
def api_export(kind: CollectionKind, service: TrackerService = Depends(get_service)) -> Response:
    return Response(
        content=service.export_collection(kind),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{kind}.json"'},
    )


@router.post("/api/import/{kind}")
async def api_import(kind: CollectionKind, request: Request, service: TrackerService = Depends(get_service)) -> dict[str, Any]:
    """Import a JSON array; skipped records are listed under "errors"."""
    text = (await request.body()).decode("utf-8", errors="replace")
    result, error = await asyncio.to_thread(service.import_collection, kind, text)
    if error:
        raise _fail(error)
    return {"ok": True, **result.to_dict()}


# ── App ───────────────────────────────────────────────────────


async def _repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": exc.error.to_dict()})


def create_app() -> FastAPI:
    configure_logging(load_settings())
    application = FastAPI(title="Taskflow", version="0.1.0")
    application.include_router(router)
    application.add_exception_handler(RepositoryError, _repository_error)
    return application


app = create_app()
