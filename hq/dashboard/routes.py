"""FastAPI router for the HQ modules -- one JSON endpoint group per document."""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from hq.common.config import REPO_DIR, load_config
from hq.service import HQService, SendError, SenderNotConfigured

logger = logging.getLogger("hq.dashboard.routes")

CONFIG_PATH = REPO_DIR / "config" / "config.yaml"

router = APIRouter(prefix="/api", tags=["hq"])

# One service per data directory so per-document locks are shared by requests.
_services: dict[str, HQService] = {}


def _cfg() -> dict[str, Any]:
    """Config from $HQ_CONFIG when set (as exported by `hq serve --config`), else CONFIG_PATH."""
    return load_config(os.environ.get("HQ_CONFIG") or CONFIG_PATH)


def _service() -> HQService:
    cfg = _cfg()
    svc = _services.get(cfg["data_dir"])
    if svc is None:
        svc = _services[cfg["data_dir"]] = HQService.from_config(cfg)
    return svc


async def _body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(400, "Invalid JSON body") from None
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    return body


def _split(body: dict[str, Any], *keys: str) -> tuple[list[Any], dict[str, Any]]:
    """Pop ``keys`` out of ``body``; return their values and the remainder."""
    rest = dict(body)
    return [rest.pop(k, None) for k in keys], rest


# ------------------------------------------------------------------
# Tasks
# ------------------------------------------------------------------

@router.get("/tasks")
async def get_tasks() -> JSONResponse:
    return JSONResponse(_service().get_tasks())


@router.post("/tasks")
async def create_task(request: Request) -> JSONResponse:
    body = await _body(request)
    return JSONResponse(_service().add_task(body))


@router.put("/tasks")
async def update_task(request: Request) -> JSONResponse:
    (task_id,), updates = _split(await _body(request), "id")
    return JSONResponse(_service().update_task(task_id, updates))


@router.delete("/tasks")
async def delete_task(id: str = "") -> JSONResponse:
    return JSONResponse(_service().delete_task(id))


# ------------------------------------------------------------------
# Kanban
# ------------------------------------------------------------------

@router.get("/kanban")
async def get_kanban() -> JSONResponse:
    return JSONResponse(_service().get_kanban())


@router.post("/kanban")
async def create_card(request: Request) -> JSONResponse:
    (column_id,), fields = _split(await _body(request), "columnId")
    return JSONResponse(_service().add_card(fields, column_id))


@router.put("/kanban")
async def update_kanban(request: Request) -> JSONResponse:
    body = await _body(request)
    svc = _service()
    action = body.get("action")

    if action == "move":
        to_index = body.get("toIndex")
        if to_index is not None:
            try:
                to_index = int(to_index)
            except (TypeError, ValueError):
                return JSONResponse({"error": "toIndex must be an integer"}, status_code=400)
        return JSONResponse(svc.move_card(
            body.get("cardId"), body.get("fromColumn"), body.get("toColumn"), to_index,
        ))
    if action == "add-label":
        return JSONResponse(svc.add_label(str(body.get("label") or "")))
    if action == "delete-label":
        return JSONResponse(svc.delete_label(str(body.get("label") or "")))
    if action == "restore":
        return JSONResponse(svc.restore_card(body.get("cardId")))

    (card_id, _), updates = _split(body, "cardId", "action")
    return JSONResponse(svc.update_card(card_id, updates))


@router.delete("/kanban")
async def archive_card(cardId: str = "", columnId: str = "", action: str = "") -> JSONResponse:
    if action != "archive":
        return JSONResponse({"error": "Invalid action"}, status_code=400)
    return JSONResponse(_service().archive_card(cardId, columnId))


# ------------------------------------------------------------------
# Content pipeline
# ------------------------------------------------------------------

@router.get("/content")
async def get_content() -> JSONResponse:
    return JSONResponse(_service().get_content())


@router.post("/content")
async def create_piece(request: Request) -> JSONResponse:
    return JSONResponse(_service().add_piece(await _body(request)))


@router.put("/content")
async def update_content(request: Request) -> JSONResponse:
    (piece_id, action), updates = _split(await _body(request), "id", "action")
    svc = _service()

    if action == "add-angle":
        return JSONResponse(svc.add_angle(str(updates.get("name") or ""), updates.get("color")))
    if action == "update-angle":
        return JSONResponse(svc.update_angle(piece_id, updates.get("name"), updates.get("color")))
    if action == "delete-angle":
        return JSONResponse(svc.delete_angle(piece_id))
    if action == "archive":
        return JSONResponse(svc.archive_piece(piece_id))
    if action == "restore":
        return JSONResponse(svc.restore_piece(piece_id))
    return JSONResponse(svc.update_piece(piece_id, updates))


@router.delete("/content")
async def delete_piece(id: str = "", source: str = Query("content", alias="from")) -> JSONResponse:
    return JSONResponse(_service().delete_piece(id, source))


@router.get("/content/draft")
async def get_draft(pieceId: str = "", format: str = "") -> JSONResponse:
    try:
        content = _service().read_draft(pieceId, format)
    except ValueError:
        return JSONResponse({"error": "Invalid pieceId or format"}, status_code=400)
    return JSONResponse({"content": content})


@router.put("/content/draft")
async def put_draft(request: Request) -> JSONResponse:
    body = await _body(request)
    text = body.get("content") or ""
    if not isinstance(text, str):
        return JSONResponse({"error": "content must be a string"}, status_code=400)
    try:
        backup = _service().save_draft(str(body.get("pieceId") or ""), str(body.get("format") or ""), text)
    except ValueError:
        return JSONResponse({"error": "Invalid pieceId or format"}, status_code=400)
    return JSONResponse({"ok": True, "backup": backup})


@router.get("/content/draft/backups")
async def get_backups(pieceId: str = "", format: str = "", filename: str = "") -> JSONResponse:
    svc = _service()
    if filename:
        return JSONResponse({"content": svc.read_backup(filename)})
    try:
        backups = svc.list_backups(pieceId, format)
    except ValueError:
        return JSONResponse({"error": "Invalid params"}, status_code=400)
    return JSONResponse({"backups": backups})


# ------------------------------------------------------------------
# Ideas
# ------------------------------------------------------------------

@router.get("/ideas")
async def get_ideas() -> JSONResponse:
    return JSONResponse(_service().get_ideas())


@router.post("/ideas")
async def create_idea(request: Request) -> JSONResponse:
    return JSONResponse(_service().add_idea(await _body(request)))


@router.put("/ideas")
async def update_ideas(request: Request) -> JSONResponse:
    (idea_id, action), updates = _split(await _body(request), "id", "action")
    svc = _service()

    if action == "archive":
        return JSONResponse(svc.archive_idea(idea_id))
    if action == "restore":
        return JSONResponse(svc.restore_idea(idea_id))
    if action == "add-tag":
        return JSONResponse(svc.add_idea_tag(str(updates.get("tag") or "")))
    if action == "delete-tag":
        return JSONResponse(svc.delete_idea_tag(str(updates.get("tag") or "")))
    return JSONResponse(svc.update_idea(idea_id, updates))


@router.delete("/ideas")
async def delete_idea(id: str = "") -> JSONResponse:
    return JSONResponse(_service().delete_idea(id))


# ------------------------------------------------------------------
# Memory log
# ------------------------------------------------------------------

@router.get("/memory")
async def get_memory() -> JSONResponse:
    return JSONResponse(_service().get_memory())


@router.get("/memory/activity")
async def get_memory_activity(days: int = 90) -> JSONResponse:
    return JSONResponse({"days": _service().memory_activity(max(1, days))})


@router.post("/memory")
async def create_memory_entry(request: Request) -> JSONResponse:
    return JSONResponse(_service().add_memory_entry(await _body(request)))


@router.put("/memory")
async def update_memory_entry(request: Request) -> JSONResponse:
    (entry_id,), updates = _split(await _body(request), "id")
    return JSONResponse(_service().update_memory_entry(entry_id, updates))


@router.delete("/memory")
async def delete_memory_entry(id: str = "") -> JSONResponse:
    return JSONResponse(_service().delete_memory_entry(id))


# ------------------------------------------------------------------
# Agenda & calendar
# ------------------------------------------------------------------

@router.get("/agenda")
async def get_agenda() -> JSONResponse:
    return JSONResponse(_service().get_agenda())


@router.post("/agenda")
async def save_agenda(request: Request) -> JSONResponse:
    body = await _body(request)
    return JSONResponse(_service().save_agenda_notes(body.get("apolloNotes"), body.get("date")))


@router.put("/agenda")
async def update_agenda(request: Request) -> JSONResponse:
    (entry_id,), updates = _split(await _body(request), "id")
    return JSONResponse(_service().update_agenda_entry(entry_id, updates))


@router.get("/agenda/today")
async def get_agenda_today() -> JSONResponse:
    return JSONResponse(_service().today_agenda())


@router.post("/agenda/send")
async def send_agenda() -> JSONResponse:
    try:
        result = _service().send_agenda()
    except SenderNotConfigured as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except SendError as exc:
        return JSONResponse({"error": str(exc)}, status_code=502)
    return JSONResponse(result)


@router.get("/calendar/events")
async def get_calendar_events(start: str = "", end: str = "") -> JSONResponse:
    if not start or not end:
        return JSONResponse({"error": "start and end query params required"}, status_code=400)
    return JSONResponse({"events": _service().calendar_events(start, end), "connected": True})


@router.get("/calendar/status")
async def get_calendar_status() -> JSONResponse:
    return JSONResponse(_service().calendar_status())


# ------------------------------------------------------------------
# Analytics, sprint, docs
# ------------------------------------------------------------------

@router.get("/analytics")
async def get_analytics() -> JSONResponse:
    return JSONResponse(_service().get_analytics())


@router.post("/analytics")
async def add_analytics_entry(request: Request) -> JSONResponse:
    body = await _body(request)
    return JSONResponse(_service().add_analytics_entry(str(body.get("platform") or ""), body.get("entry") or {}))


@router.put("/analytics")
async def merge_analytics(request: Request) -> JSONResponse:
    return JSONResponse(_service().merge_analytics(await _body(request)))


@router.get("/sprint")
async def get_sprint() -> JSONResponse:
    return JSONResponse(_service().get_sprint())


@router.put("/sprint")
async def merge_sprint(request: Request) -> JSONResponse:
    return JSONResponse(_service().merge_sprint(await _body(request)))


@router.get("/docs")
async def get_docs(filename: str = "") -> JSONResponse:
    svc = _service()
    if filename:
        return JSONResponse({"content": svc.read_doc(filename)})
    return JSONResponse(svc.get_docs())


@router.post("/docs")
async def create_doc(request: Request) -> JSONResponse:
    try:
        return JSONResponse(_service().register_doc(await _body(request)))
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from None


@router.put("/docs")
async def update_doc(request: Request) -> JSONResponse:
    (doc_id,), updates = _split(await _body(request), "id")
    try:
        return JSONResponse(_service().update_doc(doc_id, updates))
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from None


@router.delete("/docs")
async def delete_doc(id: str = "") -> JSONResponse:
    return JSONResponse(_service().delete_doc(id))
