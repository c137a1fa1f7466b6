"""Sidebar navigation guard, the JSON read API and the realtime socket."""
from __future__ import annotations

import html
import logging
from dataclasses import asdict
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel

from cms.domain.entities import ENTITY_KINDS, EntityKind, to_dict
from cms.routers.deps import guarded_page, panel_for
from cms.routers.layout import MENU_PATHS, UNSAVED_PROMPT, admin_page
from cms.services.session_guard import SESSION_COOKIE_NAME, csrf_protect, load_admin_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["navigation"])


class UnsavedPayload(BaseModel):
    value: bool


def _kind_or_404(kind: str) -> EntityKind:
    entity_kind = ENTITY_KINDS.get(kind)
    if entity_kind is None:
        raise HTTPException(404, "colecao desconhecida")
    return entity_kind


@router.get("/nav", response_class=HTMLResponse)
def navigate(request: Request, to: str = "/", confirm: int = 0):
    if to not in MENU_PATHS:
        raise HTTPException(400, "destino invalido")
    guarded = guarded_page(request)
    if isinstance(guarded, RedirectResponse):
        return guarded
    sess, state = guarded
    if state.unsaved.should_confirm(bool(confirm)):
        body = f"""
          <article>
            <header><strong>Alterações não salvas</strong></header>
            <p>{html.escape(UNSAVED_PROMPT)}</p>
            <footer>
              <a role='button' class='secondary' href='javascript:history.back()'>Cancelar</a>
              <a role='button' href='/nav?to={quote(to, safe='')}&confirm=1'>Sair sem salvar</a>
            </footer>
          </article>
        """
        return admin_page("Admin | Confirmar", body, sess, state, active="")
    state.unsaved.reset()
    return RedirectResponse(to, status_code=303)


@router.post("/api/unsaved")
def set_unsaved(payload: UnsavedPayload, request: Request):
    csrf_protect(request, None)
    _, state = panel_for(request)
    state.unsaved.set(payload.value)
    return {"unsaved": state.unsaved.pending}


@router.post("/api/refresh")
def refresh(request: Request):
    csrf_protect(request, None)
    _, state = panel_for(request)
    ok = state.sync.refresh()
    return JSONResponse(
        {"ok": ok, "counts": state.sync.counts(), "notices": [asdict(n) for n in state.sync.drain_notices()]},
        status_code=200 if ok else 503,
    )


@router.get("/api/{kind}")
def list_collection(kind: str, request: Request):
    entity_kind = _kind_or_404(kind)
    _, state = panel_for(request)
    return {
        "kind": entity_kind.key,
        "is_loading": state.sync.is_loading,
        "items": [to_dict(record) for record in state.sync.items(entity_kind.key)],
    }


@router.websocket("/ws/{kind}")
async def watch_collection(websocket: WebSocket, kind: str):
    entity_kind = ENTITY_KINDS.get(kind)
    sess = await run_in_threadpool(load_admin_session, websocket.cookies.get(SESSION_COOKIE_NAME))
    if entity_kind is None or sess is None or sess.email not in websocket.app.state.accounts.list_admins():
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    manager = websocket.app.state.ws_manager
    await manager.connect(websocket, entity_kind.table)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("WS client for %s went away", entity_kind.table)
    finally:
        manager.disconnect(websocket, entity_kind.table)
