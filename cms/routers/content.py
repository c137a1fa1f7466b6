"""
List/create/edit/delete pages for the four content collections.

One router per entity kind, built by `build_router`. Every write goes through
the session's AdminSyncContext, so the store sees a reconcile of the whole
collection and the page re-renders from the re-fetched list.
"""
from __future__ import annotations

import html
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

from cms.domain.entities import ENTITY_KINDS, EntityKind, to_dict
from cms.domain.validation import ValidationFailure, validate_entity
from cms.routers.deps import guarded_page, panel_for
from cms.routers.layout import admin_page
from cms.services.session_guard import csrf_protect

# name -> (label, input type)
FIELD_META = {
    "image_url": ("URL da imagem", "url"),
    "quote": ("Depoimento", "textarea"),
    "author": ("Autor", "text"),
    "business": ("Estabelecimento", "text"),
    "location": ("Localização", "text"),
    "logo_url": ("URL do logo", "url"),
    "title": ("Título", "text"),
    "url": ("URL do vídeo", "url"),
}

IMAGE_FIELDS = {"image_url", "logo_url"}


def _input(name: str, value: str) -> str:
    label, kind = FIELD_META[name]
    escaped = html.escape(value or "")
    if kind == "textarea":
        control = f"<textarea name='{name}' rows='4' required>{escaped}</textarea>"
    else:
        control = f"<input name='{name}' type='{kind}' value='{escaped}' required>"
    return f"<label>{html.escape(label)}{control}</label>"


def _form(kind: EntityKind, action: str, csrf_token: str, values: dict, error: str, submit: str) -> str:
    fields = "".join(_input(name, values.get(name, "")) for name in kind.fields)
    return f"""
      {('<mark role="alert">' + html.escape(error) + '</mark>') if error else ''}
      <form method='post' action='{action}' data-track-changes>
        <input type='hidden' name='csrf_token' value='{html.escape(csrf_token)}'>
        {fields}
        <button>{html.escape(submit)}</button>
      </form>
    """


def _cell(name: str, value: str) -> str:
    escaped = html.escape(value or "")
    if name in IMAGE_FIELDS:
        return f"<td><img class='thumb' src='{escaped}' alt=''></td>"
    if name == "url":
        return f"<td><a href='{escaped}' target='_blank' rel='noopener'>{escaped}</a></td>"
    return f"<td>{escaped}</td>"


def _rows(kind: EntityKind, items: list, csrf_token: str) -> str:
    rows = []
    for record in items:
        data = to_dict(record)
        base = f"/{kind.key}/{quote(record.id, safe='')}"
        cells = "".join(_cell(name, data[name]) for name in kind.fields)
        rows.append(
            f"""
            <tr id='row-{html.escape(record.id)}'>{cells}
              <td><a href='{base}/edit'>Editar</a></td>
              <td>
                <form method='post' action='{base}/delete' style='margin:0'
                      onsubmit="return confirm('Tem certeza que deseja excluir este {html.escape(kind.singular)}?')">
                  <input type='hidden' name='csrf_token' value='{html.escape(csrf_token)}'>
                  <button class='secondary'>Excluir</button>
                </form>
              </td>
            </tr>
            """
        )
    if not rows:
        span = len(kind.fields) + 2
        return f"<tr><td colspan='{span}'>Nenhum item cadastrado.</td></tr>"
    return "".join(rows)


def render_list(
    request: Request,
    kind: EntityKind,
    sess,
    state,
    *,
    form_open: bool = False,
    values: Optional[dict] = None,
    error: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    csrf_token = sess.csrf_token
    header = "".join(f"<th>{html.escape(FIELD_META[name][0])}</th>" for name in kind.fields)
    open_attr = " open" if form_open else ""
    body = f"""
      <h1>{html.escape(kind.label)}</h1>
      <details{open_attr}>
        <summary role='button'>Adicionar {html.escape(kind.singular)}</summary>
        {_form(kind, f"/{kind.key}/create", csrf_token, values or {}, error, "Salvar")}
      </details>
      <table>
        <thead><tr>{header}<th></th><th></th></tr></thead>
        <tbody>{_rows(kind, state.sync.items(kind.key), csrf_token)}</tbody>
      </table>
    """
    return admin_page(
        f"Admin | {kind.label}",
        body,
        sess,
        state,
        active=kind.key,
        watch_table=kind.key,
        status_code=status_code,
    )


def render_edit(
    request: Request,
    kind: EntityKind,
    sess,
    state,
    entity_id: str,
    values: dict,
    *,
    error: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    action = f"/{kind.key}/{quote(entity_id, safe='')}/update"
    body = f"""
      <h1>Editar {html.escape(kind.singular)}</h1>
      <article>
        {_form(kind, action, sess.csrf_token, values, error, "Salvar alterações")}
        <a href='/nav?to={quote('/' + kind.key, safe='')}'>Cancelar</a>
      </article>
    """
    return admin_page(f"Admin | {kind.label}", body, sess, state, active=kind.key, status_code=status_code)


def _submitted(kind: EntityKind, form) -> dict:
    return {name: str(form.get(name) or "") for name in kind.fields}


def build_router(kind: EntityKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.key}", tags=[kind.key])
    list_path = f"/{kind.key}"

    def _list_page(request: Request):
        guarded = guarded_page(request)
        if isinstance(guarded, RedirectResponse):
            return guarded
        sess, state = guarded
        state.unsaved.reset()
        return render_list(request, kind, sess, state)

    def _edit_page(request: Request, entity_id: str):
        guarded = guarded_page(request)
        if isinstance(guarded, RedirectResponse):
            return guarded
        sess, state = guarded
        record = state.sync.find(kind.key, entity_id)
        if record is None:
            raise HTTPException(404, "item nao encontrado")
        state.unsaved.reset()
        return render_edit(request, kind, sess, state, entity_id, to_dict(record))

    def _create(request: Request, submitted: dict, csrf_token: str):
        csrf_protect(request, csrf_token)
        sess, state = panel_for(request)
        try:
            cleaned = validate_entity(kind, submitted)
        except ValidationFailure as exc:
            return render_list(request, kind, sess, state, form_open=True, values=submitted, error=exc.message, status_code=400)
        if not state.sync.add(kind.key, **cleaned):
            return render_list(request, kind, sess, state, form_open=True, values=submitted, status_code=503)
        state.unsaved.reset()
        return RedirectResponse(list_path, status_code=303)

    def _update(request: Request, entity_id: str, submitted: dict, csrf_token: str):
        csrf_protect(request, csrf_token)
        sess, state = panel_for(request)
        if state.sync.find(kind.key, entity_id) is None:
            raise HTTPException(404, "item nao encontrado")
        try:
            cleaned = validate_entity(kind, submitted)
        except ValidationFailure as exc:
            return render_edit(request, kind, sess, state, entity_id, submitted, error=exc.message, status_code=400)
        try:
            saved = state.sync.edit(kind.key, entity_id, **cleaned)
        except KeyError:
            raise HTTPException(404, "item nao encontrado")
        if not saved:
            return render_edit(request, kind, sess, state, entity_id, submitted, status_code=503)
        state.unsaved.reset()
        return RedirectResponse(list_path, status_code=303)

    def _delete(request: Request, entity_id: str, csrf_token: str):
        csrf_protect(request, csrf_token)
        sess, state = panel_for(request)
        try:
            removed = state.sync.remove(kind.key, entity_id)
        except KeyError:
            raise HTTPException(404, "item nao encontrado")
        if not removed:
            return render_list(request, kind, sess, state, status_code=503)
        return RedirectResponse(list_path, status_code=303)

    @router.get("", response_class=HTMLResponse)
    async def list_page(request: Request):
        return await run_in_threadpool(_list_page, request)

    @router.get("/{entity_id}/edit", response_class=HTMLResponse)
    async def edit_page(entity_id: str, request: Request):
        return await run_in_threadpool(_edit_page, request, entity_id)

    @router.post("/create")
    async def create(request: Request):
        form = await request.form()
        return await run_in_threadpool(_create, request, _submitted(kind, form), str(form.get("csrf_token") or ""))

    @router.post("/{entity_id}/update")
    async def update(entity_id: str, request: Request):
        form = await request.form()
        return await run_in_threadpool(
            _update, request, entity_id, _submitted(kind, form), str(form.get("csrf_token") or "")
        )

    @router.post("/{entity_id}/delete")
    async def delete(entity_id: str, request: Request):
        form = await request.form()
        return await run_in_threadpool(_delete, request, entity_id, str(form.get("csrf_token") or ""))

    return router


routers = [build_router(kind) for kind in ENTITY_KINDS.values()]
