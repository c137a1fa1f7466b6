from __future__ import annotations

import html
from urllib.parse import quote

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from cms.domain.entities import ENTITY_KINDS
from cms.domain.validation import ValidationFailure
from cms.routers.deps import guarded_page, panel_for
from cms.routers.layout import admin_page
from cms.services.account_service import SelfRemovalError, UnknownAdminError
from cms.services.session_guard import csrf_protect
from cms.services.sync_context import ERROR

router = APIRouter(tags=["dashboard"])

INSTRUCTIONS = (
    "Use o menu lateral para navegar entre as seções.",
    "As alterações são salvas no banco de dados assim que você confirma cada formulário.",
    "Outras abas abertas no painel são atualizadas automaticamente.",
    "Se sair de uma página com alterações não salvas, o painel pedirá confirmação.",
)


def _count_cards(counts: dict[str, int]) -> str:
    cards = []
    for key, kind in ENTITY_KINDS.items():
        cards.append(
            f"""
            <article>
              <header><strong>{html.escape(kind.label)}</strong></header>
              <h2 data-count='{key}'>{counts.get(key, 0)}</h2>
              <a href='/nav?to={quote('/' + key, safe='')}'>Gerenciar</a>
            </article>
            """
        )
    return "<div class='grid'>" + "".join(cards) + "</div>"


def _admin_rows(admins: list[str], current_email: str, csrf_token: str) -> str:
    rows = []
    for email in admins:
        if email == current_email:
            action = "<small>(você)</small>"
        else:
            action = (
                f"<form method='post' action='/admins/{quote(email, safe='')}/delete' style='margin:0' "
                f"onsubmit=\"return confirm('Remover administrador {html.escape(email)}?')\">"
                f"<input type='hidden' name='csrf_token' value='{html.escape(csrf_token)}'>"
                "<button class='secondary'>Remover</button></form>"
            )
        rows.append(f"<tr><td>{html.escape(email)}</td><td>{action}</td></tr>")
    return "".join(rows) or "<tr><td colspan='2'>Nenhum administrador cadastrado.</td></tr>"


def render_dashboard(
    request: Request,
    sess,
    state,
    *,
    partner_error: str = "",
    partner_value: str | None = None,
    admin_error: str = "",
    admin_email: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    app_state = request.app.state
    csrf_token = sess.csrf_token
    partner_url = app_state.panel_config.partner_form_url() if partner_value is None else partner_value
    instructions = "".join(f"<li>{html.escape(line)}</li>" for line in INSTRUCTIONS)
    body = f"""
      <h1>Dashboard</h1>
      {_count_cards(state.sync.counts())}
      <article>
        <header><strong>Instruções</strong></header>
        <ul>{instructions}</ul>
      </article>
      <article>
        <header><strong>Formulário de parceiros</strong></header>
        <p>Link exibido no rodapé do site. Deixe em branco para ocultar.</p>
        {('<mark role="alert">' + html.escape(partner_error) + '</mark>') if partner_error else ''}
        <form method='post' action='/settings/partner-form-url' data-track-changes>
          <input type='hidden' name='csrf_token' value='{html.escape(csrf_token)}'>
          <input name='partner_form_url' type='url' placeholder='https://...' value='{html.escape(partner_url)}'>
          <button>Salvar</button>
        </form>
      </article>
      <article>
        <header><strong>Administradores</strong></header>
        <table><thead><tr><th>E-mail</th><th></th></tr></thead>
        <tbody>{_admin_rows(app_state.accounts.list_admins(), sess.email, csrf_token)}</tbody></table>
        {('<mark role="alert">' + html.escape(admin_error) + '</mark>') if admin_error else ''}
        <form method='post' action='/admins/create' data-track-changes>
          <input type='hidden' name='csrf_token' value='{html.escape(csrf_token)}'>
          <div class='grid'>
            <input name='email' type='email' placeholder='email@exemplo.com' value='{html.escape(admin_email)}' required>
            <input name='password' type='password' placeholder='Senha (mín. 6 caracteres)' required>
            <button>Adicionar</button>
          </div>
        </form>
      </article>
    """
    return admin_page("Admin | Dashboard", body, sess, state, active="dashboard", status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def dashboard(request: Request):
    guarded = guarded_page(request)
    if isinstance(guarded, RedirectResponse):
        return guarded
    sess, state = guarded
    state.unsaved.reset()
    return render_dashboard(request, sess, state)


@router.post("/settings/partner-form-url")
def save_partner_form_url(request: Request, partner_form_url: str = Form(""), csrf_token: str = Form("")):
    csrf_protect(request, csrf_token)
    sess, state = panel_for(request)
    try:
        request.app.state.panel_config.save_partner_form_url(partner_form_url)
    except ValidationFailure as exc:
        return render_dashboard(
            request, sess, state, partner_error=exc.message, partner_value=partner_form_url, status_code=400
        )
    state.unsaved.reset()
    state.sync.notify("Sucesso", "Link do formulário de parceiros atualizado")
    return RedirectResponse("/", status_code=303)


@router.post("/admins/create")
def create_admin(request: Request, email: str = Form(""), password: str = Form(""), csrf_token: str = Form("")):
    csrf_protect(request, csrf_token)
    sess, state = panel_for(request)
    try:
        email_value = request.app.state.accounts.add_admin(email, password)
    except ValidationFailure as exc:
        return render_dashboard(request, sess, state, admin_error=exc.message, admin_email=email, status_code=400)
    state.unsaved.reset()
    state.sync.notify("Sucesso", f"Administrador {email_value} adicionado")
    return RedirectResponse("/", status_code=303)


@router.post("/admins/{email}/delete")
def delete_admin(email: str, request: Request, csrf_token: str = Form("")):
    csrf_protect(request, csrf_token)
    sess, state = panel_for(request)
    try:
        revoked = request.app.state.accounts.remove_admin(email, sess.email)
    except SelfRemovalError:
        state.sync.notify("Erro", "Você não pode remover a conta com a qual está conectado.", ERROR)
        return render_dashboard(request, sess, state, status_code=400)
    except UnknownAdminError:
        raise HTTPException(404, "administrador nao encontrado")
    for token in revoked:
        request.app.state.panel_states.discard(token)
    state.sync.notify("Sucesso", f"Administrador {email} removido")
    return RedirectResponse("/", status_code=303)
