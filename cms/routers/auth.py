from __future__ import annotations

import html
from urllib.parse import quote

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from cms.core.config import get_settings
from cms.core.csrf import check_origin
from cms.core.rate_limiter import rate_limit_ip
from cms.routers.layout import bare_page
from cms.services.account_service import InvalidCredentialsError
from cms.services.session_guard import (
    active_session_tokens,
    clear_session_cookie,
    delete_admin_session,
    is_authenticated,
    issue_admin_session,
    session_token,
    set_session_cookie,
)

router = APIRouter(tags=["auth"])

LOGIN_ERRORS = {
    "credenciais": "Email ou senha inválidos.",
    "origem": "Origem da requisição inválida.",
}


def _safe_next(target: str | None) -> str:
    """Only local absolute paths; anything else falls back to the dashboard."""
    value = (target or "").strip()
    if not value.startswith("/") or value.startswith("//"):
        return "/"
    return value


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, next: str = "/", error: str = ""):
    if is_authenticated(request):
        return RedirectResponse(_safe_next(next), status_code=303)
    msg = LOGIN_ERRORS.get(error, "")
    return bare_page(
        "Admin | Login",
        f"""
        <article>
          <h1>Painel Administrativo</h1>
          <p>Entre com suas credenciais de administrador.</p>
          {('<mark role="alert">' + html.escape(msg) + '</mark>') if msg else ''}
          <form method='post' action='/login'>
            <input type='hidden' name='next' value='{html.escape(_safe_next(next))}'>
            <label>E-mail</label><input name='email' type='email' required>
            <label>Senha</label><input name='password' type='password' required>
            <button style='margin-top:12px'>Entrar</button>
          </form>
        </article>
        """,
    )


@router.post("/login")
def do_login(request: Request, email: str = Form(...), password: str = Form(...), next: str = Form("/")):
    settings = get_settings()
    rate_limit_ip(
        request,
        "admin-login",
        limit=settings.login_rate_limit,
        window_seconds=settings.login_rate_window_seconds,
    )
    target = _safe_next(next)
    if not check_origin(request):
        return RedirectResponse("/login?error=origem", status_code=303)
    try:
        email_value = request.app.state.accounts.authenticate(email, password)
    except InvalidCredentialsError:
        return RedirectResponse(f"/login?error=credenciais&next={quote(target, safe='')}", status_code=303)
    token, csrf_token = issue_admin_session(email_value)
    request.app.state.panel_states.sweep(active_session_tokens())
    resp = RedirectResponse(target, status_code=303)
    set_session_cookie(resp, token)
    resp.headers["X-CSRF-Token"] = csrf_token
    return resp


@router.get("/logout")
def logout(request: Request):
    token = session_token(request)
    request.app.state.panel_states.discard(token)
    delete_admin_session(token)
    resp = RedirectResponse("/login", status_code=303)
    clear_session_cookie(resp)
    return resp
