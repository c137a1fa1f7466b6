"""Request-scoped lookups shared by the routers."""
from __future__ import annotations

from urllib.parse import quote

from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse

from cms.db.models import AdminSession
from cms.services.panel_state import PanelState
from cms.services.session_guard import require_admin, session_token


def panel_for(request: Request) -> tuple[AdminSession, PanelState]:
    """Session guard plus the session's panel state; raises HTTPException(401)."""
    try:
        sess = require_admin(request)
    except HTTPException:
        # expired, revoked or unknown cookie: its panel state has no owner anymore
        request.app.state.panel_states.discard(session_token(request))
        raise
    state = request.app.state.panel_states.get(sess.token)
    return sess, state


def login_redirect(request: Request) -> RedirectResponse:
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(f"/login?next={quote(target, safe='')}", status_code=303)


def guarded_page(request: Request):
    """panel_for() for HTML pages: returns (sess, state) or a redirect to the login screen."""
    try:
        return panel_for(request)
    except HTTPException:
        return login_redirect(request)
