"""Admin session helpers (issue tokens, cookies, the access predicate)."""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request, Response
from sqlalchemy import delete, select

from cms.core import csrf
from cms.core.config import get_settings
from cms.db.models import AdminSession
from cms.db.session import get_session

SESSION_COOKIE_NAME = "admin_session"


def issue_admin_session(email: str) -> tuple[str, str]:
    """Persist a new session for `email`; returns (token, csrf_token)."""
    settings = get_settings()
    token = secrets.token_urlsafe(32)
    csrf_token = csrf.new_csrf_token()
    expires_at = None
    if settings.admin_session_ttl_seconds > 0:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=settings.admin_session_ttl_seconds)
    with get_session() as session:
        session.add(AdminSession(token=token, email=email, csrf_token=csrf_token, expires_at=expires_at))
        session.commit()
    return token, csrf_token


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def load_admin_session(token: Optional[str]) -> Optional[AdminSession]:
    if not token:
        return None
    with get_session() as session:
        sess = session.get(AdminSession, token)
        if not sess:
            return None
        if sess.expires_at and _aware(sess.expires_at) < datetime.now(timezone.utc):
            session.delete(sess)
            session.commit()
            return None
        session.expunge(sess)
        return sess


def delete_admin_session(token: Optional[str]) -> None:
    if not token:
        return
    with get_session() as session:
        session.execute(delete(AdminSession).where(AdminSession.token == token))
        session.commit()


def delete_sessions_for(email: str) -> list[str]:
    """Drop every session of `email`; returns the tokens that were revoked."""
    with get_session() as session:
        tokens = list(session.scalars(select(AdminSession.token).where(AdminSession.email == email)))
        session.execute(delete(AdminSession).where(AdminSession.email == email))
        session.commit()
    return tokens


def session_token(request: Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME)


def current_admin(request: Request) -> Optional[AdminSession]:
    cached = getattr(request.state, "admin_session", None)
    if cached is not None:
        return cached
    sess = load_admin_session(session_token(request))
    if sess is None:
        return None
    if sess.email not in request.app.state.accounts.list_admins():
        # account removed while the session was open
        delete_admin_session(sess.token)
        return None
    request.state.admin_session = sess
    return sess


def is_authenticated(request: Request) -> bool:
    """The session flag: a live admin session backs this request's cookie."""
    return current_admin(request) is not None


def require_admin(request: Request) -> AdminSession:
    sess = current_admin(request)
    if not sess:
        raise HTTPException(401, "nao autenticado")
    return sess


def csrf_protect(request: Request, form_token: str | None) -> AdminSession:
    if not csrf.check_origin(request):
        raise HTTPException(403, "origem invalida")
    sess = require_admin(request)
    supplied = form_token or request.headers.get(csrf.CSRF_HEADER_NAME)
    if not csrf.tokens_match(sess.csrf_token, supplied):
        raise HTTPException(403, "csrf invalido")
    return sess


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=settings.app_env == "prod",
        max_age=settings.admin_session_ttl_seconds or None,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def active_session_tokens() -> set[str]:
    """Tokens of every session row that has not expired."""
    now = datetime.now(timezone.utc)
    with get_session() as session:
        rows = session.execute(select(AdminSession.token, AdminSession.expires_at)).all()
    return {token for token, expires_at in rows if not expires_at or _aware(expires_at) >= now}
