"""FastAPI application for the content admin panel."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cms.core.config import get_settings
from cms.db.create_tables import create_all
from cms.realtime.feed import change_feed
from cms.realtime.websockets import ConnectionManager
from cms.repositories.entity_repository import build_repositories
from cms.repositories.local_storage import LocalStorage
from cms.routers import auth as auth_router
from cms.routers import content as content_router
from cms.routers import dashboard as dashboard_router
from cms.routers import navigation as navigation_router
from cms.routers import public as public_router
from cms.services.account_service import AccountService
from cms.services.panel_config import PanelConfigService
from cms.services.panel_state import PanelStateRegistry

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; "
            "img-src 'self' data: https: http:; "
            "style-src 'self' 'unsafe-inline' https://unpkg.com; "
            "script-src 'self' 'unsafe-inline'; "
            "connect-src 'self' ws: wss:",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_all()
    app.state.accounts.ensure_bootstrap_admin()
    app.state.ws_manager.attach(change_feed)
    logger.info("Admin panel started")
    yield
    app.state.ws_manager.detach()
    app.state.panel_states.close_all()
    logger.info("Admin panel stopped")


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (`cms.asgi:app`)."""
    settings = get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(title="Painel Administrativo", lifespan=lifespan)

    storage = LocalStorage(settings.storage_path)
    app.state.repositories = build_repositories()
    app.state.storage = storage
    app.state.accounts = AccountService(storage)
    app.state.panel_config = PanelConfigService(storage)
    app.state.panel_states = PanelStateRegistry(
        build_repositories, change_feed, idle_seconds=settings.panel_state_idle_seconds
    )
    app.state.ws_manager = ConnectionManager()

    if settings.public_site_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(settings.public_site_origins),
            allow_credentials=False,
            allow_methods=["GET"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    @app.exception_handler(HTTPException)
    async def _redirect_unauthenticated_pages(request: Request, exc: HTTPException):
        # HTML form posts land back on the login screen; JSON clients keep the 401
        if exc.status_code == 401 and "text/html" in (request.headers.get("accept") or ""):
            target = request.url.path if request.method == "GET" else "/"
            return RedirectResponse(f"/login?next={quote(target, safe='')}", status_code=303)
        return await http_exception_handler(request, exc)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    app.include_router(auth_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(navigation_router.router)
    app.include_router(public_router.router)
    for router in content_router.routers:
        app.include_router(router)
    return app
