from __future__ import annotations

import secrets

from fastapi import Request

CSRF_HEADER_NAME = "X-CSRF-Token"


def new_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def check_origin(request: Request) -> bool:
    """Accept requests without Origin/Referer or whose host matches the Host header."""
    origin = request.headers.get("origin") or request.headers.get("referer") or ""
    host = (request.headers.get("host") or "").strip()
    if not origin:
        return True
    try:
        netloc = origin.split("://", 1)[-1].split("/", 1)[0]
    except Exception:
        return False
    return bool(host) and netloc == host


def tokens_match(expected: str | None, supplied: str | None) -> bool:
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected, supplied)
