"""Read-only feed for the landing site. No session required."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from cms.domain.entities import ENTITY_KINDS, to_dict
from cms.repositories.entity_repository import RemoteUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/partner-form-url")
def partner_form_url(request: Request):
    return {"url": request.app.state.panel_config.partner_form_url()}


@router.get("/{kind}")
def public_collection(kind: str, request: Request):
    repo = request.app.state.repositories.get(kind)
    if repo is None or kind not in ENTITY_KINDS:
        raise HTTPException(404, "colecao desconhecida")
    try:
        records = repo.list()
    except RemoteUnavailable:
        logger.exception("Public read of %s failed", repo.kind.table)
        raise HTTPException(503, "servico indisponivel")
    return [to_dict(record) for record in records]
