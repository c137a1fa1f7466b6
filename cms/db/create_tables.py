"""Create the content tables and the admin session table (`python -m cms.db.create_tables`)."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from cms.db import models  # noqa: F401  # registers the tables on Base.metadata
from cms.db.session import Base, get_engine

logger = logging.getLogger(__name__)


def create_all() -> None:
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    try:
        create_all()
        print("Tabelas criadas com sucesso.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Falha ao criar tabelas: {exc}") from exc
