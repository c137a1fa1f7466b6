"""Data access for the content tables, one repository per entity kind."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from cms.db.models import MarketingCampaignRow, TeamMemberRow, TestimonialRow, VideoRow
from cms.db.session import get_session
from cms.domain.entities import CAMPAIGNS, TEAM, TESTIMONIALS, VIDEOS, EntityKind

logger = logging.getLogger(__name__)


class RemoteUnavailable(Exception):
    """Raised when a store call fails (connection, SQL error, ...)."""


@dataclass
class ReconcileResult:
    inserted: int = 0
    updated: int = 0
    deleted: int = 0

    @property
    def writes(self) -> int:
        return self.inserted + self.updated + self.deleted


class EntityRepository:
    """list/insert/update/delete against one table, mapping rows to records."""

    def __init__(self, kind: EntityKind, model) -> None:
        self.kind = kind
        self.model = model

    # -------------------------- mapping --------------------------
    def _to_record(self, row):
        return self.kind.record_cls(id=row.id, **{name: getattr(row, name) for name in self.kind.fields})

    def _values(self, record) -> dict:
        return {name: getattr(record, name) for name in self.kind.fields}

    # -------------------------- reads --------------------------
    def list(self) -> list:
        stmt = select(self.model).order_by(self.model.created_at.asc(), self.model.id.asc())
        try:
            with get_session() as session:
                rows = session.execute(stmt).scalars().all()
                return [self._to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"list {self.kind.table} failed") from exc

    def get(self, entity_id: str):
        try:
            with get_session() as session:
                row = session.get(self.model, entity_id)
                return self._to_record(row) if row else None
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"get {self.kind.table} failed") from exc

    def existing_ids(self) -> list[str]:
        try:
            with get_session() as session:
                return list(session.execute(select(self.model.id)).scalars().all())
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"select ids from {self.kind.table} failed") from exc

    # -------------------------- writes --------------------------
    def insert(self, record, created_at: Optional[datetime] = None) -> str:
        """Insert a record; the store assigns the permanent id, which is returned."""
        now = created_at or datetime.now(timezone.utc)
        entity = self.model(**self._values(record), created_at=now, updated_at=now)
        try:
            with get_session() as session:
                session.add(entity)
                session.flush()
                new_id = entity.id
                session.commit()
                return new_id
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"insert into {self.kind.table} failed") from exc

    def update(self, record) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == record.id)
            .values(**self._values(record), updated_at=datetime.now(timezone.utc))
        )
        try:
            with get_session() as session:
                session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"update {self.kind.table} failed") from exc

    def delete_ids(self, ids: Iterable[str]) -> int:
        id_list = list(ids)
        if not id_list:
            return 0
        try:
            with get_session() as session:
                result = session.execute(
                    delete(self.model).where(self.model.id.in_(id_list)),
                    execution_options={"synchronize_session": False},
                )
                session.commit()
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"delete from {self.kind.table} failed") from exc

    # -------------------------- reconcile --------------------------
    def _persisted(self) -> dict:
        try:
            with get_session() as session:
                rows = session.execute(select(self.model)).scalars().all()
                return {row.id: self._values(row) for row in rows}
        except SQLAlchemyError as exc:
            raise RemoteUnavailable(f"select {self.kind.table} failed") from exc

    def reconcile(self, desired: Sequence) -> ReconcileResult:
        """
        Make the table match `desired`.

        Ids missing from `desired` are deleted, records with a temporary id
        are inserted, and records with a permanent id are updated when any
        field differs from the stored row. Every write commits on its own,
        so a failure leaves the earlier writes in place.
        """
        result = ReconcileResult()
        persisted = self._persisted()
        desired_ids = {r.id for r in desired}
        to_delete = [entity_id for entity_id in persisted if entity_id not in desired_ids]
        if to_delete:
            result.deleted = self.delete_ids(to_delete)

        for record in desired:
            if self.kind.is_temporary(record.id):
                self.insert(record)
                result.inserted += 1
                continue
            stored = persisted.get(record.id)
            if stored is None:
                # row removed concurrently by another session; nothing to update
                logger.info("Skipping update of missing %s row %s", self.kind.table, record.id)
                continue
            if stored != self._values(record):
                self.update(record)
                result.updated += 1

        logger.info(
            "Reconciled %s: %d inserted, %d updated, %d deleted",
            self.kind.table,
            result.inserted,
            result.updated,
            result.deleted,
        )
        return result


_MODELS = {
    CAMPAIGNS.key: MarketingCampaignRow,
    TEAM.key: TeamMemberRow,
    TESTIMONIALS.key: TestimonialRow,
    VIDEOS.key: VideoRow,
}


def build_repositories() -> dict[str, EntityRepository]:
    """One repository per entity kind, keyed by kind key."""
    from cms.domain.entities import ENTITY_KINDS

    return {key: EntityRepository(kind, _MODELS[key]) for key, kind in ENTITY_KINDS.items()}
