"""In-memory record shapes for the four content collections."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, fields
from typing import Optional


@dataclass
class MarketingCampaign:
    id: str
    image_url: str


@dataclass
class TeamMember:
    id: str
    image_url: str


@dataclass
class Testimonial:
    id: str
    quote: str
    author: str
    business: str
    location: str
    logo_url: str


@dataclass
class Video:
    id: str
    title: str
    url: str


def record_fields(record_cls) -> tuple[str, ...]:
    """Data attributes of a record type, without the identifier."""
    return tuple(f.name for f in fields(record_cls) if f.name != "id")


def to_dict(record) -> dict:
    return asdict(record)


@dataclass(frozen=True)
class EntityKind:
    """Describes one content collection: URL key, store table and record type."""

    key: str
    table: str
    temp_prefix: str
    record_cls: type
    label: str
    singular: str

    @property
    def fields(self) -> tuple[str, ...]:
        return record_fields(self.record_cls)

    def new_temp_id(self, now_ms: Optional[int] = None) -> str:
        stamp = now_ms if now_ms is not None else int(time.time() * 1000)
        return f"{self.temp_prefix}-{stamp}"

    def is_temporary(self, entity_id: str | None) -> bool:
        return (entity_id or "").startswith(f"{self.temp_prefix}-")

    def build(self, entity_id: str | None = None, **values) -> object:
        data = {name: (values.get(name) or "") for name in self.fields}
        return self.record_cls(id=entity_id or self.new_temp_id(), **data)


CAMPAIGNS = EntityKind(
    key="campaigns",
    table="marketing_campaigns",
    temp_prefix="campaign",
    record_cls=MarketingCampaign,
    label="Campanhas de Marketing",
    singular="campanha",
)
TEAM = EntityKind(
    key="team",
    table="team_members",
    temp_prefix="team",
    record_cls=TeamMember,
    label="Imagens da Equipe",
    singular="imagem",
)
TESTIMONIALS = EntityKind(
    key="testimonials",
    table="testimonials",
    temp_prefix="testimonial",
    record_cls=Testimonial,
    label="Depoimentos",
    singular="depoimento",
)
VIDEOS = EntityKind(
    key="videos",
    table="videos",
    temp_prefix="video",
    record_cls=Video,
    label="Vídeos",
    singular="vídeo",
)

ENTITY_KINDS: dict[str, EntityKind] = {k.key: k for k in (CAMPAIGNS, TEAM, TESTIMONIALS, VIDEOS)}

