"""SQLAlchemy models for the marketing-site content tables."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Text, func

from .session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class MarketingCampaignRow(Base):
    __tablename__ = "marketing_campaigns"

    id = Column(String(36), primary_key=True, default=_new_id)
    image_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class TeamMemberRow(Base):
    __tablename__ = "team_members"

    id = Column(String(36), primary_key=True, default=_new_id)
    image_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class TestimonialRow(Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=_new_id)
    quote = Column(Text, nullable=False)
    author = Column(String(255), nullable=False)
    business = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    logo_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class VideoRow(Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class AdminSession(Base):
    __tablename__ = "sessions_admin"

    token = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False)
    csrf_token = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
