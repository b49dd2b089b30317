"""SQLAlchemy models for the content engine persistence layer."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class InterestORM(Base):
    """Intérêts (référentiel externe, lu par le moteur)."""

    __tablename__ = "interests"

    id = Column(String(64), primary_key=True)
    slug = Column(String(128), nullable=True)
    title = Column(String(255), nullable=False)
    cluster = Column(String(128), nullable=True)
    synonyms = Column(JSON, nullable=False, default=list)


class ContentCacheORM(Base):
    """Cache des réponses fournisseurs, clé (provider, query_hash)."""

    __tablename__ = "content_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider = Column(String(32), nullable=False)
    query_hash = Column(String(64), nullable=False)
    payload_json = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (Index("ix_content_cache_provider_hash", "provider", "query_hash"),)


class CatalogORM(Base):
    """Catalogue durable et dédupliqué des éléments ingérés."""

    __tablename__ = "content_catalog"

    id = Column(String(36), primary_key=True, default=_uuid)
    provider = Column(String(32), nullable=False)
    provider_item_id = Column(String(512), nullable=False)
    type = Column(String(32), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    language = Column(String(32), nullable=True)
    country = Column(String(32), nullable=True)
    source = Column(String(128), nullable=True)
    channel_title = Column(String(255), nullable=True)
    published_at = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("provider", "provider_item_id", name="uq_catalog_provider_item"),
    )


class InterestEmbeddingORM(Base):
    """Vecteur d'un intérêt, étiqueté par le modèle qui l'a produit."""

    __tablename__ = "interest_embeddings"

    interest_id = Column(String(64), primary_key=True)
    model = Column(String(128), nullable=False)
    embedding = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ContentEmbeddingORM(Base):
    """Vecteur d'une ligne du catalogue (clé: id de substitution du catalogue)."""

    __tablename__ = "content_embeddings"

    content_id = Column(String(36), primary_key=True)
    model = Column(String(128), nullable=False)
    embedding = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ContentFeedbackORM(Base):
    """Retours utilisateurs (+1 / -1) sur les recommandations."""

    __tablename__ = "content_feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=True)
    content_id = Column(String(512), nullable=False)
    provider = Column(String(32), nullable=False)
    type = Column(String(32), nullable=False)
    interest_ids = Column(JSON, nullable=False, default=list)
    value = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
