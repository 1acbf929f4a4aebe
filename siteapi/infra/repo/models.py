"""SQLAlchemy models for the site content tables (uses, projects, posts, now_entries, meta)."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    func,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONValue = JSON().with_variant(JSONB(), "postgresql")
# SQLite only autoincrements INTEGER PRIMARY KEY
Identity = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class SharedResourceColumns:
    """Colonnes communes aux tables de ressources réconciliées par slug."""

    id = Column(Identity, primary_key=True, autoincrement=True)
    slug = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version = Column(Integer, nullable=False, default=1, server_default="1")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())


class UseSectionORM(SharedResourceColumns, Base):
    """Section de la page /uses (les éléments sont dans `payload.items`)."""

    __tablename__ = "uses"

    title = Column(Text, nullable=False)
    payload = Column(JSONValue, nullable=False, default=dict)

    __table_args__ = (
        Index("uses_slug_unique_index", "slug", unique=True),
        Index("uses_updated_at_id_index", "updated_at", "id"),
    )


class ProjectORM(SharedResourceColumns, Base):
    """Projet affiché sur le site."""

    __tablename__ = "projects"

    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=False, default="")
    href = Column(Text, nullable=True)
    payload = Column(JSONValue, nullable=False, default=dict)

    __table_args__ = (
        Index("projects_slug_unique_index", "slug", unique=True),
        Index("projects_updated_at_id_index", "updated_at", "id"),
    )


class PostORM(SharedResourceColumns, Base):
    """Article publié (corps markdown inclus)."""

    __tablename__ = "posts"

    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    body_markdown = Column(Text, nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=False)
    updated_at_source = Column(DateTime(timezone=True), nullable=True)
    author = Column(Text, nullable=True)
    featured = Column(Boolean, nullable=False, default=False)
    tags = Column(JSONValue, nullable=False, default=list)
    reading_time_text = Column(Text, nullable=True)
    reading_time_minutes = Column(Float, nullable=True)
    payload = Column(JSONValue, nullable=False, default=dict)

    __table_args__ = (
        Index("posts_slug_unique_index", "slug", unique=True),
        Index("posts_updated_at_id_index", "updated_at", "id"),
    )


Index(
    "posts_published_at_id_desc_index",
    PostORM.__table__.c.published_at.desc(),
    PostORM.__table__.c.id.desc(),
)


class NowEntryORM(SharedResourceColumns, Base):
    """Entrée de la page /now."""

    __tablename__ = "now_entries"

    label = Column(Text, nullable=False)
    text = Column(Text, nullable=False)
    href = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    payload = Column(JSONValue, nullable=False, default=dict)

    __table_args__ = (
        Index("now_entries_slug_unique_index", "slug", unique=True),
        Index("now_entries_updated_at_id_index", "updated_at", "id"),
    )


class MetaORM(Base):
    """Faits dérivés clé/valeur (horodatages de mise à jour, texte narratif)."""

    __tablename__ = "meta"

    key = Column(String, primary_key=True)
    value = Column(JSONValue, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


RESOURCE_TABLES = {
    "uses": UseSectionORM.__table__,
    "now_entries": NowEntryORM.__table__,
    "projects": ProjectORM.__table__,
    "posts": PostORM.__table__,
}
META_TABLE = MetaORM.__table__

ALL_TABLE_NAMES = ("uses", "projects", "posts", "now_entries", "meta")
