# Schémas Pydantic exposés par l'API (réponses, clés camelCase).

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageInfo(_ResponseModel):
    """Métadonnées de pagination.

    Champs:
    - next_cursor: curseur de la page suivante (None sur la dernière page)
    - has_more: une page suivante existe
    - as_of: instant de génération de la réponse (ISO-8601 UTC)
    """

    next_cursor: str | None
    has_more: bool
    as_of: str


class NowItem(_ResponseModel):
    slug: str
    label: str
    text: str
    href: str | None


class NowSnapshotData(_ResponseModel):
    updated_at: str | None
    narrative: str | None
    items: list[NowItem]


class NowSnapshotResponse(_ResponseModel):
    data: NowSnapshotData


class UseItem(_ResponseModel):
    label: str
    value: str


class UseSection(_ResponseModel):
    slug: str
    title: str
    items: list[UseItem]


class UsesSnapshotData(_ResponseModel):
    updated_at: str | None
    sections: list[UseSection]


class UsesSnapshotResponse(_ResponseModel):
    data: UsesSnapshotData


class ProjectItem(_ResponseModel):
    slug: str
    title: str
    summary: str
    href: str | None
    updated_at: str
    version: int
    is_active: bool
    payload: dict[str, Any]


class ProjectsListResponse(_ResponseModel):
    data: list[ProjectItem]
    page: PageInfo


class PostListItem(_ResponseModel):
    """Entrée de liste d'articles (sans le corps markdown)."""

    slug: str
    title: str
    summary: str
    published_at: str
    updated_at: str
    featured: bool
    tags: list[str]
    reading_time_text: str | None
    reading_time_minutes: float | None


class PostsListResponse(_ResponseModel):
    data: list[PostListItem]
    page: PageInfo


class PostDetail(_ResponseModel):
    slug: str
    title: str
    summary: str
    body_markdown: str
    published_at: str
    updated_at: str
    updated_at_source: str | None
    author: str | None
    featured: bool
    tags: list[str]
    reading_time_text: str | None
    reading_time_minutes: float | None


class PostDetailResponse(_ResponseModel):
    data: PostDetail


class HealthResponse(BaseModel):
    status: str
