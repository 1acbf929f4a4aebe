"""
Lecture du contenu publié pour l'API `/v1`.

Seules les lignes actives sont exposées. Les ordres de tri:
- now: `sort_order asc, updated_at desc, id desc`
- uses, projects: `updated_at desc, id desc`
- posts: `published_at desc, id desc`

`updatedAt` des instantanés now/uses provient de la table `meta` (`*_last_updated`), sinon des
lignes elles-mêmes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from siteapi.api.pagination import (
    CursorPosition,
    PageRequest,
    after_position,
    encode_cursor,
    resolve_cursor,
    split_page,
)
from siteapi.api.schemas import (
    NowItem,
    NowSnapshotData,
    PageInfo,
    PostDetail,
    PostListItem,
    ProjectItem,
    UseItem,
    UseSection,
    UsesSnapshotData,
)
from siteapi.domain.meta_values import (
    extract_string_meta_value,
    is_record,
    latest_timestamp,
    to_iso_string,
)
from siteapi.infra.repo.models import MetaORM, NowEntryORM, PostORM, ProjectORM, UseSectionORM


def read_meta_string(session: Session, key: str) -> str | None:
    value = session.execute(select(MetaORM.value).where(MetaORM.key == key)).scalar_one_or_none()
    return extract_string_meta_value(value)


def extract_use_items(payload: Any) -> list[UseItem]:
    """Items `{label, value}` d'une section; les entrées malformées sont ignorées."""
    raw_items = payload.get("items") if is_record(payload) else None
    if not isinstance(raw_items, list):
        return []
    items = []
    for raw in raw_items:
        if not is_record(raw):
            continue
        label, value = raw.get("label"), raw.get("value")
        if isinstance(label, str) and isinstance(value, str):
            items.append(UseItem(label=label, value=value))
    return items


def _as_of() -> str:
    return to_iso_string(datetime.now(UTC))


def load_now_snapshot(session: Session) -> NowSnapshotData:
    rows = session.execute(
        select(
            NowEntryORM.slug,
            NowEntryORM.label,
            NowEntryORM.text,
            NowEntryORM.href,
            NowEntryORM.updated_at,
        )
        .where(NowEntryORM.is_active.is_(True))
        .order_by(
            NowEntryORM.sort_order.asc(),
            NowEntryORM.updated_at.desc(),
            NowEntryORM.id.desc(),
        )
    ).all()
    updated_at = read_meta_string(session, "now_last_updated") or to_iso_string(
        latest_timestamp(row.updated_at for row in rows)
    )
    return NowSnapshotData(
        updated_at=updated_at,
        narrative=read_meta_string(session, "now_narrative"),
        items=[
            NowItem(slug=row.slug, label=row.label, text=row.text, href=row.href) for row in rows
        ],
    )


def load_uses_snapshot(session: Session) -> UsesSnapshotData:
    rows = session.execute(
        select(
            UseSectionORM.slug,
            UseSectionORM.title,
            UseSectionORM.payload,
            UseSectionORM.updated_at,
        )
        .where(UseSectionORM.is_active.is_(True))
        .order_by(UseSectionORM.updated_at.desc(), UseSectionORM.id.desc())
    ).all()
    fallback = to_iso_string(rows[0].updated_at) if rows else None
    return UsesSnapshotData(
        updated_at=read_meta_string(session, "uses_last_updated") or fallback,
        sections=[
            UseSection(slug=row.slug, title=row.title, items=extract_use_items(row.payload))
            for row in rows
        ],
    )


def _page_info(records: list, has_more: bool, cursor_of) -> PageInfo:
    next_cursor = encode_cursor(cursor_of(records[-1])) if has_more and records else None
    return PageInfo(next_cursor=next_cursor, has_more=has_more, as_of=_as_of())


def list_projects(session: Session, page: PageRequest) -> tuple[list[ProjectItem], PageInfo]:
    """
    Page de projets actifs (`updated_at desc, id desc`).

    Raises:
        PaginationError: curseur indécodable.
    """
    position = resolve_cursor(page)
    stmt = select(ProjectORM).where(ProjectORM.is_active.is_(True))
    if position is not None:
        stmt = stmt.where(after_position(ProjectORM.updated_at, ProjectORM.id, position))
    stmt = stmt.order_by(ProjectORM.updated_at.desc(), ProjectORM.id.desc()).limit(page.limit + 1)
    records, has_more = split_page(list(session.execute(stmt).scalars()), page.limit)
    items = [
        ProjectItem(
            slug=record.slug,
            title=record.title,
            summary=record.summary,
            href=record.href,
            updated_at=to_iso_string(record.updated_at),
            version=record.version,
            is_active=record.is_active,
            payload=record.payload or {},
        )
        for record in records
    ]
    page_info = _page_info(
        records, has_more, lambda last: CursorPosition(updated_at=last.updated_at, id=last.id)
    )
    return items, page_info


def list_posts(session: Session, page: PageRequest) -> tuple[list[PostListItem], PageInfo]:
    """
    Page d'articles actifs (`published_at desc, id desc`), sans le corps markdown.

    Raises:
        PaginationError: curseur indécodable.
    """
    position = resolve_cursor(page)
    stmt = select(PostORM).where(PostORM.is_active.is_(True))
    if position is not None:
        stmt = stmt.where(after_position(PostORM.published_at, PostORM.id, position))
    stmt = stmt.order_by(PostORM.published_at.desc(), PostORM.id.desc()).limit(page.limit + 1)
    records, has_more = split_page(list(session.execute(stmt).scalars()), page.limit)
    items = [
        PostListItem(
            slug=record.slug,
            title=record.title,
            summary=record.summary,
            published_at=to_iso_string(record.published_at),
            updated_at=to_iso_string(record.updated_at),
            featured=record.featured,
            tags=list(record.tags or []),
            reading_time_text=record.reading_time_text,
            reading_time_minutes=record.reading_time_minutes,
        )
        for record in records
    ]
    page_info = _page_info(
        records, has_more, lambda last: CursorPosition(updated_at=last.published_at, id=last.id)
    )
    return items, page_info


def get_post_by_slug(session: Session, slug: str) -> PostDetail | None:
    record = session.execute(
        select(PostORM).where(PostORM.slug == slug, PostORM.is_active.is_(True)).limit(1)
    ).scalar_one_or_none()
    if record is None:
        return None
    return PostDetail(
        slug=record.slug,
        title=record.title,
        summary=record.summary,
        body_markdown=record.body_markdown,
        published_at=to_iso_string(record.published_at),
        updated_at=to_iso_string(record.updated_at),
        updated_at_source=to_iso_string(record.updated_at_source),
        author=record.author,
        featured=record.featured,
        tags=list(record.tags or []),
        reading_time_text=record.reading_time_text,
        reading_time_minutes=record.reading_time_minutes,
    )
