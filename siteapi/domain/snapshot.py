"""
Snapshot de contenu: état désiré complet pour une exécution d'import.

Le snapshot est produit par un chargeur externe (voir `siteapi.infra.content_loader`) et n'est
jamais modifié par la réconciliation. Chaque groupe (uses, now, projects, posts) est optionnel et
porte son propre horodatage de dernière mise à jour côté source.

Les clés JSON externes sont en camelCase (`lastUpdated`, `bodyMarkdown`...), les noms de champs
Python restent acceptés.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from siteapi.domain.errors import SnapshotValidationError

ImportMode = Literal["apply", "dry-run"]
IMPORT_MODES: tuple[str, ...] = ("apply", "dry-run")

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ProjectSourceGroup(str, Enum):
    """Groupe d'origine d'un projet sur le site."""

    ACTIVE = "active_projects"
    AI = "ai_projects"


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class _TimestampedGroup(_SnapshotModel):
    last_updated: AwareDatetime | None = None

    @field_validator("last_updated", mode="before")
    @classmethod
    def _date_only_is_midnight_utc(cls, value: Any) -> Any:
        # "2026-02-20" -> 2026-02-20T00:00:00Z
        if isinstance(value, str) and _DATE_ONLY.match(value.strip()):
            parsed = datetime.strptime(value.strip(), "%Y-%m-%d")
            return parsed.replace(tzinfo=UTC)
        return value


class UseItem(_SnapshotModel):
    label: str
    value: str


class UseSection(_SnapshotModel):
    title: str
    items: list[UseItem] = Field(default_factory=list)


class UsesGroup(_TimestampedGroup):
    sections: list[UseSection] = Field(default_factory=list)


class NowEntry(_SnapshotModel):
    label: str
    text: str
    href: str | None = None


class NowGroup(_TimestampedGroup):
    narrative: str = ""
    entries: list[NowEntry] = Field(default_factory=list)


class ProjectItem(_SnapshotModel):
    source_group: ProjectSourceGroup
    title: str
    summary: str
    href: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class ProjectsGroup(_TimestampedGroup):
    items: list[ProjectItem] = Field(default_factory=list)


class PostItem(_SnapshotModel):
    """Article publié (le corps markdown est déjà extrait par le chargeur)."""

    slug: str
    title: str
    summary: str
    body_markdown: str
    published_at: AwareDatetime
    updated_at_source: AwareDatetime | None = None
    author: str | None = None
    featured: bool = False
    tags: list[str] = Field(default_factory=list)
    reading_time_text: str | None = None
    reading_time_minutes: float | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class PostsGroup(_TimestampedGroup):
    items: list[PostItem] = Field(default_factory=list)


class BootstrapSnapshot(_SnapshotModel):
    """État désiré des quatre types de ressources."""

    uses: UsesGroup = Field(default_factory=UsesGroup)
    now: NowGroup = Field(default_factory=NowGroup)
    projects: ProjectsGroup = Field(default_factory=ProjectsGroup)
    posts: PostsGroup = Field(default_factory=PostsGroup)


def parse_snapshot(raw: BootstrapSnapshot | Mapping[str, Any]) -> BootstrapSnapshot:
    """
    Valide une entrée arbitraire et retourne un `BootstrapSnapshot`.

    Lève `SnapshotValidationError` (avec le détail Pydantic) si un champ requis manque ou si un
    horodatage n'est pas un instant avec fuseau.
    """
    if isinstance(raw, BootstrapSnapshot):
        return raw
    if not isinstance(raw, Mapping):
        raise SnapshotValidationError(
            f"Snapshot must be a mapping, got {type(raw).__name__}"
        )
    try:
        return BootstrapSnapshot.model_validate(dict(raw))
    except ValidationError as err:
        raise SnapshotValidationError(
            f"Invalid content snapshot ({err.error_count()} errors)",
            errors=err.errors(include_url=False),
        ) from err
