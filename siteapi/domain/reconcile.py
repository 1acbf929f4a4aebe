"""
Réconciliation pure: classification des lignes désirées vs lignes existantes.

Ce module ne fait aucune E/S. Il produit un plan (`PlannedChange`) que la couche service exécute en
mode `apply` et se contente de compter en mode `dry-run`: la classification est strictement la même
dans les deux modes.

Règles
------
- Identité: le slug. Une ligne existante n'est jamais renommée.
- INSERT: aucun slug existant.
- UNCHANGED: tous les champs de contenu égaux ET ligne déjà active.
- UPDATE: sinon (contenu différent ou ligne réactivée).
- DEACTIVATE: ligne existante active dont le slug est absent du snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from siteapi.domain.json_values import json_equal
from siteapi.domain.meta_values import as_utc, to_epoch_millis


class Decision(str, Enum):
    """Décision de réconciliation pour une ligne."""

    INSERT = "insert"
    UPDATE = "update"
    UNCHANGED = "unchanged"
    DEACTIVATE = "deactivate"


@dataclass(frozen=True)
class ResourceKind:
    """
    Description d'un type de ressource réconcilié.

    Attributs
    - name: nom logique (uses, now_entries, projects, posts).
    - table: nom de la table SQL.
    - content_fields: colonnes comparées pour détecter un changement.
    - json_fields: sous-ensemble comparé structurellement (`json_equal`).
    - instant_fields: sous-ensemble comparé comme instants UTC.
    """

    name: str
    table: str
    content_fields: tuple[str, ...]
    json_fields: frozenset[str] = frozenset()
    instant_fields: frozenset[str] = frozenset()

    def field_equal(self, name: str, existing: Any, desired: Any) -> bool:
        if name in self.json_fields:
            return json_equal(existing, desired)
        if name in self.instant_fields:
            if existing is None or desired is None:
                return existing is None and desired is None
            return as_utc(existing) == as_utc(desired)
        return existing == desired

    def content_equal(self, existing: Mapping[str, Any], desired: Mapping[str, Any]) -> bool:
        return all(
            self.field_equal(name, existing.get(name), desired.get(name))
            for name in self.content_fields
        )


USES = ResourceKind(
    name="uses",
    table="uses",
    content_fields=("title", "payload"),
    json_fields=frozenset({"payload"}),
)
NOW_ENTRIES = ResourceKind(
    name="now_entries",
    table="now_entries",
    content_fields=("label", "text", "href", "sort_order", "payload"),
    json_fields=frozenset({"payload"}),
)
PROJECTS = ResourceKind(
    name="projects",
    table="projects",
    content_fields=("title", "summary", "href", "payload"),
    json_fields=frozenset({"payload"}),
)
POSTS = ResourceKind(
    name="posts",
    table="posts",
    content_fields=(
        "title",
        "summary",
        "body_markdown",
        "published_at",
        "updated_at_source",
        "author",
        "featured",
        "tags",
        "reading_time_text",
        "reading_time_minutes",
        "payload",
    ),
    json_fields=frozenset({"tags", "payload"}),
    instant_fields=frozenset({"published_at", "updated_at_source"}),
)

RESOURCE_KINDS: tuple[ResourceKind, ...] = (USES, NOW_ENTRIES, PROJECTS, POSTS)


@dataclass(frozen=True)
class DesiredRow:
    """Ligne désirée: slug attribué, valeurs de contenu et horodatage effectif."""

    slug: str
    values: Mapping[str, Any]
    updated_at: datetime


@dataclass(frozen=True)
class PlannedChange:
    decision: Decision
    desired: DesiredRow | None = None
    existing: Mapping[str, Any] | None = None


@dataclass
class ResourceImportSummary:
    inserted: int = 0
    updated: int = 0
    deactivated: int = 0
    unchanged: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "deactivated": self.deactivated,
            "unchanged": self.unchanged,
        }


@dataclass
class MetaImportSummary:
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "unchanged": self.unchanged,
        }


def classify(
    kind: ResourceKind,
    existing: Mapping[str, Any] | None,
    desired: DesiredRow | None,
) -> Decision | None:
    """
    Classe une paire (existante, désirée).

    Retourne None pour une ligne déjà inactive et absente du snapshot: rien à faire, rien à compter.
    """
    if desired is None and existing is None:
        raise ValueError("classify() needs an existing or a desired row")
    if existing is None:
        return Decision.INSERT
    if desired is None:
        return Decision.DEACTIVATE if existing["is_active"] else None
    if existing["is_active"] and kind.content_equal(existing, desired.values):
        return Decision.UNCHANGED
    return Decision.UPDATE


def plan_resource(
    kind: ResourceKind,
    existing_rows: Iterable[Mapping[str, Any]],
    desired_rows: Sequence[DesiredRow],
) -> list[PlannedChange]:
    """Plan complet d'un type: lignes désirées dans l'ordre du snapshot, puis lignes obsolètes."""
    existing_list = list(existing_rows)
    existing_by_slug = {row["slug"]: row for row in existing_list}
    desired_slugs = {row.slug for row in desired_rows}

    plan: list[PlannedChange] = []
    for desired in desired_rows:
        existing = existing_by_slug.get(desired.slug)
        decision = classify(kind, existing, desired)
        plan.append(PlannedChange(decision=decision, desired=desired, existing=existing))

    for existing in existing_list:
        if existing["slug"] in desired_slugs:
            continue
        decision = classify(kind, existing, None)
        if decision is not None:
            plan.append(PlannedChange(decision=decision, existing=existing))
    return plan


def summarize(plan: Iterable[PlannedChange]) -> ResourceImportSummary:
    summary = ResourceImportSummary()
    for change in plan:
        if change.decision is Decision.INSERT:
            summary.inserted += 1
        elif change.decision is Decision.UPDATE:
            summary.updated += 1
        elif change.decision is Decision.DEACTIVATE:
            summary.deactivated += 1
        else:
            summary.unchanged += 1
    return summary


@dataclass(frozen=True)
class MetaEntry:
    """Entrée clé/valeur désirée pour la table `meta`."""

    key: str
    value: Any
    updated_at: datetime


@dataclass(frozen=True)
class PlannedMetaChange:
    decision: Decision
    entry: MetaEntry
    existing: Mapping[str, Any] | None = field(default=None)


def classify_meta(existing: Mapping[str, Any] | None, entry: MetaEntry) -> Decision:
    """INSERT si absente; UPDATE si la valeur ou l'horodatage (à la ms) diffère; sinon UNCHANGED."""
    if existing is None:
        return Decision.INSERT
    value_changed = not json_equal(existing["value"], entry.value)
    timestamp_changed = to_epoch_millis(existing["updated_at"]) != to_epoch_millis(
        entry.updated_at
    )
    if value_changed or timestamp_changed:
        return Decision.UPDATE
    return Decision.UNCHANGED


def plan_meta(
    existing_rows: Iterable[Mapping[str, Any]],
    entries: Sequence[MetaEntry],
) -> list[PlannedMetaChange]:
    existing_by_key = {row["key"]: row for row in existing_rows}
    return [
        PlannedMetaChange(
            decision=classify_meta(existing_by_key.get(entry.key), entry),
            entry=entry,
            existing=existing_by_key.get(entry.key),
        )
        for entry in entries
    ]


def summarize_meta(plan: Iterable[PlannedMetaChange]) -> MetaImportSummary:
    summary = MetaImportSummary()
    for change in plan:
        if change.decision is Decision.INSERT:
            summary.inserted += 1
        elif change.decision is Decision.UPDATE:
            summary.updated += 1
        else:
            summary.unchanged += 1
    return summary
