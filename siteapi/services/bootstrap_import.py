"""
Import bootstrap: synchronise un snapshot de contenu avec la base.

Objectif du module
------------------
- Résoudre l'horodatage de chaque type de ressource (groupe du snapshot, sinon horodatage
  d'exécution).
- Construire les lignes désirées (slugs dédupliqués par type, horodatages décalés d'une
  milliseconde par position pour conserver l'ordre manuel en tri `updated_at desc, id desc`).
- Réconcilier uses, now_entries, projects puis posts, séquentiellement, puis la table `meta`.
- Retourner un résumé identique en `apply` et en `dry-run`.

Transactions
------------
Par défaut chaque type est validé (commit) dès qu'il est appliqué: une erreur de persistance
interrompt l'exécution et laisse les types précédents en place. Ré-exécuter l'import est sûr: les
lignes déjà appliquées sont reclassées UNCHANGED. Avec `atomic=True` le service se contente de
`flush()`: l'appelant décide du commit, et du rollback en cas d'échec (la session n'est
pas annulée ici).

Les exécutions concurrentes ne sont pas sérialisées ici: l'appelant doit garantir une seule
exécution à la fois.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from siteapi.domain.errors import PersistenceError, SnapshotValidationError
from siteapi.domain.meta_values import (
    as_utc,
    latest_timestamp,
    to_iso_string,
    truncate_to_millis,
    with_sort_offset,
)
from siteapi.domain.reconcile import (
    NOW_ENTRIES,
    POSTS,
    PROJECTS,
    USES,
    DesiredRow,
    MetaEntry,
    MetaImportSummary,
    ResourceImportSummary,
)
from siteapi.domain.slugify import SlugFactory
from siteapi.domain.snapshot import (
    IMPORT_MODES,
    BootstrapSnapshot,
    ImportMode,
    NowEntry,
    PostItem,
    ProjectItem,
    UseSection,
    parse_snapshot,
)
from siteapi.infra.repo.store import SqlStore
from siteapi.services.reconcilers import MetaReconciler, ResourceReconciler

CONTENT_SOURCE = "site_content"

log = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class BootstrapImportSummary:
    """Résumé d'une exécution, par type de ressource et pour `meta`."""

    mode: ImportMode
    uses: ResourceImportSummary
    now_entries: ResourceImportSummary
    projects: ResourceImportSummary
    posts: ResourceImportSummary
    meta: MetaImportSummary

    def as_dict(self) -> dict[str, Any]:
        """Forme externe (clés camelCase)."""
        return {
            "mode": self.mode,
            "uses": self.uses.as_dict(),
            "nowEntries": self.now_entries.as_dict(),
            "projects": self.projects.as_dict(),
            "posts": self.posts.as_dict(),
            "meta": self.meta.as_dict(),
        }


def resolve_resource_timestamp(group_timestamp: datetime | None, fallback: datetime) -> datetime:
    if group_timestamp is None:
        return fallback
    return truncate_to_millis(group_timestamp)


def _desired_rows(
    items: list[T],
    resource_ts: datetime,
    slug_for: Callable[[SlugFactory, T], str],
    values_for: Callable[[int, T], Mapping[str, Any]],
) -> list[DesiredRow]:
    # fresh factory per kind and per run
    slugs = SlugFactory()
    return [
        DesiredRow(
            slug=slug_for(slugs, item),
            values=values_for(index, item),
            updated_at=with_sort_offset(resource_ts, index),
        )
        for index, item in enumerate(items)
    ]


def build_use_rows(sections: list[UseSection], resource_ts: datetime) -> list[DesiredRow]:
    return _desired_rows(
        sections,
        resource_ts,
        lambda slugs, section: slugs.assign(f"uses-{section.title}", "uses-section"),
        lambda _index, section: {
            "title": section.title,
            "payload": {
                "source": CONTENT_SOURCE,
                "items": [item.model_dump() for item in section.items],
            },
        },
    )


def build_now_rows(entries: list[NowEntry], resource_ts: datetime) -> list[DesiredRow]:
    return _desired_rows(
        entries,
        resource_ts,
        lambda slugs, entry: slugs.assign(f"now-{entry.label}", "now-entry"),
        lambda index, entry: {
            "label": entry.label,
            "text": entry.text,
            "href": entry.href,
            "sort_order": index,
            "payload": {"source": CONTENT_SOURCE},
        },
    )


def build_project_rows(items: list[ProjectItem], resource_ts: datetime) -> list[DesiredRow]:
    return _desired_rows(
        items,
        resource_ts,
        lambda slugs, project: slugs.assign(
            f"{project.source_group.value}-{project.title}", "project-item"
        ),
        lambda _index, project: {
            "title": project.title,
            "summary": project.summary,
            "href": project.href,
            "payload": dict(project.payload),
        },
    )


def build_post_rows(items: list[PostItem], resource_ts: datetime) -> list[DesiredRow]:
    return _desired_rows(
        items,
        resource_ts,
        lambda slugs, post: slugs.assign(post.slug, post.title),
        lambda _index, post: {
            "title": post.title,
            "summary": post.summary,
            "body_markdown": post.body_markdown,
            "published_at": truncate_to_millis(post.published_at),
            "updated_at_source": (
                as_utc(post.updated_at_source) if post.updated_at_source else None
            ),
            "author": post.author,
            "featured": post.featured,
            "tags": list(post.tags),
            "reading_time_text": post.reading_time_text,
            "reading_time_minutes": post.reading_time_minutes,
            "payload": dict(post.payload),
        },
    )


def build_meta_entries(
    snapshot: BootstrapSnapshot,
    timestamps: Mapping[str, datetime],
) -> list[MetaEntry]:
    """Lot meta: un `<type>_last_updated` par type, le texte narratif, et le maximum global."""
    entries = [
        MetaEntry(key=f"{name}_last_updated", value=to_iso_string(ts), updated_at=ts)
        for name, ts in timestamps.items()
    ]
    entries.append(
        MetaEntry(
            key="now_narrative",
            value=snapshot.now.narrative,
            updated_at=timestamps["now"],
        )
    )
    global_ts = latest_timestamp(timestamps.values())
    if global_ts is not None:
        entries.append(
            MetaEntry(
                key="global_last_updated",
                value=to_iso_string(global_ts),
                updated_at=global_ts,
            )
        )
    return entries


def run_import(
    session: Session,
    snapshot: BootstrapSnapshot | Mapping[str, Any],
    mode: ImportMode = "apply",
    execution_timestamp: datetime | None = None,
    *,
    atomic: bool = False,
) -> BootstrapImportSummary:
    """
    Exécute un import bootstrap complet.

    Args:
        session: session SQLAlchemy (transaction courante).
        snapshot: snapshot validé, ou mapping brut validé ici avant toute lecture.
        mode: `apply` (persiste) ou `dry-run` (calcule seulement).
        execution_timestamp: horodatage de repli des groupes sans date (défaut: maintenant).
        atomic: ne pas valider par type; l'appelant commit/rollback l'ensemble, y compris
            après une PersistenceError.

    Returns:
        BootstrapImportSummary: compteurs par type et pour `meta`.

    Raises:
        SnapshotValidationError: snapshot ou mode invalide (aucune requête émise).
        PersistenceError: échec du store en cours d'exécution (cause chaînée).
    """
    if mode not in IMPORT_MODES:
        raise SnapshotValidationError(f"Unknown import mode: {mode!r}")
    snapshot = parse_snapshot(snapshot)
    executed_at = truncate_to_millis(
        execution_timestamp if execution_timestamp is not None else datetime.now(UTC)
    )

    timestamps = {
        "uses": resolve_resource_timestamp(snapshot.uses.last_updated, executed_at),
        "now": resolve_resource_timestamp(snapshot.now.last_updated, executed_at),
        "projects": resolve_resource_timestamp(snapshot.projects.last_updated, executed_at),
        "posts": resolve_resource_timestamp(snapshot.posts.last_updated, executed_at),
    }
    passes = (
        (USES, build_use_rows(snapshot.uses.sections, timestamps["uses"]), timestamps["uses"]),
        (NOW_ENTRIES, build_now_rows(snapshot.now.entries, timestamps["now"]), timestamps["now"]),
        (
            PROJECTS,
            build_project_rows(snapshot.projects.items, timestamps["projects"]),
            timestamps["projects"],
        ),
        (POSTS, build_post_rows(snapshot.posts.items, timestamps["posts"]), timestamps["posts"]),
    )

    store = SqlStore(session)
    run_log = log.bind(mode=mode, executed_at=to_iso_string(executed_at))
    run_log.info("bootstrap_import_started")

    summaries: dict[str, ResourceImportSummary] = {}
    for kind, desired_rows, resource_ts in passes:
        try:
            summaries[kind.name] = ResourceReconciler(store, kind).reconcile(
                desired_rows, mode, resource_ts
            )
            _end_step(store, mode, atomic)
        except SQLAlchemyError as err:
            raise _persistence_failure(store, atomic, run_log, kind.name, err) from err

    try:
        meta_summary = MetaReconciler(store).reconcile(
            build_meta_entries(snapshot, timestamps), mode
        )
        _end_step(store, mode, atomic)
    except SQLAlchemyError as err:
        raise _persistence_failure(store, atomic, run_log, "meta", err) from err

    summary = BootstrapImportSummary(
        mode=mode,
        uses=summaries["uses"],
        now_entries=summaries["now_entries"],
        projects=summaries["projects"],
        posts=summaries["posts"],
        meta=meta_summary,
    )
    run_log.info("bootstrap_import_finished", summary=summary.as_dict())
    return summary


def _end_step(store: SqlStore, mode: ImportMode, atomic: bool) -> None:
    if mode != "apply":
        return
    if atomic:
        store.flush()
    else:
        store.commit()


def _persistence_failure(
    store: SqlStore, atomic: bool, run_log: Any, resource: str, err: SQLAlchemyError
) -> PersistenceError:
    # atomic: the caller's transaction is left for the caller to roll back
    if not atomic:
        store.rollback()
    run_log.error("bootstrap_import_failed", resource=resource, error=str(err))
    return PersistenceError(resource, str(err))
