"""
Réconciliateurs liés au store: lecture des lignes existantes, planification, écriture.

La planification est déléguée à `siteapi.domain.reconcile` (pure). Ici seule l'étape d'écriture
dépend du mode: en `dry-run` le plan est calculé et compté, jamais exécuté.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from siteapi.domain.meta_values import as_utc
from siteapi.domain.reconcile import (
    Decision,
    DesiredRow,
    MetaEntry,
    MetaImportSummary,
    PlannedChange,
    PlannedMetaChange,
    ResourceImportSummary,
    ResourceKind,
    plan_meta,
    plan_resource,
    summarize,
    summarize_meta,
)
from siteapi.domain.snapshot import ImportMode
from siteapi.infra.repo.models import META_TABLE, RESOURCE_TABLES
from siteapi.infra.repo.store import SqlStore

_BOOKKEEPING_COLUMNS = ("id", "slug", "version", "is_active")
_META_COLUMNS = ("key", "value", "updated_at")


def _utc_values(values: dict) -> dict:
    return {
        name: as_utc(value) if isinstance(value, datetime) else value
        for name, value in values.items()
    }


class ResourceReconciler:
    """Réconcilie un type de ressource (uses, now_entries, projects ou posts)."""

    def __init__(self, store: SqlStore, kind: ResourceKind) -> None:
        self._store = store
        self._kind = kind
        self._table = RESOURCE_TABLES[kind.table]
        self._log = structlog.get_logger(__name__).bind(resource=kind.name)

    @property
    def kind(self) -> ResourceKind:
        return self._kind

    def load_existing(self) -> list[dict]:
        """Toutes les lignes du type, actives ou non (projection fixe)."""
        return self._store.select_all(
            self._table, _BOOKKEEPING_COLUMNS + self._kind.content_fields
        )

    def plan(self, desired_rows: Sequence[DesiredRow]) -> list[PlannedChange]:
        return plan_resource(self._kind, self.load_existing(), desired_rows)

    def reconcile(
        self,
        desired_rows: Sequence[DesiredRow],
        mode: ImportMode,
        resource_updated_at: datetime,
    ) -> ResourceImportSummary:
        """
        Classe chaque ligne désirée puis les lignes obsolètes; écrit uniquement en mode `apply`.

        Args:
            desired_rows: lignes désirées (slugs déjà attribués), dans l'ordre du snapshot.
            mode: `apply` ou `dry-run`.
            resource_updated_at: horodatage du type, utilisé pour les désactivations.

        Returns:
            ResourceImportSummary: compteurs inserted/updated/deactivated/unchanged.
        """
        plan = self.plan(desired_rows)
        if mode == "apply":
            for change in plan:
                self._apply(change, resource_updated_at)
        summary = summarize(plan)
        self._log.info("resource_reconciled", mode=mode, **summary.as_dict())
        return summary

    def _apply(self, change: PlannedChange, resource_updated_at: datetime) -> None:
        if change.decision is Decision.INSERT:
            desired = change.desired
            self._store.insert(
                self._table,
                _utc_values(
                    {
                        "slug": desired.slug,
                        **desired.values,
                        "is_active": True,
                        "version": 1,
                        "updated_at": desired.updated_at,
                    }
                ),
            )
        elif change.decision is Decision.UPDATE:
            desired, existing = change.desired, change.existing
            self._store.update(
                self._table,
                "id",
                existing["id"],
                _utc_values(
                    {
                        **desired.values,
                        "is_active": True,
                        "version": existing["version"] + 1,
                        "updated_at": desired.updated_at,
                    }
                ),
            )
        elif change.decision is Decision.DEACTIVATE:
            existing = change.existing
            self._store.update(
                self._table,
                "id",
                existing["id"],
                {
                    "is_active": False,
                    "version": existing["version"] + 1,
                    "updated_at": as_utc(resource_updated_at),
                },
            )


class MetaReconciler:
    """Réconcilie la table clé/valeur `meta` (pas de désactivation)."""

    def __init__(self, store: SqlStore) -> None:
        self._store = store
        self._log = structlog.get_logger(__name__).bind(resource="meta")

    def plan(self, entries: Sequence[MetaEntry]) -> list[PlannedMetaChange]:
        existing = self._store.select_in(
            META_TABLE, "key", [entry.key for entry in entries], _META_COLUMNS
        )
        return plan_meta(existing, entries)

    def reconcile(self, entries: Sequence[MetaEntry], mode: ImportMode) -> MetaImportSummary:
        plan = self.plan(entries)
        if mode == "apply":
            for change in plan:
                entry = change.entry
                if change.decision is Decision.INSERT:
                    self._store.insert(
                        META_TABLE,
                        {
                            "key": entry.key,
                            "value": entry.value,
                            "updated_at": as_utc(entry.updated_at),
                        },
                    )
                elif change.decision is Decision.UPDATE:
                    self._store.update(
                        META_TABLE,
                        "key",
                        entry.key,
                        {"value": entry.value, "updated_at": as_utc(entry.updated_at)},
                    )
        summary = summarize_meta(plan)
        self._log.info("meta_reconciled", mode=mode, **summary.as_dict())
        return summary
