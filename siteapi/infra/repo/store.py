# ============================================================
# Module : siteapi/infra/repo/store.py
# Objet  : Client de store générique (SQLAlchemy Core) pour l'import.
# ============================================================

"""
Client de store générique utilisé par les réconciliateurs.

Interface minimale: sélection complète d'une table (projection fixe), sélection filtrée par un
ensemble de clés, insertion d'une ligne, mise à jour partielle par clé primaire. Les lignes sont
retournées sous forme de dictionnaires.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import Table, insert, select, update
from sqlalchemy.orm import Session


class SqlStore:
    """Accès SQL sur une session SQLAlchemy (la session porte la transaction)."""

    def __init__(self, session: Session) -> None:
        """Construit le store avec une session (SQLAlchemy)."""
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def select_all(self, table: Table, columns: Sequence[str]) -> list[dict[str, Any]]:
        """Retourne toutes les lignes de `table` (ordre par clé primaire)."""
        stmt = select(*(table.c[name] for name in columns)).order_by(
            *table.primary_key.columns
        )
        return [dict(row._mapping) for row in self._session.execute(stmt)]

    def select_in(
        self,
        table: Table,
        key_column: str,
        keys: Iterable[Any],
        columns: Sequence[str],
    ) -> list[dict[str, Any]]:
        """Retourne les lignes dont `key_column` appartient à `keys` (aucune requête si vide)."""
        key_list = list(keys)
        if not key_list:
            return []
        stmt = select(*(table.c[name] for name in columns)).where(
            table.c[key_column].in_(key_list)
        )
        return [dict(row._mapping) for row in self._session.execute(stmt)]

    def insert(self, table: Table, values: Mapping[str, Any]) -> None:
        self._session.execute(insert(table).values(**values))

    def update(
        self,
        table: Table,
        key_column: str,
        key: Any,
        values: Mapping[str, Any],
    ) -> None:
        """Met à jour les colonnes `values` de la ligne identifiée par `key`."""
        self._session.execute(
            update(table).where(table.c[key_column] == key).values(**values)
        )

    def flush(self) -> None:
        self._session.flush()

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()
