"""
Erreurs métier de l'import de contenu.

Taxonomie
---------
- `SnapshotValidationError`: snapshot mal formé, levée avant toute réconciliation.
- `PersistenceError`: échec d'écriture/lecture en mode apply; l'exécution est interrompue et les
  types de ressources déjà appliqués restent validés (ré-exécuter l'import pour reprendre).
"""

from __future__ import annotations

from typing import Any


class BootstrapImportError(Exception):
    """Erreur de base de l'import bootstrap."""


class SnapshotValidationError(BootstrapImportError):
    """Snapshot invalide (champ manquant, type inattendu, date naïve...)."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(BootstrapImportError):
    """Échec du store pendant la réconciliation d'un type de ressource."""

    def __init__(self, resource: str, message: str) -> None:
        super().__init__(f"{resource}: {message}")
        self.resource = resource
