"""
Génération de slugs URL-safe et dédupliqués.

Un `SlugFactory` est créé par type de ressource et par exécution d'import: ses compteurs ne sont
jamais partagés entre deux types ni entre deux exécutions.
"""

from __future__ import annotations

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")
_EDGE_DASHES = re.compile(r"^-+|-+$")

DEFAULT_SLUG_BASE = "item"


def to_slug(value: str) -> str:
    """Normalise un libellé: minuscules, suites non alphanumériques -> `-`, sans tirets aux bords."""
    lowered = value.strip().lower()
    return _EDGE_DASHES.sub("", _NON_ALPHANUMERIC.sub("-", lowered))


class SlugFactory:
    """Attribue des slugs uniques au sein d'une exécution pour un type de ressource."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._issued: set[str] = set()

    def assign(self, slug_base: str, fallback_label: str) -> str:
        """
        Retourne le slug de `slug_base` (ou du libellé de repli), suffixé `-N` à la N-ième occurrence.

        Un slug déjà attribué dans l'exécution n'est jamais réattribué: si `base-N` est pris
        (slug littéral `base-2` plus tôt dans le snapshot, par exemple), N augmente jusqu'au
        premier slug libre.

        Exemple: "Dev stack", "Dev stack" -> "dev-stack", "dev-stack-2".
        """
        base = to_slug(slug_base) or to_slug(fallback_label) or DEFAULT_SLUG_BASE
        count = self._counts.get(base, 0) + 1
        candidate = base if count == 1 else f"{base}-{count}"
        while candidate in self._issued:
            count += 1
            candidate = f"{base}-{count}"
        self._counts[base] = count
        self._issued.add(candidate)
        return candidate

    __call__ = assign
