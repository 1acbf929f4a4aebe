"""
Chargement du snapshot de contenu depuis un document JSON.

Format attendu (clés camelCase, chaque groupe optionnel):

    {
      "uses": {"lastUpdated": "2026-02-20", "sections": [{"title": ..., "items": [...]}]},
      "now": {"lastUpdated": ..., "narrative": ..., "entries": [{"label", "text", "href"}]},
      "projects": {"lastUpdated": ..., "items": [{"sourceGroup", "title", "summary", ...}]},
      "posts": {"lastUpdated": ..., "items": [{"slug", "title", "bodyMarkdown", ...}]}
    }

Les dates seules (`YYYY-MM-DD`) des groupes sont lues comme minuit UTC.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from siteapi.domain.errors import SnapshotValidationError
from siteapi.domain.snapshot import BootstrapSnapshot, parse_snapshot

log = structlog.get_logger(__name__)


def load_snapshot_file(path: str | Path) -> BootstrapSnapshot:
    """
    Lit et valide le snapshot JSON situé à `path`.

    Lève `SnapshotValidationError` si le fichier est absent, illisible ou invalide.
    """
    source = Path(path)
    if not source.is_file():
        raise SnapshotValidationError(f"Required bootstrap source file not found: {source}")
    try:
        with open(source, encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as err:
        raise SnapshotValidationError(f"Snapshot is not valid JSON: {source}: {err}") from err
    snapshot = parse_snapshot(raw)
    log.info(
        "snapshot_loaded",
        path=str(source),
        uses=len(snapshot.uses.sections),
        now_entries=len(snapshot.now.entries),
        projects=len(snapshot.projects.items),
        posts=len(snapshot.posts.items),
    )
    return snapshot
