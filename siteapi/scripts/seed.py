"""
Script d'import bootstrap du contenu du site vers la base.

Ce script lit le snapshot JSON (`--path`, sinon `SITE_CONTENT_SNAPSHOT`), exécute l'import en mode
`apply` (ou `--dry-run`) et affiche un résumé par type de ressource.

Une seule exécution à la fois: l'ordonnancement (job unique, verrou de déploiement) est à la
charge de l'appelant.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import datetime

from siteapi.core.logging import setup_logging
from siteapi.core.settings import get_settings
from siteapi.domain.reconcile import MetaImportSummary, ResourceImportSummary
from siteapi.infra.content_loader import load_snapshot_file
from siteapi.infra.repo.db import get_engine, session_scope
from siteapi.services.bootstrap_import import BootstrapImportSummary, run_import


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise argparse.ArgumentTypeError("execution timestamp must include a timezone")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import bootstrap du snapshot de contenu vers la base"
    )
    parser.add_argument(
        "--path",
        type=str,
        default=None,
        help="Chemin du snapshot JSON (défaut: SITE_CONTENT_SNAPSHOT)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Calcule le résumé sans rien écrire",
    )
    parser.add_argument(
        "--execution-timestamp",
        type=_parse_timestamp,
        default=None,
        help="Horodatage ISO-8601 de repli pour les groupes sans date",
    )
    return parser


def format_resource_line(label: str, summary: ResourceImportSummary) -> str:
    return (
        f"{label}: inserted={summary.inserted}, updated={summary.updated}, "
        f"deactivated={summary.deactivated}, unchanged={summary.unchanged}"
    )


def format_meta_line(summary: MetaImportSummary) -> str:
    return (
        f"meta: inserted={summary.inserted}, updated={summary.updated}, "
        f"unchanged={summary.unchanged}"
    )


def format_summary(summary: BootstrapImportSummary) -> str:
    """Résumé multi-lignes destiné à la sortie standard."""
    lines = [
        f"Bootstrap import mode: {summary.mode}",
        format_resource_line("uses", summary.uses),
        format_resource_line("now_entries", summary.now_entries),
        format_resource_line("projects", summary.projects),
        format_resource_line("posts", summary.posts),
        format_meta_line(summary.meta),
    ]
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """Point d'entrée: charge le snapshot, exécute l'import et affiche le résumé."""
    args = build_parser().parse_args(argv)
    mode = "dry-run" if args.dry_run else "apply"
    engine = None
    try:
        settings = get_settings()
        setup_logging(settings.LOG_LEVEL, json=settings.log_as_json)
        engine = get_engine(settings.DATABASE_URL)
        snapshot = load_snapshot_file(args.path or settings.SITE_CONTENT_SNAPSHOT)
        with session_scope(engine) as session:
            summary = run_import(
                session,
                snapshot,
                mode,
                execution_timestamp=args.execution_timestamp,
            )
    except Exception as err:
        # import, configuration and connection errors alike
        print(f"Seed failed: {err}", file=sys.stderr)
        return 1
    finally:
        if engine is not None:
            engine.dispose()

    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
