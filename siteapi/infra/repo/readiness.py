"""
Vérifications de disponibilité (readiness) de la base de données.

Les étapes sont exécutées dans l'ordre: connexion, requête simple, présence de la table de
migrations Alembic. La première étape en échec interrompt la séquence; elle et les suivantes
restent `failed`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import structlog
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

CheckState = Literal["ok", "failed"]

MIGRATIONS_TABLE = "alembic_version"

log = structlog.get_logger(__name__)


@dataclass
class ReadinessResult:
    """Résultat agrégé des vérifications."""

    status: Literal["ready", "not_ready"]
    checks: dict[str, CheckState] = field(default_factory=dict)
    message: str | None = None

    def as_dict(self) -> dict:
        body: dict = {"status": self.status, "checks": dict(self.checks)}
        if self.message is not None:
            body["message"] = self.message
        return body


def _initial_checks() -> dict[str, CheckState]:
    return {"database": "failed", "migrations": "failed", "query": "failed"}


def check_database_readiness(engine: Engine) -> ReadinessResult:
    """Exécute les vérifications et retourne un `ReadinessResult` (ne lève jamais)."""
    checks = _initial_checks()
    try:
        with engine.connect() as connection:
            checks["database"] = "ok"

            connection.execute(text("select 1 as health_check"))
            checks["query"] = "ok"

            if not inspect(connection).has_table(MIGRATIONS_TABLE):
                raise RuntimeError(f"{MIGRATIONS_TABLE} table not found")
            checks["migrations"] = "ok"
    except (SQLAlchemyError, RuntimeError) as err:
        log.warning("readiness_check_failed", checks=checks, error=str(err))
        return ReadinessResult(
            status="not_ready",
            checks=checks,
            message=str(err) or "Readiness check failed",
        )
    return ReadinessResult(status="ready", checks=checks)
