"""
Configuration de l'environnement Alembic pour les migrations de base de données.

L'URL est lue dans `DATABASE_URL_MIGRATIONS` (rôle propriétaire du schéma), sinon `DATABASE_URL`.
Les modes offline et online sont supportés.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]

# Allow importing project modules when running via Alembic CLI
_this = Path(__file__).resolve()
_candidates = [
    _this.parent.parent,  # repo root (expected)
    Path.cwd(),
]
for p in _candidates:
    s = str(p)
    if s and s not in sys.path:
        sys.path.append(s)

from siteapi.infra.repo.models import Base  # noqa: E402

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    url = os.getenv("DATABASE_URL_MIGRATIONS") or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL_MIGRATIONS or DATABASE_URL must be set")
    return url


def run_migrations_offline() -> None:
    """Exécute les migrations sans connexion (SQL émis avec des bindings littéraux)."""
    context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Exécute les migrations sur une connexion active."""
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
