"""DB utilities for SQLAlchemy sessions/engine.

Uses `DATABASE_URL` env var or falls back to `sqlite+pysqlite:///:memory:` for tests.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def get_engine(url: str | None = None) -> Engine:
    """Crée un moteur SQLAlchemy à partir de l'URL de base de données."""
    db_url = url or os.getenv("DATABASE_URL") or "sqlite+pysqlite:///:memory:"
    if db_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        # one shared connection, otherwise each checkout gets an empty :memory: db
        if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, future=True, echo=False, **kwargs)
    return create_engine(
        db_url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def get_session_factory(engine: Engine) -> sessionmaker:
    """Crée une factory de sessions SQLAlchemy."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Contexte de session SQLAlchemy avec gestion automatique des transactions.

    Commit en sortie normale, rollback puis propagation en cas d'exception.
    """
    SessionLocal = get_session_factory(engine)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
