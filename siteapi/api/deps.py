"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Fournir une session SQLAlchemy par requête, issue de la factory posée sur `app.state` par
  `create_app` (moteur injectable en test).
- Garantir la fermeture de la session en fin de requête (lecture seule: pas de commit).
"""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db_session(request: Request) -> Iterator[Session]:
    session: Session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
