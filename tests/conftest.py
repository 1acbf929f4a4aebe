"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path et fournit les fixtures partagées: moteur SQLite
en mémoire (schéma créé depuis les modèles), session, paramètres et client HTTP.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from siteapi...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from siteapi.app.main import create_app  # noqa: E402
from siteapi.core.settings import Settings  # noqa: E402
from siteapi.infra.repo.db import get_engine, get_session_factory  # noqa: E402
from siteapi.infra.repo.models import Base  # noqa: E402
from tests.fakes import NEXT_API_KEY, TEST_API_KEY, make_snapshot_data  # noqa: E402


@pytest.fixture
def engine():
    """Moteur SQLite en mémoire partagé (StaticPool) avec le schéma complet."""
    eng = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    s = get_session_factory(engine)()
    yield s
    s.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        INTERNAL_API_KEYS=f"{TEST_API_KEY}, {NEXT_API_KEY}",
        LOG_LEVEL="WARNING",
        LOG_JSON=False,
    )


@pytest.fixture
def app(settings, engine):
    return create_app(settings=settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def snapshot_data():
    return make_snapshot_data()


@pytest.fixture
def auth_headers():
    return {"x-internal-api-key": TEST_API_KEY}
