"""
Application principale FastAPI.

Ce module assemble les composants de l'API de contenu du site: middlewares, gestion des erreurs,
routes `/v1`, endpoints opérationnels et métriques.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application avec ses dépendances (moteur, vérification de disponibilité, registre
  de métriques), toutes injectables pour les tests
- Ajouter les middlewares (request id, métriques)
- Monter les routers
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
import uvicorn
from fastapi import FastAPI
from sqlalchemy.engine import Engine

from siteapi.api.routes_health import router as health_router
from siteapi.api.routes_now import router as now_router
from siteapi.api.routes_posts import router as posts_router
from siteapi.api.routes_projects import router as projects_router
from siteapi.api.routes_uses import router as uses_router
from siteapi.apigw.errors import register_error_handlers
from siteapi.apigw.internal_auth import InternalApiKeyVerifier
from siteapi.app.metrics import (
    AppMetrics,
    PrometheusMiddleware,
    create_metrics_registry,
    metrics_router,
)
from siteapi.core.logging import setup_logging
from siteapi.core.settings import Settings, get_settings
from siteapi.infra.repo.db import get_engine, get_session_factory
from siteapi.infra.repo.readiness import ReadinessResult, check_database_readiness
from siteapi.middlewares.request_id import RequestIDMiddleware

log = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    readiness_check: Callable[[], ReadinessResult] | None = None,
    metrics: AppMetrics | None = None,
) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Lit les paramètres (ou utilise ceux fournis)
    - Configure le logging structuré (structlog)
    - Pose sur `app.state` la factory de sessions, le vérificateur de clés internes, la
      vérification de disponibilité et le registre de métriques
    - Ajoute les middlewares et publie les routes
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json=settings.log_as_json)
    engine = engine if engine is not None else get_engine(settings.DATABASE_URL)
    metrics = metrics or create_metrics_registry()

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    app.state.internal_auth = InternalApiKeyVerifier(settings.internal_api_keys)
    app.state.readiness_check = readiness_check or (lambda: check_database_readiness(engine))
    app.state.metrics = metrics

    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware, metrics=metrics)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router)
    app.include_router(now_router)
    app.include_router(uses_router)
    app.include_router(projects_router)
    app.include_router(posts_router)
    app.include_router(metrics_router)
    return app


def run() -> None:
    """Point d'entrée `site-api`: sert l'application avec uvicorn."""
    settings = get_settings()
    app = create_app(settings)
    log.info(
        "server_starting", host=settings.APP_HOST, port=settings.APP_PORT, env=settings.APP_ENV
    )
    uvicorn.run(
        app,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
