"""
Métriques Prometheus de l'application.

Chaque application possède son propre `CollectorRegistry` (plusieurs applications peuvent coexister
dans un même processus, en test notamment). Le registre contient:
- `site_api_up`: jauge statique à 1 tant que le processus sert des requêtes;
- `http_requests_total{method,route,status}` et `http_request_duration_seconds{route}`,
  alimentés par `PrometheusMiddleware`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from fastapi import APIRouter, Depends, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from siteapi.apigw.internal_auth import require_internal_api_key

UNMATCHED_ROUTE = "unmatched"


@dataclass
class AppMetrics:
    """Registre et collecteurs d'une application."""

    registry: CollectorRegistry
    up: Gauge
    request_count: Counter
    request_latency: Histogram


def create_metrics_registry() -> AppMetrics:
    """Crée un registre dédié avec `site_api_up` fixé à 1."""
    registry = CollectorRegistry()
    up = Gauge("site_api_up", "Static process liveness gauge for site-api", registry=registry)
    up.set(1)
    request_count = Counter(
        "http_requests_total",
        "Total HTTP requests",
        ["method", "route", "status"],
        registry=registry,
    )
    request_latency = Histogram(
        "http_request_duration_seconds",
        "Latency of HTTP requests",
        ["route"],
        registry=registry,
    )
    return AppMetrics(
        registry=registry,
        up=up,
        request_count=request_count,
        request_latency=request_latency,
    )


def route_label(request: Request) -> str:
    """Gabarit de la route (ex: `/v1/posts/{slug}`) pour borner la cardinalité."""
    route = request.scope.get("route")
    return getattr(route, "path_format", None) or UNMATCHED_ROUTE


metrics_router = APIRouter(tags=["ops"])


@metrics_router.get("/metrics", dependencies=[Depends(require_internal_api_key)])
def metrics(request: Request):
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    app_metrics: AppMetrics = request.app.state.metrics
    return Response(generate_latest(app_metrics.registry), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte le comptage des requêtes et la latence par gabarit de route.
    """

    def __init__(self, app: ASGIApp, metrics: AppMetrics) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = route_label(request)
        self.metrics.request_count.labels(request.method, route, str(response.status_code)).inc()
        self.metrics.request_latency.labels(route).observe(time.perf_counter() - start)
        return response
