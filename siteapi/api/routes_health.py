"""
Endpoints opérationnels: vivacité et disponibilité.

- `/healthz`: le processus répond (sans authentification, sans accès base).
- `/readyz`: base joignable, requête simple, migrations appliquées (clé d'API interne requise).
  200 si prêt, 503 sinon; le corps détaille chaque vérification.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from siteapi.api.schemas import HealthResponse
from siteapi.apigw.internal_auth import require_internal_api_key
from siteapi.core.http_constants import HTTP_OK, HTTP_SERVICE_UNAVAILABLE
from siteapi.infra.repo.readiness import ReadinessResult

router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=HealthResponse)
def healthz():
    """Vérifie que l'API répond."""
    return {"status": "ok"}


@router.get("/readyz", dependencies=[Depends(require_internal_api_key)])
def readyz(request: Request):
    """Exécute la vérification configurée sur `app.state.readiness_check`."""
    result: ReadinessResult = request.app.state.readiness_check()
    status_code = HTTP_OK if result.status == "ready" else HTTP_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=result.as_dict())
