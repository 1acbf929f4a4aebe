"""
Protection des endpoints opérationnels par clé d'API interne.

Le client présente la clé dans l'en-tête `x-internal-api-key`. Plusieurs clés peuvent être actives
simultanément (rotation); la comparaison est faite en temps constant contre chacune.
"""

from __future__ import annotations

import hmac
from collections.abc import Iterable

import structlog
from fastapi import Request

from siteapi.apigw.errors import unauthorized
from siteapi.core.http_constants import INTERNAL_API_KEY_HEADER

log = structlog.get_logger(__name__)


class InternalApiKeyVerifier:
    """Vérificateur de clé d'API interne."""

    def __init__(self, api_keys: Iterable[str]) -> None:
        self._api_keys = tuple(key.strip() for key in api_keys if key and key.strip())
        if not self._api_keys:
            raise ValueError("at least one internal API key is required")

    def is_authorized(self, provided: str | None) -> bool:
        """True si la clé fournie (trimée, non vide) correspond à une clé configurée."""
        candidate = (provided or "").strip()
        if not candidate:
            return False
        encoded = candidate.encode()
        # no early exit: every configured key is compared
        matched = False
        for key in self._api_keys:
            if hmac.compare_digest(encoded, key.encode()):
                matched = True
        return matched


def require_internal_api_key(request: Request) -> None:
    """
    Dépendance FastAPI: refuse la requête (401 `unauthorized`) sans clé valide.

    Le vérificateur est lu sur `app.state.internal_auth` (configuré par `create_app`).
    """
    verifier: InternalApiKeyVerifier = request.app.state.internal_auth
    if not verifier.is_authorized(request.headers.get(INTERNAL_API_KEY_HEADER)):
        log.warning("internal_api_key_rejected", path=request.url.path)
        raise unauthorized()
