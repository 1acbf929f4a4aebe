"""Gestion standardisée des erreurs API.

Toutes les erreurs sont rendues sous la forme `{"error": "<code ou message>"}`:
- `APIError` (levée par les routes et dépendances) avec son statut;
- erreurs de validation des paramètres de requête → 400 `Invalid query parameters`;
- `PaginationError` → 400 avec son message;
- exceptions HTTP Starlette (route inconnue, méthode) → code dérivé du statut;
- toute autre exception → journalisée, 500 `internal_error`.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from siteapi.api.pagination import INVALID_QUERY_ERROR, PaginationError
from siteapi.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNAUTHORIZED,
)

log = structlog.get_logger(__name__)


class APIError(HTTPException):
    """Erreur API rendue telle quelle: `{"error": error}` avec `status_code`."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(status_code=status_code, detail=error)
        self.error = error


class ErrorCodes:
    """Codes d'erreur exposés par l'API."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INTERNAL_ERROR = "internal_error"


_STATUS_CODES = {
    HTTP_NOT_FOUND: ErrorCodes.NOT_FOUND,
    405: ErrorCodes.METHOD_NOT_ALLOWED,
    HTTP_UNAUTHORIZED: ErrorCodes.UNAUTHORIZED,
}


def create_error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    log.info("api_error", path=request.url.path, status_code=exc.status_code, error=exc.error)
    return create_error_response(exc.status_code, exc.error)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = _STATUS_CODES.get(exc.status_code) or str(exc.detail)
    return create_error_response(exc.status_code, error)


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info("invalid_request", path=request.url.path, errors=len(exc.errors()))
    return create_error_response(HTTP_BAD_REQUEST, INVALID_QUERY_ERROR)


def handle_pagination_error(request: Request, exc: PaginationError) -> JSONResponse:
    log.info("invalid_pagination", path=request.url.path, error=exc.error)
    return create_error_response(HTTP_BAD_REQUEST, exc.error)


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unexpected_error",
        path=request.url.path,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return create_error_response(HTTP_INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_ERROR)


def not_found() -> APIError:
    return APIError(HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND)


def unauthorized() -> APIError:
    return APIError(HTTP_UNAUTHORIZED, ErrorCodes.UNAUTHORIZED)


def register_error_handlers(app: FastAPI) -> None:
    """Branche les gestionnaires d'erreurs sur l'application."""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(PaginationError, handle_pagination_error)
    app.add_exception_handler(Exception, handle_generic_exception)
