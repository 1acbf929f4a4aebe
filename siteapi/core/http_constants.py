"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par l'API ainsi que les limites de pagination.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500
HTTP_SERVICE_UNAVAILABLE = 503

# Pagination des listes /v1/*
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 50

# En-tête des endpoints opérationnels protégés
INTERNAL_API_KEY_HEADER = "x-internal-api-key"
