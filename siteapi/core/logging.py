"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Fournir une configuration de logs structurés lisibles en développement.
- Produire des lignes JSON en production (agrégateurs de logs).
"""

import logging

import structlog


def setup_logging(level: str = "INFO", json: bool = False) -> None:
    """Configure structlog pour produire des logs détaillés et filtrables."""
    timestamper = structlog.processors.TimeStamper(fmt="ISO")
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            timestamper,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        # current sys.stdout on every call (stream swapped by test capture)
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
