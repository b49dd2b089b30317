"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Logs structurés lisibles en développement, JSON (une ligne par événement) ailleurs.
- Avertissement "une seule fois par processus" pour les absences de configuration.
"""

import logging
import sys

import structlog

_warned: set[str] = set()


def setup_logging(level: str = "INFO", json_logs: bool = False):
    """Configure structlog au niveau demandé (INFO si le niveau est inconnu)."""
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, str(level).upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def warn_once(key: str, event: str, **kw) -> bool:
    """Émet un warning structlog une seule fois par clé pour la durée du processus.

    Retourne True si le message a effectivement été émis.
    """
    if key in _warned:
        return False
    _warned.add(key)
    structlog.get_logger(__name__).warning(event, key=key, **kw)
    return True
