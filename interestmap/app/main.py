"""
Application principale FastAPI.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter le middleware Prometheus
- Monter les routers (santé, contenu, métriques)
- Lancer uvicorn (`run`, script `interestmap-content`)
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from interestmap.api.routes_content import router as content_router
from interestmap.api.routes_health import router as health_router
from interestmap.app.metrics import PrometheusMiddleware, metrics_router
from interestmap.core.container import container
from interestmap.core.logging import setup_logging


def create_app() -> FastAPI:
    """Construit et retourne l'application FastAPI prête à l'usage."""
    settings = container.settings
    setup_logging(settings.LOG_LEVEL, json_logs=settings.APP_ENV not in ("dev", "test"))
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.include_router(health_router)
    app.include_router(content_router)
    app.include_router(metrics_router)
    return app


app = create_app()


def run() -> None:
    """Lance le serveur uvicorn sur l'hôte et le port configurés."""
    settings = container.settings
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, reload=False)


if __name__ == "__main__":
    run()
