"""
Métriques Prometheus pour le service de contenu.

Ce module définit les compteurs et histogrammes du pipeline de recommandation (fournisseurs,
cache, replis du moteur, rerank, embeddings) ainsi que les métriques HTTP et la route `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Pipeline de contenu
CONTENT_REQUESTS = Counter(
    "content_requests_total",
    "Total content engine requests",
    ["path"],
)
CONTENT_PROVIDER_FETCH_SECONDS = Histogram(
    "content_provider_fetch_seconds",
    "Latency of provider fetches (cache misses only)",
    ["provider"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 12.0],
)
CONTENT_PROVIDER_ERRORS = Counter(
    "content_provider_errors_total",
    "Provider fetches that ended with an error",
    ["provider"],
)
CONTENT_CACHE_LOOKUPS = Counter(
    "content_cache_lookups_total",
    "Provider cache lookups",
    ["provider", "result"],
)
CONTENT_ENGINE_FALLBACKS = Counter(
    "content_engine_fallbacks_total",
    "Requests served by the legacy provider merge",
    ["reason"],
)
CONTENT_RERANK_BATCHES = Counter(
    "content_rerank_batches_total",
    "Rerank batches by outcome",
    ["result"],
)
CONTENT_EMBEDDINGS_COMPUTED = Counter(
    "content_embeddings_computed_total",
    "Embeddings computed and persisted",
    ["kind"],
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte les requêtes et mesure leur latence par route."""

    async def dispatch(self, request: Request, call_next):
        """Traite la requête puis enregistre compteur et latence."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
