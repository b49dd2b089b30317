"""Hiérarchie d'exceptions du moteur de contenu.

Les conditions récupérables (fournisseur en erreur, LLM indisponible) sont dégradées
localement; ces exceptions ne remontent jamais jusqu'à l'appelant de `get_content`.
"""


class ContentEngineError(Exception):
    """Erreur de base du moteur de recommandation."""


class CatalogUnavailableError(ContentEngineError):
    """Le catalogue durable est injoignable ou l'écriture a échoué."""


class ExternalServiceError(ContentEngineError):
    """Échec d'un service externe (embeddings, LLM, fournisseur) après retries."""


class RerankParseError(ContentEngineError):
    """Réponse LLM invalide (JSON ou schéma) pour un lot de rerank."""
