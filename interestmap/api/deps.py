"""Dépendances partagées pour les routes de l'API.

Les routes obtiennent le moteur et le stockage via ces fonctions, ce qui permet aux tests de les
remplacer par `app.dependency_overrides`.
"""

from sqlalchemy.engine import Engine

from interestmap.core.container import container
from interestmap.services.content_engine import ContentEngine


def get_content_engine() -> ContentEngine:
    """Moteur de contenu du conteneur."""
    return container.engine


def get_store() -> Engine | None:
    """Moteur SQLAlchemy (None si aucun stockage n'est configuré)."""
    return container.db


def get_default_locale() -> str:
    """Locale appliquée quand la requête n'en précise pas."""
    return container.settings.DEFAULT_LOCALE
