"""Paramètres du moteur de contenu chargés depuis l'environnement.

- Un seul modèle `Settings` (pydantic-settings), lu à la composition du conteneur.
- Fichier `.env` retenu: `ENV_FILE` s'il est défini, sinon `.env.{APP_ENV}` s'il existe, sinon `.env`.
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def resolve_env_file(cwd: Path | None = None) -> Path:
    """Chemin du fichier `.env` à charger (il peut ne pas exister)."""
    explicit = os.getenv("ENV_FILE")
    if explicit:
        return Path(explicit)
    base = cwd or Path.cwd()
    specific = base / f".env.{os.getenv('APP_ENV', 'dev')}"
    return specific if specific.exists() else base / ".env"


class Settings(BaseSettings):
    """Configuration du service (variables d'environnement prioritaires sur le `.env`)."""

    model_config = SettingsConfigDict(
        env_file=resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "interestmap-content"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Stockage durable (catalogue, embeddings, feedback, cache SQL)
    DATABASE_URL: str | None = None
    REDIS_URL: str | None = None
    # "auto" | "sql" | "redis" | "none"
    CACHE_BACKEND: str = "auto"

    # Embeddings / LLM (compatibles OpenAI)
    OPENAI_API_KEY: str | None = None
    EMBEDDINGS_API_KEY: str | None = None
    LLM_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    EMBEDDINGS_MODEL: str = "text-embedding-3-small"
    LLM_MODEL: str = "gpt-4o-mini"
    EMBEDDINGS_TIMEOUT_S: float = 12.0
    LLM_TIMEOUT_S: float = 15.0
    EXTERNAL_MAX_RETRIES: int = 2
    EMBEDDING_LRU_CAPACITY: int = 128

    # Fournisseurs de contenu
    YOUTUBE_API_KEY: str | None = None
    PROVIDER_TIMEOUT_S: float = 12.0
    PROVIDER_CONCURRENCY: int = 3
    DEFAULT_LOCALE: str = "ru"

    def embeddings_key(self) -> str | None:
        """Clé effective pour les embeddings (clé dédiée puis clé OpenAI)."""
        return self.EMBEDDINGS_API_KEY or self.OPENAI_API_KEY

    def llm_key(self) -> str | None:
        """Clé effective pour le LLM de rerank (clé dédiée puis clé OpenAI)."""
        return self.LLM_API_KEY or self.OPENAI_API_KEY


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
