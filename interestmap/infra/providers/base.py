# ============================================================
# Module : interestmap/infra/providers/base.py
# Objet  : Interface commune des adaptateurs de fournisseurs de contenu.
# Invariants :
#  - `fetch` ne doit pas lever pour une erreur attendue: elle est retournée dans `error`.
#  - Les identifiants d'éléments sont de la forme "{provider}:{id natif}".
# ============================================================
"""Interface minimale d'un fournisseur et utilitaires partagés."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from interestmap.domain.content_types import Interest, ProviderFetchResult, ProviderId, ProviderRequest

_SPACES_RE = re.compile(r"\s+")


class ContentProvider(ABC):
    """Adaptateur de fournisseur.

    Attributs à définir :
      - id : identifiant du fournisseur
      - ttl_seconds : durée de validité du cache pour ce fournisseur
    """

    id: ProviderId
    ttl_seconds: int

    @abstractmethod
    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Récupère et normalise les éléments pour la requête."""
        raise NotImplementedError

    def get_hash_input(self, request: ProviderRequest) -> dict[str, Any] | None:
        """Entrée de hash spécifique; None pour utiliser la dérivation par défaut."""
        return None

    def item_id(self, native_id: str) -> str:
        """Identifiant composite stable d'un élément."""
        return f"{self.id.value}:{native_id}"


class HttpProvider(ContentProvider):
    """Fournisseur adossé à un client httpx asynchrone (injectable pour les tests)."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout_s: float = 12.0) -> None:
        """Initialise avec un client partagé ou en crée un à la demande."""
        self._client = client
        self.timeout_s = timeout_s

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = httpx.Timeout(self.timeout_s, connect=5.0)
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
            self._client = httpx.AsyncClient(timeout=timeout, limits=limits, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        """Ferme le client HTTP s'il a été créé."""
        if self._client is not None:
            await self._client.aclose()


def unique_ids(ids: list[str]) -> list[str]:
    """Déduplique en conservant l'ordre et en retirant les valeurs vides."""
    return list(dict.fromkeys(i for i in ids if i))


def clamp_limit(limit: int | None, default: int, low: int, high: int) -> int:
    """Borne la limite demandée à [low, high] (défaut si absente)."""
    value = default if limit is None else limit
    return max(low, min(value, high))


def normalize_space(value: str) -> str:
    """Compacte les espaces."""
    return _SPACES_RE.sub(" ", value).strip()


def norm(value: str | None) -> str:
    """Forme de comparaison: sans espaces de bord, en minuscules."""
    return (value or "").strip().lower()


def truncate(value: str | None, max_length: int) -> str | None:
    """Tronque avec une ellipse finale."""
    if not value:
        return None
    if len(value) <= max_length:
        return value
    return f"{value[: max_length - 1].rstrip()}…"


def keyword_query(interest: Interest | None) -> str:
    """Requête: titre de l'intérêt et jusqu'à deux synonymes."""
    if interest is None:
        return ""
    words = [w.strip() for w in [interest.title, *interest.synonyms[:2]] if w and w.strip()]
    return normalize_space(" ".join(words)) or interest.title.strip()
