"""Interface de base pour les modèles de langage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LLM(ABC):
    """Interface abstraite pour les modèles de langage."""

    model: str

    @abstractmethod
    async def generate(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        """Génère une réponse texte à partir d'une liste de messages."""
        ...
