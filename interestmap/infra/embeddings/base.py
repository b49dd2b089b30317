"""
Interface de base pour les générateurs d'embeddings.

Ce module définit l'interface abstraite que doivent implémenter tous les générateurs d'embeddings
vectoriels utilisés par le moteur de contenu.
"""

from abc import ABC, abstractmethod


class Embeddings(ABC):
    """Interface abstraite pour les générateurs d'embeddings."""

    model: str

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float] | None]:
        """Génère un vecteur par texte, dans l'ordre; None pour un texte non calculé."""
        ...

    async def embed_one(self, text: str) -> list[float] | None:
        """Raccourci pour un texte unique."""
        vectors = await self.embed([text])
        return vectors[0] if vectors else None
