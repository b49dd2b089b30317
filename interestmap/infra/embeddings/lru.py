"""Cache LRU borné en mémoire pour les vecteurs d'embedding.

Injecté dans l'embedder à la construction; chaque instance est isolée (pas d'état global).
"""

from __future__ import annotations

from collections import OrderedDict


class EmbeddingLRU:
    """Cache LRU `model:text -> vecteur` de capacité fixe."""

    def __init__(self, capacity: int = 128) -> None:
        """Initialise un cache vide; une capacité <= 0 désactive le cache."""
        self.capacity = capacity
        self._data: OrderedDict[str, list[float]] = OrderedDict()

    @staticmethod
    def key(model: str, text: str) -> str:
        """Clé de cache pour un couple (modèle, texte)."""
        return f"{model}:{text}"

    def get(self, key: str) -> list[float] | None:
        """Retourne le vecteur et le marque comme récemment utilisé."""
        vector = self._data.get(key)
        if vector is None:
            return None
        self._data.move_to_end(key)
        return vector

    def put(self, key: str, vector: list[float]) -> None:
        """Insère un vecteur et évince le plus ancien au-delà de la capacité."""
        if self.capacity <= 0:
            return
        self._data[key] = vector
        self._data.move_to_end(key)
        while len(self._data) > self.capacity:
            self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
