# ============================================================
# Module : interestmap/domain/cache_key.py
# Objet  : Clé de cache stable (JSON canonique + SHA-256) et fraîcheur TTL.
# Invariants :
#  - Deux entrées égales à l'ordre des clés près ont le même hash.
#  - L'ordre des tableaux est conservé.
# ============================================================
"""Calcul des clés de cache et de la fraîcheur des entrées."""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _plain(value: Any) -> Any:
    """Convertit récursivement modèles, enums et tuples en structures JSON natives."""
    if isinstance(value, BaseModel):
        return _plain(value.model_dump(mode="json"))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    return value


def stable_stringify(value: Any) -> str:
    """Sérialise en JSON canonique: clés d'objets triées, tableaux dans l'ordre."""
    return json.dumps(_plain(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def stable_hash(value: Any) -> str:
    """Empreinte SHA-256 (hex) du JSON canonique."""
    return hashlib.sha256(stable_stringify(value).encode("utf-8")).hexdigest()


def is_fresh(created_at: datetime, ttl_seconds: int, now: datetime | None = None) -> bool:
    """Indique si une entrée créée à `created_at` est encore valide.

    Valide ssi `now - created_at < ttl`; un TTL nul ou négatif n'est jamais frais.
    """
    if ttl_seconds <= 0:
        return False
    current = now or datetime.now(UTC)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    return current - created_at < timedelta(seconds=ttl_seconds)
