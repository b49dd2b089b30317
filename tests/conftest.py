"""Configuration de test pour pytest avec gestion des chemins.

Ajoute la racine du projet au sys.path (imports `interestmap...` et `tests.fakes`) et fournit
une base SQLite en mémoire initialisée avec quelques intérêts.
"""

import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from interestmap.infra.repo.db import get_engine, init_db, session_scope  # noqa: E402
from interestmap.infra.repo.interest_repo import InterestRepo  # noqa: E402
from tests.fakes import SEED_INTERESTS  # noqa: E402


@pytest.fixture
def db():
    """Moteur SQLite en mémoire avec toutes les tables créées."""
    engine = get_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_db(db):
    """Base en mémoire contenant les intérêts de référence."""
    with session_scope(db) as session:
        repo = InterestRepo(session)
        for interest in SEED_INTERESTS:
            repo.save(interest)
    return db


@pytest.fixture
def broken_db():
    """Moteur sans tables: toute requête échoue."""
    engine = get_engine("sqlite+pysqlite:///:memory:")
    yield engine
    engine.dispose()
