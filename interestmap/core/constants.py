"""Constantes du moteur de recommandation pour éviter les valeurs magiques.

Ce module regroupe les seuils, poids et limites partagés par les étapes du pipeline
(cache, retrieval sémantique, rerank, diversité, service).
"""

# Codes HTTP utilisés par les adaptateurs fournisseurs
HTTP_OK = 200
HTTP_ACCEPTED = 202
HTTP_TOO_MANY_REQUESTS = 429

# Requête d'entrée
MIN_LIMIT = 1
MAX_LIMIT = 20
DEFAULT_LIMIT = 20
DEFAULT_MODE = "all"
CACHE_KEY_VERSION = 1

# Retrieval sémantique
DEFAULT_TOP_K = 60
TOP_K_MULTIPLIER = 3

# Rerank
RERANK_BATCH_SIZE = 10
RERANK_TEMPERATURE = 0.2
RERANK_MAX_TOKENS = 800
HEURISTIC_BASE_SCORE = 0.4
HEURISTIC_ONTOPIC_BONUS = 0.3
HEURISTIC_AD_PENALTY = 0.2
AD_PATTERNS = (
    "вебинар",
    "митап",
    "регистрация",
    "скидка",
    "купон",
    "приглашаем",
    "промокод",
)
BLACKLIST_DOMAINS = ("t.me/joinchat", "meetup", "eventbrite", "webinar")

# Score final
RERANK_WEIGHT = 0.7
RECENCY_MAX_BOOST = 0.2
RECENCY_WINDOW_DAYS = 90
PROVIDER_HINTS = {"youtube": 0.05, "telegram": 0.05, "articles": 0.08}
DEFAULT_PROVIDER_HINT = 0.03

# Diversité
DIVERSITY_PROVIDER_MAX_STREAK = 2
DIVERSITY_CHANNEL_MAX_STREAK = 1

# Embeddings
EMBEDDING_TEXT_MAX_CHARS = 2000
EMBEDDING_BATCH_SIZE = 64

# Explications "why"
WHY_MAX_LENGTH = 120

# Backoff des appels externes
RETRY_BASE_DELAY = 0.25
RETRY_RANDOM_FACTOR = 0.1
