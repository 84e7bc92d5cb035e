"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
Copy ``.env.example`` to ``.env`` and adjust values for your environment.
"""

import os

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Requests slower than this are logged at WARNING instead of DEBUG.
SLOW_REQUEST_WARN_MS: int = int(os.getenv("SLOW_REQUEST_WARN_MS", "1000"))

# ---------------------------------------------------------------------------
# Recommendation engine
# ---------------------------------------------------------------------------

MAX_RECOMMENDATIONS: int = 10      # default size of a contextual bundle
CONTENT_SHARE: float = 0.4         # content slots = ceil(max * share)
PEER_SHARE: float = 0.3            # peer slots = ceil(max * share)

# The AI contextual suggestion is only consulted once a user has recorded
# at least this many interactions.
LEARNING_THRESHOLD: int = int(os.getenv("LEARNING_THRESHOLD", "10"))

# ---------------------------------------------------------------------------
# Collaborator fetches
# ---------------------------------------------------------------------------

# Per-call timeout for history, peer and AI fetches.  On expiry the
# rule-based path is used instead.
SOURCE_TIMEOUT_SECONDS: float = float(os.getenv("SOURCE_TIMEOUT_SECONDS", "8"))

# Thread pool size for parallel collaborator fetches.
FETCH_MAX_WORKERS: int = int(os.getenv("FETCH_MAX_WORKERS", "8"))

MOOD_HISTORY_LIMIT: int = 50
JOURNAL_HISTORY_LIMIT: int = 30
INTERACTION_WINDOW: int = 50

# ---------------------------------------------------------------------------
# Recommendation cache
# ---------------------------------------------------------------------------

CACHE_BUCKET_SECONDS: int = 300    # 5-minute key buckets
CACHE_MAX_AGE_SECONDS: int = 3600  # entries older than this are never served

# How often (seconds) the background sweep evicts stale entries.
CACHE_SWEEP_INTERVAL_SECONDS: int = int(
    os.getenv("CACHE_SWEEP_INTERVAL_SECONDS", "600")
)
