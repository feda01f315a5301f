import os
from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


TMDB_API_KEY = os.getenv("TMDB_API_KEY", "")
TMDB_TIMEOUT = _float_env("TMDB_TIMEOUT", 8.0)
TMDB_MAX_RETRIES = max(0, _int_env("TMDB_MAX_RETRIES", 2))
TMDB_RATE_PER_SEC = _float_env("TMDB_RATE_PER_SEC", 20.0)

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_TIMEOUT = _float_env("GEMINI_TIMEOUT", 20.0)

# Recency scoring and "latest" windows are anchored here, not on the clock.
RECENCY_ANCHOR_YEAR = _int_env("RECENCY_ANCHOR_YEAR", 2025)
PIPELINE_TIMEOUT = _float_env("PIPELINE_TIMEOUT", 25.0)
DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "en-US")
