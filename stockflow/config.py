from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    app_name: str = "stockflow"

    # Hosted backend (PostgREST + RPC + auth)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    http_timeout: float = 30.0

    # Persisted local stores (current organization, dismissed tasks)
    storage_dir: str = "data/local-state"

    # Query cache: stale times in seconds
    stale_time_realtime: float = 30.0        # products, movements, dashboard stats
    stale_time_moderate: float = 60.0        # aggregated stats, summaries
    stale_time_slow: float = 300.0           # categories, organizations, evolution charts
    query_retry: int = 1
    query_retry_delay: float = 1.0

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore, outbound HTTP
    log_level_cache: str = "WARNING"         # QueryCache reads, writes, invalidations
    log_level_mutations: str = "INFO"        # Mutation lifecycle (optimistic, rollback, invalidate)

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
