from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Arena God Tracker"
    debug: bool = False

    # Local persistence store (single writer, one device)
    database_url: str = "sqlite+aiosqlite:///./arenagod.db"

    # Upstream match-data API
    riot_api_token: str = ""
    riot_api_base: str = "https://{continent}.api.riotgames.com"
    arena_queue_id: int = 1700
    request_timeout: float = 10.0

    # Rate-limit retry wrapper
    max_retry_attempts: int = 5
    retry_base_delay: float = 1.0

    # Batch scheduling against the upstream quota (N requests per T seconds)
    batch_size: int = 10
    requests_per_window: int = 100
    rate_window_seconds: float = 120.0
    min_batch_delay: float = 1.2

    # Candidate discovery
    match_page_size: int = 100
    backfill_months: int = 24


settings = Settings()


# =============================================================================
# SYNC CONSTANTS
# =============================================================================

# Length of one backfill time window ("month-long")
BACKFILL_WINDOW_SECONDS = 30 * 24 * 60 * 60

# Version tag written with every cached match detail row.
# Bump when the cached payload shape changes.
CACHE_SCHEMA_VERSION = 1
