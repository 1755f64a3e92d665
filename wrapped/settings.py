from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Cache settings left as `None` keep entries for the process lifetime.
    """

    github_graphql_url: str = "https://api.github.com/graphql"
    github_timeout_seconds: float = 20.0
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60
    stats_cache_ttl_seconds: float | None = None
    stats_cache_max_entries: int | None = None
    stats_cache_retry_failed: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
