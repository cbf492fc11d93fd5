import os
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_database_url() -> str:
    user = os.getenv("POSTGRES_USER", "tvguide")
    password = os.getenv("POSTGRES_PASSWORD", "tvguide")
    db = os.getenv("POSTGRES_DB", "tvguide")
    return f"postgresql+psycopg2://{user}:{password}@db:5432/{db}"


class Settings(BaseSettings):
    database_url: str = Field(default_factory=_default_database_url, alias="DATABASE_URL")
    redis_url: str = Field(default="redis://redis:6379/0", alias="REDIS_URL")
    allowed_origins: str = Field(default="*", alias="ALLOWED_ORIGINS")  # Comma-separated origins
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Upstream response cache: "memory" (per process) or "redis" (shared between workers)
    cache_backend: str = Field(default="memory", alias="CACHE_BACKEND")
    cache_ttl_seconds: int = Field(default=300, alias="CACHE_TTL_SECONDS")
    cache_max_entries: int = Field(default=100, alias="CACHE_MAX_ENTRIES")

    # TMDB
    tmdb_api_key: str = Field(default="", alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3", alias="TMDB_BASE_URL")
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    watch_region: str = Field(default="US", alias="WATCH_REGION")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # JustWatch (unofficial GraphQL API, non-commercial use)
    justwatch_url: str = Field(default="https://apis.justwatch.com/graphql", alias="JUSTWATCH_URL")
    justwatch_language: str = Field(default="en", alias="JUSTWATCH_LANGUAGE")

    # LLM synopses (Ollama-compatible generate API)
    llm_enabled: bool = Field(default=True, alias="LLM_ENABLED")
    llm_api_base: str = Field(default="http://ollama:11434", alias="LLM_API_BASE")
    llm_model: str = Field(default="phi3.5:3.8b-mini-instruct-q4_K_M", alias="LLM_MODEL")
    llm_timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")

    # Week view
    household_timezone: str = Field(default="UTC", alias="HOUSEHOLD_TIMEZONE")  # IANA name; decides which weekday is "today"
    enrichment_batch_size: int = Field(default=20, alias="ENRICHMENT_BATCH_SIZE")
    schedule_start_hour: int = Field(default=18, alias="SCHEDULE_START_HOUR")  # 6 PM
    pixels_per_minute: float = Field(default=2.0, alias="PIXELS_PER_MINUTE")
    default_tv_runtime: int = Field(default=30, alias="DEFAULT_TV_RUNTIME")
    default_movie_runtime: int = Field(default=120, alias="DEFAULT_MOVIE_RUNTIME")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()
