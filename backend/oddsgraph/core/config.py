import os
from functools import lru_cache
from typing import Mapping
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DATABASE_URL_PLACEHOLDER = "REPLACE_WITH_STRONG_DB_PASSWORD"

SUPPORTED_ODDS_FORMATS = ("american", "decimal", "hongkong")


def resolve_database_url(
    *,
    database_url: str | None,
    postgres_user: str | None,
    postgres_password: str | None,
    postgres_host: str | None = "db",
    postgres_port: int | str | None = "5432",
    postgres_db: str | None = "oddsgraph",
) -> tuple[str, str]:
    raw_database_url = (database_url or "").strip()
    if raw_database_url and DATABASE_URL_PLACEHOLDER not in raw_database_url:
        return raw_database_url, "env"

    user = quote_plus((postgres_user or "oddsgraph").strip())
    password = quote_plus((postgres_password or "oddsgraph").strip())
    host = (postgres_host or "db").strip() or "db"
    port = str(postgres_port or "5432").strip() or "5432"
    db_name = (postgres_db or "oddsgraph").strip() or "oddsgraph"
    constructed = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
    return constructed, "postgres_fallback"


def resolve_database_url_from_env(
    env: Mapping[str, str] | None = None,
    *,
    default_database_url: str | None = None,
) -> tuple[str, str]:
    source_env = os.environ if env is None else env
    database_url = source_env.get("DATABASE_URL", default_database_url or "")
    return resolve_database_url(
        database_url=database_url,
        postgres_user=source_env.get("POSTGRES_USER"),
        postgres_password=source_env.get("POSTGRES_PASSWORD"),
        postgres_host=source_env.get("POSTGRES_HOST", "db"),
        postgres_port=source_env.get("POSTGRES_PORT", "5432"),
        postgres_db=source_env.get("POSTGRES_DB", "oddsgraph"),
    )


def _split_csv(raw: str) -> list[str]:
    return [v.strip() for v in raw.split(",") if v.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @model_validator(mode="after")
    def _check_schedule_bounds(self) -> "Settings":
        if not 0 <= self.odds_archive_hour_utc <= 23:
            raise ValueError("ODDS_ARCHIVE_HOUR_UTC must be between 0 and 23")
        if not 0 <= self.odds_archive_minute_utc <= 59:
            raise ValueError("ODDS_ARCHIVE_MINUTE_UTC must be between 0 and 59")
        return self

    app_env: str = "development"
    app_name: str = "oddsgraph"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    cors_origins: str = "http://localhost:3000"

    database_url: str = ""
    postgres_user: str = "oddsgraph"
    postgres_password: str = "oddsgraph"
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_db: str = "oddsgraph"
    redis_url: str = "redis://redis:6379/0"

    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.1

    odds_api_key: str = ""
    odds_api_base_url: str = "https://api.the-odds-api.com/v4"
    odds_api_timeout_seconds: float = 25.0
    odds_api_retry_attempts: int = 3
    odds_api_retry_backoff_seconds: float = 1.0
    odds_api_retry_backoff_max_seconds: float = 8.0
    odds_api_circuit_failures_to_open: int = 3
    odds_api_circuit_open_seconds: int = 120

    odds_ingestion_enabled: bool = True
    odds_refresh_interval_seconds: int = 600
    odds_refresh_lock_seconds: int = 300
    odds_archive_hour_utc: int = 4
    odds_archive_minute_utc: int = 0
    odds_archive_days: int = 7
    odds_default_sport_key: str = "basketball_nba"
    odds_default_regions: str = "us"
    odds_default_markets: str = "h2h,spreads,totals"

    cheat_sheet_max_events: int = 10
    cheat_sheet_concurrency: int = 4
    cheat_sheet_budget_seconds: float = 45.0

    positive_ev_min_books: int = 3
    positive_ev_min_edge_percent: float = 0.0

    @property
    def cors_origins_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    @property
    def odds_default_regions_list(self) -> list[str]:
        return _split_csv(self.odds_default_regions) or ["us"]

    @property
    def odds_default_markets_list(self) -> list[str]:
        return _split_csv(self.odds_default_markets) or ["h2h", "spreads", "totals"]

    @property
    def odds_api_configured(self) -> bool:
        return bool(self.odds_api_key.strip())

    @property
    def resolved_database_url(self) -> str:
        url, _source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return url

    @property
    def resolved_database_url_source(self) -> str:
        _url, source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return source


@lru_cache
def get_settings() -> Settings:
    return Settings()
