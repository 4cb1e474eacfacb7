"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "clan-diary-api"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origin: str = "*"

    # Database
    database_path: str = "./data/diaries.db"

    # Authorization
    # Clan ranks: GUEST=-1, FRIEND=0, RECRUIT=10, CORPORAL=20, SERGEANT=30,
    # LIEUTENANT=40, CAPTAIN=50, GENERAL=60, ADMIN=100, DEPUTY_OWNER=125, OWNER=127
    min_admin_rank: int = 0
    owner_rank: int = 127

    # Message of the day
    motd_max_length: int = 500

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_window_ms: int = 900_000
    rate_limit_max_requests: int = 100
    rate_limit_storage_uri: str = "memory://"

    # Logging
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """SQLAlchemy async URL for the SQLite store."""
        return f"sqlite+aiosqlite:///{self.database_path}"

    @property
    def rate_limit(self) -> str:
        """Limit string in slowapi format, e.g. "100/900 seconds"."""
        window_seconds = max(self.rate_limit_window_ms // 1000, 1)
        return f"{self.rate_limit_max_requests}/{window_seconds} seconds"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
