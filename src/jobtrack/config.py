from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JOBTRACK_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = "JobTrack"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8788
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./data/jobtrack.db"
    data_dir: Path = Path("./data")
    resume_dir: Path = Path("./data/resumes")
    preferences_path: Path = Path("./data/preferences.json")

    # Single-user identity; empty means the session is not authenticated.
    user_id: str = "local-user"

    default_currency: str = "USD"
    max_resume_bytes: int = 2 * 1024 * 1024
    skill_suggest_debounce_ms: int = 250
    persist_settings: bool = True

    cors_origins: str = "http://127.0.0.1:8788"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError("default_currency must be a three-letter currency code")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def sync_database_url(self) -> str:
        return self.database_url.replace("+aiosqlite", "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
