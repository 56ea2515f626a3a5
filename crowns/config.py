"""
Settings - Runtime configuration loaded from the environment.

Every field can be overridden with a `CROWNS_` prefixed variable or a `.env`
file, e.g.:

    CROWNS_DATA_DIR=/var/lib/five-crowns
    CROWNS_STORAGE=memory
    CROWNS_ALLOWED_ORIGINS=http://localhost:3000,http://localhost:8080
"""

from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CROWNS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = "development"

    # Where JsonFileStore keeps one <slot>.json per slot
    data_dir: Path = Path.home() / ".five-crowns"
    storage: Literal["file", "memory"] = "file"

    log_dir: Path | None = None
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: str = "*"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def origins(self) -> list[str]:
        """CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
