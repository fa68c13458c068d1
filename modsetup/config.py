"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Admin credentials come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - worker_config() is the mapping setup() consumes: server + admin.user/pass

Design Decisions:
    - MODSETUP_ prefix: worker hosts share environments with other services
    - Defaults provided for all non-secret settings: works against a local CouchDB
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Worker host settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MODSETUP_", env_file=".env", case_sensitive=False,
    )

    # Document store
    couch_url: str = "http://localhost:5984"
    couch_admin_user: str = "admin"
    couch_admin_pass: str = ""
    couch_timeout_seconds: float = 30.0

    @field_validator("couch_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def worker_config(self) -> dict:
        """Fresh config mapping handed to setup(worker, config)."""
        return {
            "server": self.couch_url,
            "admin": {
                "user": self.couch_admin_user,
                "pass": self.couch_admin_pass,
            },
            "timeout_seconds": self.couch_timeout_seconds,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
