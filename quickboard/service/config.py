"""Board service settings loaded from the environment."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "default-secret-key"


class Settings(BaseSettings):
    """Settings read from ``QUICKBOARD_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="QUICKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret_key: str = Field(default=DEFAULT_SECRET_KEY, description="Token signing key")
    database_path: Path = Field(
        default=Path("data") / "quickboard.db",
        description="SQLite file holding users and boards",
    )
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8765, description="Port to bind to")
    token_ttl_hours: int = Field(default=24, ge=1, description="Session token lifetime")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY


@lru_cache
def get_settings() -> Settings:
    return Settings()
