"""Application configuration for the skill-exchange API."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    database_url: str = Field(default="sqlite+aiosqlite:///./skillswap.db")
    database_echo: bool = Field(default=False)
    database_create_all: bool = Field(default=True)

    jwt_secret: str = Field(default="change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_audience: str | None = Field(default=None)
    jwt_leeway_seconds: int = Field(default=0, ge=0)

    socketio_path: str = Field(default="socket.io")
    socketio_cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])

    page_default_limit: int = Field(default=10, ge=1)
    page_max_limit: int = Field(default=100, ge=1)

    @field_validator("cors_allow_origins", "socketio_cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for origin lists."""

        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("database_url", mode="before")
    @classmethod
    def _async_driver(cls, value: object) -> object:
        """Hosted Postgres hands out postgresql:// URLs; the engine needs asyncpg."""

        if isinstance(value, str) and value.startswith("postgresql://"):
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
