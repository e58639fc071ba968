"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="BaskLight", alias="APP_NAME")

    document_store_url: HttpUrl = Field(
        default="https://firestore.example.invalid/v1", alias="DOCUMENT_STORE_URL"
    )
    document_store_api_key: str | None = Field(
        default=None, alias="DOCUMENT_STORE_API_KEY"
    )
    request_timeout_seconds: float = Field(
        default=15.0, alias="REQUEST_TIMEOUT", gt=0, le=120
    )

    page_size: int = Field(default=16, alias="PAGE_SIZE", ge=1, le=100)
    featured_movie_limit: int = Field(
        default=6, alias="FEATURED_MOVIE_LIMIT", ge=0, le=50
    )
    featured_song_limit: int = Field(
        default=4, alias="FEATURED_SONG_LIMIT", ge=0, le=50
    )

    ad_skip_seconds: int = Field(default=5, alias="AD_SKIP_SECONDS", ge=0, le=60)
    default_volume: float = Field(default=0.7, alias="DEFAULT_VOLUME", ge=0.0, le=1.0)

    @field_validator("document_store_api_key", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
