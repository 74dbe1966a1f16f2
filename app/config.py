"""Application configuration models."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Iterable, Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models import SourceConfig


# Upstream category ids that conventionally hold series (TV, anime, variety).
DEFAULT_SERIES_TYPE_IDS: frozenset[int] = frozenset({2, 3, 4, *range(10, 51)})


def parse_type_id_ranges(value: object) -> frozenset[int]:
    """Parse ``"2,3,4,10-50"`` style selections into a set of ids."""

    if value is None:
        return DEFAULT_SERIES_TYPE_IDS
    if isinstance(value, str):
        raw_values = [part.strip() for part in value.split(",")]
    elif isinstance(value, Iterable):
        raw_values = [str(part).strip() for part in value]
    else:
        raise TypeError("SERIES_TYPE_IDS must be a string or iterable")

    ids: set[int] = set()
    for entry in raw_values:
        if not entry:
            continue
        start, sep, end = entry.partition("-")
        try:
            if sep:
                low, high = int(start), int(end)
                if low > high:
                    raise ValueError
                ids.update(range(low, high + 1))
            else:
                ids.add(int(entry))
        except ValueError as exc:
            raise ValueError(f"Invalid series type id entry: {entry!r}") from exc
    if not ids:
        return DEFAULT_SERIES_TYPE_IDS
    return frozenset(ids)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="CinemaView", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    catalog_sources: Annotated[tuple[SourceConfig, ...], NoDecode] = Field(
        default=(), alias="CATALOG_SOURCES"
    )
    active_source_id: str | None = Field(default=None, alias="ACTIVE_SOURCE_ID")

    request_timeout_seconds: float = Field(
        default=15.0, alias="REQUEST_TIMEOUT", ge=1, le=120
    )
    connect_timeout_seconds: float = Field(
        default=5.0, alias="CONNECT_TIMEOUT", ge=1, le=60
    )

    series_type_ids: Annotated[frozenset[int], NoDecode] = Field(
        default=DEFAULT_SERIES_TYPE_IDS, alias="SERIES_TYPE_IDS"
    )
    placeholder_image_base: HttpUrl = Field(
        default="https://placehold.co", alias="PLACEHOLDER_IMAGE_BASE"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./cinemaview.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("catalog_sources", mode="before")
    @classmethod
    def _parse_catalog_sources(cls, value: object) -> object:
        """Accept a JSON document as well as already decoded lists."""

        if value is None:
            return ()
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return ()
            try:
                return json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError("CATALOG_SOURCES must be a JSON list") from exc
        return value

    @field_validator("series_type_ids", mode="before")
    @classmethod
    def _parse_series_type_ids(cls, value: object) -> frozenset[int]:
        return parse_type_id_ranges(value)

    @field_validator("active_source_id", mode="before")
    @classmethod
    def _blank_active_source(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def placeholder_base(self) -> str:
        return str(self.placeholder_image_base).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
