"""Pydantic models describing the canonical content model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import looks_playable

ContentKind = Literal["movie", "series"]


class PlaybackEntry(BaseModel):
    """One watchable unit: a display name and a resolvable stream URL."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    url: str

    @field_validator("url")
    @classmethod
    def _require_playable_url(cls, value: str) -> str:
        if not looks_playable(value):
            raise ValueError(f"Not a resolvable stream reference: {value!r}")
        return value


class PlaybackSourceGroup(BaseModel):
    """A named line/route offering one or more playable entries."""

    model_config = ConfigDict(frozen=True)

    source_name: str = Field(min_length=1)
    urls: tuple[PlaybackEntry, ...] = Field(min_length=1)


class ContentItem(BaseModel):
    """Normalized representation of one movie or series."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    poster_url: str
    backdrop_url: str
    cast: tuple[str, ...] = ()
    director: tuple[str, ...] = ()
    rating: float | None = Field(default=None, ge=0, le=10)
    genres: tuple[str, ...] = ()
    release_year: int | None = None
    runtime: str | None = None
    kind: ContentKind = "movie"
    available_qualities: tuple[str, ...] | None = None
    playback_sources: tuple[PlaybackSourceGroup, ...] | None = None

    def group(self, index: int) -> PlaybackSourceGroup:
        """Return the playback group at ``index`` or raise ``IndexError``."""

        groups = self.playback_sources or ()
        if index < 0 or index >= len(groups):
            raise IndexError(f"Playback group {index} out of range for {self.id}")
        return groups[index]


class PaginatedResult(BaseModel):
    """One page of catalog results as reported by a source."""

    items: list[ContentItem] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    page_count: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    total: int = Field(default=0, ge=0)

    @classmethod
    def empty(cls) -> "PaginatedResult":
        return cls()


class Category(BaseModel):
    """Upstream catalog category; ``all`` means no filter."""

    id: str
    name: str


class SourceConfig(BaseModel):
    """A configured upstream catalog source."""

    id: str = Field(min_length=1)
    name: str = ""
    url: str = Field(min_length=1)

    @field_validator("id", "url", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    def label(self) -> str:
        return self.name.strip() or self.url
