"""High level orchestration used by the HTTP routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import Settings
from ..models import Category, ContentItem, PaginatedResult, SourceConfig
from .aggregator import ContentAggregator
from .source_store import SourceStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SourceSelection:
    """Sources in effect for a request plus the active source id."""

    sources: list[SourceConfig]
    active_source_id: str | None


class CatalogService:
    """Resolves the source configuration and delegates to the aggregator."""

    def __init__(
        self,
        settings: Settings,
        aggregator: ContentAggregator,
        store: SourceStore,
    ) -> None:
        self._settings = settings
        self._aggregator = aggregator
        self._store = store

    async def get_selection(self) -> SourceSelection:
        """Stored sources win; environment defaults apply until something is saved."""

        stored = await self._store.get_sources()
        sources = stored if stored is not None else list(self._settings.catalog_sources)
        active = await self._store.get_active_source_id()
        if active is None:
            active = self._settings.active_source_id
        return SourceSelection(sources=sources, active_source_id=active)

    async def update_selection(
        self,
        sources: Sequence[SourceConfig],
        active_source_id: str | None,
    ) -> SourceSelection:
        await self._store.save_sources(sources)
        await self._store.set_active_source_id(active_source_id)
        logger.info(
            "Saved %s sources (active: %s)", len(sources), active_source_id or "none"
        )
        return SourceSelection(sources=list(sources), active_source_id=active_source_id)

    async def list_categories(self) -> list[Category]:
        selection = await self.get_selection()
        return await self._aggregator.fetch_categories(
            selection.sources, selection.active_source_id
        )

    async def list_content(
        self,
        *,
        page: int = 1,
        category_id: str | None = None,
        search_term: str | None = None,
    ) -> PaginatedResult:
        selection = await self.get_selection()
        return await self._aggregator.fetch_page(
            selection.sources,
            selection.active_source_id,
            page=page,
            category_id=category_id,
            search_term=search_term,
        )

    async def all_content(self) -> list[ContentItem]:
        selection = await self.get_selection()
        return await self._aggregator.fetch_all(selection.sources)

    async def get_content(self, item_id: str) -> ContentItem | None:
        selection = await self.get_selection()
        return await self._aggregator.fetch_by_id(
            selection.sources, selection.active_source_id, item_id
        )
