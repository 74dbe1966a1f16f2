"""Fan catalog queries out across configured sources and merge the results."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from ..models import Category, ContentItem, PaginatedResult, SourceConfig
from ..sample_catalog import (
    get_sample_categories,
    get_sample_item,
    get_sample_items,
    get_sample_page,
)
from .source_gateway import SourceGateway

logger = logging.getLogger(__name__)


def order_sources(
    sources: Sequence[SourceConfig], active_source_id: str | None
) -> list[SourceConfig]:
    """Return ``sources`` with the active source promoted to the front."""

    active = next((source for source in sources if source.id == active_source_id), None)
    if active is None:
        return list(sources)
    return [active, *(source for source in sources if source.id != active.id)]


def dedupe_items(items: Iterable[ContentItem]) -> list[ContentItem]:
    """Deduplicate by id; the last occurrence wins, first position is kept."""

    merged: dict[str, ContentItem] = {}
    for item in items:
        merged[item.id] = item
    return list(merged.values())


class ContentAggregator:
    """Combines several :class:`SourceGateway` lookups into one view."""

    def __init__(self, gateway: SourceGateway) -> None:
        self._gateway = gateway

    async def fetch_by_id(
        self,
        sources: Sequence[SourceConfig],
        active_source_id: str | None,
        item_id: str,
    ) -> ContentItem | None:
        """Try sources one at a time, active first, then the sample catalog."""

        for source in order_sources(sources, active_source_id):
            logger.info("Looking up item %s in source %s", item_id, source.label())
            item = await self._gateway.fetch_item(source.url, item_id)
            if item is not None:
                logger.info("Found item %s in source %s", item_id, source.label())
                return item

        logger.info("Item %s not in any configured source, trying sample data", item_id)
        return get_sample_item(item_id)

    async def fetch_all(self, sources: Sequence[SourceConfig]) -> list[ContentItem]:
        """Query page 1 of every source concurrently and merge the items."""

        if not sources:
            logger.warning("No sources configured, returning sample content")
            return get_sample_items()

        results = await asyncio.gather(
            *(self._gateway.query(source.url, page=1) for source in sources),
            return_exceptions=True,
        )

        combined: list[ContentItem] = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Error fetching content from source %s (%s): %s",
                    source.label(),
                    source.url,
                    result,
                )
                continue
            combined.extend(result.items)

        if not combined:
            logger.warning("All sources returned no content, returning sample content")
            return get_sample_items()

        unique = dedupe_items(combined)
        logger.info(
            "Combined content from %s sources into %s unique items",
            len(sources),
            len(unique),
        )
        return unique

    async def fetch_page(
        self,
        sources: Sequence[SourceConfig],
        active_source_id: str | None,
        *,
        page: int = 1,
        category_id: str | None = None,
        search_term: str | None = None,
    ) -> PaginatedResult:
        """Return one listing page from the active (or first) source."""

        ordered = order_sources(sources, active_source_id)
        if not ordered:
            return get_sample_page(page, category_id, search_term)
        return await self._gateway.query(
            ordered[0].url,
            page=page,
            category_id=category_id,
            search_term=search_term,
        )

    async def fetch_categories(
        self,
        sources: Sequence[SourceConfig],
        active_source_id: str | None,
    ) -> list[Category]:
        ordered = order_sources(sources, active_source_id)
        if not ordered:
            return get_sample_categories()
        return await self._gateway.fetch_categories(ordered[0].url)
