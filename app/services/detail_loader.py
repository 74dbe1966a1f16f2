"""Load a content item for a detail view and own its playback session."""

from __future__ import annotations

import logging
from typing import Sequence

from ..models import ContentItem, SourceConfig
from ..playback import PlaybackSession
from .aggregator import ContentAggregator

logger = logging.getLogger(__name__)


class ContentDetailLoader:
    """Tracks the currently requested item and discards superseded loads.

    In-flight lookups are never cancelled; when one resolves after the viewer
    has issued a newer request (even for the same id) its result is dropped.
    """

    def __init__(
        self,
        aggregator: ContentAggregator,
        sources: Sequence[SourceConfig],
        active_source_id: str | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._sources = tuple(sources)
        self._active_source_id = active_source_id
        self._requested_id: str | None = None
        self._request_seq = 0
        self._item: ContentItem | None = None
        self._session: PlaybackSession | None = None

    @property
    def requested_id(self) -> str | None:
        return self._requested_id

    @property
    def item(self) -> ContentItem | None:
        return self._item

    @property
    def session(self) -> PlaybackSession | None:
        return self._session

    async def open(self, item_id: str) -> ContentItem | None:
        """Load ``item_id``; returns None if not found or superseded."""

        self._request_seq += 1
        token = self._request_seq
        self._requested_id = item_id
        self._item = None
        self._session = None

        item = await self._aggregator.fetch_by_id(
            self._sources, self._active_source_id, item_id
        )
        if token != self._request_seq:
            logger.debug("Discarding stale result for %s (now %s)", item_id, self._requested_id)
            return None

        self._item = item
        if item is not None:
            self._session = PlaybackSession(item)
        return item

    def close(self) -> None:
        self._request_seq += 1
        self._requested_id = None
        self._item = None
        self._session = None
