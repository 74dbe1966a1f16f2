"""Key-value persistence for the user-selected source configuration."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import SettingRecord
from ..models import SourceConfig

logger = logging.getLogger(__name__)

SOURCES_KEY = "sources"
ACTIVE_SOURCE_KEY = "active_source_id"

_SOURCE_LIST = TypeAdapter(list[SourceConfig])


class SourceStore:
    """Reads and writes the configured sources and the active source id."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _get(self, key: str) -> Any:
        async with self._session_factory() as session:
            record = await session.get(SettingRecord, key)
            return record.value if record is not None else None

    async def _set(self, key: str, value: Any) -> None:
        async with self._session_factory() as session:
            record = await session.get(SettingRecord, key)
            if record is None:
                session.add(SettingRecord(key=key, value=value))
            else:
                record.value = value
            await session.commit()

    async def get_sources(self) -> list[SourceConfig] | None:
        """Return the stored sources, or None when nothing was saved yet."""

        raw = await self._get(SOURCES_KEY)
        if raw is None:
            return None
        try:
            return _SOURCE_LIST.validate_python(raw)
        except ValidationError as exc:
            logger.warning("Ignoring malformed stored sources: %s", exc)
            return None

    async def save_sources(self, sources: Sequence[SourceConfig]) -> None:
        seen: set[str] = set()
        for source in sources:
            if source.id in seen:
                raise ValueError(f"Duplicate source id: {source.id}")
            seen.add(source.id)
        await self._set(SOURCES_KEY, [source.model_dump() for source in sources])

    async def get_active_source_id(self) -> str | None:
        value = await self._get(ACTIVE_SOURCE_KEY)
        return str(value) if value else None

    async def set_active_source_id(self, source_id: str | None) -> None:
        await self._set(ACTIVE_SOURCE_KEY, source_id or None)
