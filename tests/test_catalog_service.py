from __future__ import annotations

import asyncio
from typing import cast

from factories import make_item

from app.config import Settings
from app.database import Database
from app.models import Category, PaginatedResult, SourceConfig
from app.services.aggregator import ContentAggregator
from app.services.catalog_service import CatalogService
from app.services.source_store import SourceStore


ENV_SOURCE = SourceConfig(id="env", name="From env", url="https://env.example.com/api")
SAVED_SOURCE = SourceConfig(id="saved", name="Saved", url="https://saved.example.com/api")


class RecordingAggregator:
    """Aggregator stub that records which sources each call received."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[str, ...], str | None]] = []

    def _record(self, name: str, sources, active_source_id=None) -> None:
        self.calls.append((name, tuple(source.id for source in sources), active_source_id))

    async def fetch_all(self, sources):
        self._record("all", sources)
        return [make_item("1")]

    async def fetch_by_id(self, sources, active_source_id, item_id):
        self._record("by_id", sources, active_source_id)
        return make_item(item_id)

    async def fetch_page(self, sources, active_source_id, **params):
        self._record("page", sources, active_source_id)
        return PaginatedResult(page=params["page"])

    async def fetch_categories(self, sources, active_source_id):
        self._record("categories", sources, active_source_id)
        return [Category(id="all", name="All")]


def build_service(tmp_path) -> tuple[CatalogService, RecordingAggregator, Database]:
    settings = Settings(
        _env_file=None,
        CATALOG_SOURCES=[ENV_SOURCE.model_dump()],
        ACTIVE_SOURCE_ID="env",
    )
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    aggregator = RecordingAggregator()
    service = CatalogService(
        settings,
        cast(ContentAggregator, aggregator),
        SourceStore(database.session_factory),
    )
    return service, aggregator, database


def test_environment_sources_apply_until_a_selection_is_saved(tmp_path) -> None:
    service, aggregator, database = build_service(tmp_path)

    async def scenario():
        await database.create_all()
        before = await service.get_selection()
        await service.list_content(page=2)
        await service.update_selection([SAVED_SOURCE], "saved")
        after = await service.get_selection()
        await service.get_content("42")
        await database.dispose()
        return before, after

    before, after = asyncio.run(scenario())

    assert [source.id for source in before.sources] == ["env"]
    assert before.active_source_id == "env"
    assert [source.id for source in after.sources] == ["saved"]
    assert after.active_source_id == "saved"
    assert aggregator.calls == [
        ("page", ("env",), "env"),
        ("by_id", ("saved",), "saved"),
    ]


def test_cleared_active_source_falls_back_to_environment_default(tmp_path) -> None:
    service, aggregator, database = build_service(tmp_path)

    async def scenario():
        await database.create_all()
        await service.update_selection([SAVED_SOURCE, ENV_SOURCE], None)
        categories = await service.list_categories()
        items = await service.all_content()
        await database.dispose()
        return categories, items

    categories, items = asyncio.run(scenario())

    assert [category.id for category in categories] == ["all"]
    assert [item.id for item in items] == ["1"]
    assert aggregator.calls == [
        ("categories", ("saved", "env"), "env"),
        ("all", ("saved", "env"), None),
    ]
