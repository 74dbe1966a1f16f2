"""Tests for fan-out, fallback and deduplication across sources."""

from __future__ import annotations

import asyncio
from typing import cast

import pytest
from factories import make_item

from app.models import ContentItem, PaginatedResult, SourceConfig
from app.sample_catalog import get_sample_categories, get_sample_items
from app.services.aggregator import ContentAggregator, dedupe_items, order_sources
from app.services.source_gateway import SourceGateway


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


class FakeGateway:
    """Gateway stub answering from in-memory listings keyed by base URL."""

    def __init__(self, listings: dict[str, list[ContentItem] | Exception]) -> None:
        self.listings = listings
        self.query_calls: list[dict[str, object]] = []
        self.item_calls: list[tuple[str, str]] = []
        self.category_calls: list[str] = []

    async def query(self, base_url: str, **params: object) -> PaginatedResult:
        self.query_calls.append({"base_url": base_url, **params})
        listing = self.listings.get(base_url, [])
        if isinstance(listing, Exception):
            raise listing
        return PaginatedResult(items=list(listing), total=len(listing))

    async def fetch_item(self, base_url: str, item_id: str) -> ContentItem | None:
        self.item_calls.append((base_url, item_id))
        listing = self.listings.get(base_url, [])
        if isinstance(listing, Exception):
            return None
        return next((item for item in listing if item.id == item_id), None)

    async def fetch_categories(self, base_url: str):
        self.category_calls.append(base_url)
        return []


def source(source_id: str) -> SourceConfig:
    return SourceConfig(id=source_id, name=source_id.upper(), url=f"https://{source_id}.example.com/api")


def build(listings: dict[str, list[ContentItem] | Exception]) -> tuple[ContentAggregator, FakeGateway]:
    gateway = FakeGateway(listings)
    return ContentAggregator(cast(SourceGateway, gateway)), gateway


def test_order_sources_promotes_active_source() -> None:
    sources = [source("a"), source("b"), source("c")]

    assert [s.id for s in order_sources(sources, "c")] == ["c", "a", "b"]
    assert [s.id for s in order_sources(sources, "missing")] == ["a", "b", "c"]
    assert [s.id for s in order_sources(sources, None)] == ["a", "b", "c"]


def test_dedupe_keeps_last_value_at_first_position() -> None:
    items = [make_item("1", "Old"), make_item("2"), make_item("1", "New")]

    unique = dedupe_items(items)

    assert [item.id for item in unique] == ["1", "2"]
    assert unique[0].title == "New"


@pytest.mark.anyio("asyncio")
async def test_fetch_all_without_sources_returns_sample_items() -> None:
    aggregator, gateway = build({})

    items = await aggregator.fetch_all([])

    assert items == get_sample_items()
    assert gateway.query_calls == []


@pytest.mark.anyio("asyncio")
async def test_fetch_all_last_source_wins_on_duplicate_ids() -> None:
    a, b = source("a"), source("b")
    aggregator, _ = build(
        {
            a.url: [make_item("42", "From A"), make_item("1", "Only A")],
            b.url: [make_item("42", "From B")],
        }
    )

    items = await aggregator.fetch_all([a, b])

    by_id = {item.id: item for item in items}
    assert [item.id for item in items].count("42") == 1
    assert by_id["42"].title == "From B"
    assert by_id["1"].title == "Only A"


@pytest.mark.anyio("asyncio")
async def test_fetch_all_isolates_source_failures() -> None:
    a, b = source("a"), source("b")
    aggregator, gateway = build(
        {a.url: RuntimeError("source exploded"), b.url: [make_item("7", "Survivor")]}
    )

    items = await aggregator.fetch_all([a, b])

    assert [item.id for item in items] == ["7"]
    assert all(call["page"] == 1 for call in gateway.query_calls)


@pytest.mark.anyio("asyncio")
async def test_fetch_all_falls_back_when_every_source_is_empty() -> None:
    a, b = source("a"), source("b")
    aggregator, _ = build({a.url: [], b.url: RuntimeError("down")})

    assert await aggregator.fetch_all([a, b]) == get_sample_items()


@pytest.mark.anyio("asyncio")
async def test_fetch_all_is_idempotent() -> None:
    a, b = source("a"), source("b")
    aggregator, _ = build(
        {a.url: [make_item("1"), make_item("2")], b.url: [make_item("2"), make_item("3")]}
    )

    first = await aggregator.fetch_all([a, b])
    second = await aggregator.fetch_all([a, b])

    assert {item.id for item in first} == {item.id for item in second} == {"1", "2", "3"}


@pytest.mark.anyio("asyncio")
async def test_fetch_all_queries_sources_concurrently() -> None:
    slow_started = asyncio.Event()

    class BlockingGateway(FakeGateway):
        async def query(self, base_url: str, **params: object) -> PaginatedResult:
            if base_url.startswith("https://slow"):
                slow_started.set()
                await asyncio.sleep(0)
                return PaginatedResult(items=[make_item("slow")])
            # Completes only if the slow query was started alongside it.
            await slow_started.wait()
            return PaginatedResult(items=[make_item("fast")])

    fast, slow = source("fast"), source("slow")
    aggregator = ContentAggregator(cast(SourceGateway, BlockingGateway({})))

    items = await asyncio.wait_for(aggregator.fetch_all([fast, slow]), timeout=2)

    assert [item.id for item in items] == ["fast", "slow"]


@pytest.mark.anyio("asyncio")
async def test_fetch_by_id_tries_active_source_first_and_stops_on_hit() -> None:
    a, b, c = source("a"), source("b"), source("c")
    aggregator, gateway = build(
        {
            a.url: [make_item("5", "From A")],
            b.url: [],
            c.url: [make_item("5", "From C")],
        }
    )

    item = await aggregator.fetch_by_id([a, b, c], "b", "5")

    assert item is not None and item.title == "From A"
    assert [url for url, _ in gateway.item_calls] == [b.url, a.url]


@pytest.mark.anyio("asyncio")
async def test_fetch_by_id_falls_back_to_sample_data() -> None:
    a = source("a")
    aggregator, gateway = build({a.url: []})

    sample = await aggregator.fetch_by_id([a], None, "sample-2")
    missing = await aggregator.fetch_by_id([a], None, "does-not-exist")
    without_sources = await aggregator.fetch_by_id([], "a", "sample-1")

    assert sample is not None and sample.id == "sample-2"
    assert missing is None
    assert without_sources is not None and without_sources.id == "sample-1"
    assert len(gateway.item_calls) == 2


@pytest.mark.anyio("asyncio")
async def test_fetch_page_uses_active_source_or_sample_listing() -> None:
    a, b = source("a"), source("b")
    aggregator, gateway = build({b.url: [make_item("9")]})

    page = await aggregator.fetch_page([a, b], "b", page=3, category_id="all", search_term="x")
    sample_page = await aggregator.fetch_page([], None, search_term="case")

    assert [item.id for item in page.items] == ["9"]
    assert gateway.query_calls == [
        {"base_url": b.url, "page": 3, "category_id": "all", "search_term": "x"}
    ]
    assert [item.id for item in sample_page.items] == ["sample-2"]


@pytest.mark.anyio("asyncio")
async def test_fetch_categories_falls_back_to_sample_categories() -> None:
    a = source("a")
    aggregator, gateway = build({})

    assert await aggregator.fetch_categories([], None) == get_sample_categories()
    await aggregator.fetch_categories([a], None)
    assert gateway.category_calls == [a.url]
