"""Built-in sample catalog served when no upstream source can answer."""

from __future__ import annotations

import math

from .models import Category, ContentItem, PaginatedResult, PlaybackEntry, PlaybackSourceGroup

SAMPLE_PAGE_SIZE = 10

MUX_TEST_STREAM = "https://test-streams.mux.dev/x36xhzz/x36xhzz.m3u8"
GTV_SAMPLE_BASE = "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample"


SAMPLE_CATEGORIES: tuple[Category, ...] = (
    Category(id="sample-movies", name="Popular Movies (sample)"),
    Category(id="sample-series", name="Latest Series (sample)"),
    Category(id="sample-anime", name="Classic Animation (sample)"),
)

# Listing filters for the sample categories; unmapped ids list everything.
_CATEGORY_KINDS = {
    "sample-movies": "movie",
    "sample-series": "series",
}


SAMPLE_ITEMS: tuple[ContentItem, ...] = (
    ContentItem(
        id="sample-1",
        title="Interstellar Drift (sample)",
        description=(
            "An epic science-fiction journey into deep space. With humanity facing "
            "extinction, a small crew sets out on a voyage into the unknown."
        ),
        poster_url="https://placehold.co/400x600.png?text=Interstellar%20Drift",
        backdrop_url="https://placehold.co/1280x720.png?text=Interstellar%20Drift%20backdrop",
        cast=("Zhang San", "Li Si", "Wang Wu"),
        director=("Zhao Liu",),
        rating=8.5,
        genres=("Sci-Fi", "Adventure"),
        release_year=2023,
        runtime="2h 30m",
        kind="movie",
        available_qualities=("1080p", "4K"),
        playback_sources=(
            PlaybackSourceGroup(
                source_name="Line 1 (m3u8)",
                urls=(
                    PlaybackEntry(name="Episode 1", url=MUX_TEST_STREAM),
                    PlaybackEntry(name="Episode 2", url=MUX_TEST_STREAM),
                ),
            ),
            PlaybackSourceGroup(
                source_name="Backup line (mp4)",
                urls=(
                    PlaybackEntry(name="HD", url=f"{GTV_SAMPLE_BASE}/BigBuckBunny.mp4"),
                ),
            ),
        ),
    ),
    ContentItem(
        id="sample-2",
        title="Case Trackers (sample)",
        description=(
            "A veteran detective peels back the layers of the city's strangest "
            "cases. Every episode brings a new mystery."
        ),
        poster_url="https://placehold.co/400x600.png?text=Case%20Trackers",
        backdrop_url="https://placehold.co/1280x720.png?text=Case%20Trackers%20backdrop",
        cast=("Liu Neng", "Zhao Si", "Xie Guangkun"),
        rating=9.0,
        genres=("Mystery", "Drama", "Crime"),
        release_year=2024,
        kind="series",
        available_qualities=("1080p", "720p"),
        playback_sources=(
            PlaybackSourceGroup(
                source_name="HD source (mp4)",
                urls=(
                    PlaybackEntry(name="S01E01", url=f"{GTV_SAMPLE_BASE}/ElephantsDream.mp4"),
                    PlaybackEntry(name="S01E02", url=f"{GTV_SAMPLE_BASE}/ForBiggerBlazes.mp4"),
                ),
            ),
        ),
    ),
)


def get_sample_items() -> list[ContentItem]:
    return list(SAMPLE_ITEMS)


def get_sample_item(item_id: str) -> ContentItem | None:
    for item in SAMPLE_ITEMS:
        if item.id == item_id:
            return item
    return None


def get_sample_categories() -> list[Category]:
    """Return the sample categories led by an ``all`` entry."""

    categories = list(SAMPLE_CATEGORIES)
    if not any(category.id == "all" for category in categories):
        categories.insert(0, Category(id="all", name="All (sample)"))
    return categories


def get_sample_page(
    page: int = 1,
    category_id: str | None = None,
    search_term: str | None = None,
) -> PaginatedResult:
    """Page through the sample items with category and title filters."""

    items = list(SAMPLE_ITEMS)
    if category_id and category_id != "all":
        kind = _CATEGORY_KINDS.get(category_id)
        if kind is not None:
            items = [item for item in items if item.kind == kind]
    if search_term:
        needle = search_term.casefold()
        items = [item for item in items if needle in item.title.casefold()]

    page = max(page, 1)
    total = len(items)
    start = (page - 1) * SAMPLE_PAGE_SIZE
    return PaginatedResult(
        items=items[start : start + SAMPLE_PAGE_SIZE],
        page=page,
        page_count=max(1, math.ceil(total / SAMPLE_PAGE_SIZE)),
        limit=SAMPLE_PAGE_SIZE,
        total=total,
    )
