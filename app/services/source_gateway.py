"""Query a single upstream catalog source and normalise its responses."""

from __future__ import annotations

import json
import logging
from typing import Any, Collection, Mapping

import httpx

from ..config import DEFAULT_SERIES_TYPE_IDS
from ..models import Category, ContentItem, PaginatedResult
from ..utils import parse_leading_int, text_or_none
from .payload_mapper import DEFAULT_PLACEHOLDER_BASE, map_payload

logger = logging.getLogger(__name__)

ALL_CATEGORY_ID = "all"
ALL_CATEGORY_NAME = "All"

DEFAULT_PAGE = 1
DEFAULT_PAGE_COUNT = 1
DEFAULT_LIMIT = 20

# Bodies upstream sources return instead of JSON when search is disabled.
SEARCH_UNSUPPORTED_MARKERS = ("暂不支持搜索", "search not supported")


class TransportError(Exception):
    """Raised when an upstream response cannot be fetched or decoded."""


class CatalogTransport:
    """Fetch upstream URLs and decode their JSON bodies."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def fetch_json(self, url: str | httpx.URL) -> Any:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Upstream returned HTTP {exc.response.status_code} for {url}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

        text = response.text
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Source returned non-JSON data that could not be parsed: {text[:100]}"
            ) from exc


def _positive_int(value: Any, default: int) -> int:
    parsed = parse_leading_int(value)
    if parsed is None or parsed < 1:
        return default
    return parsed


def build_query_url(
    base_url: str,
    *,
    page: int | None = None,
    category_id: str | None = None,
    search_term: str | None = None,
    ids: str | None = None,
) -> httpx.URL:
    """Build the catalog endpoint URL; ``ids`` wins over list parameters."""

    url = httpx.URL(base_url).copy_set_param("ac", "detail")
    if ids:
        return url.copy_set_param("ids", ids)
    if page:
        url = url.copy_set_param("pg", str(page))
    if category_id and category_id != ALL_CATEGORY_ID:
        url = url.copy_set_param("t", category_id)
    if search_term:
        url = url.copy_set_param("wd", search_term)
    return url


class SourceGateway:
    """Runs normalized catalog queries against one source's base URL."""

    def __init__(
        self,
        transport: CatalogTransport,
        *,
        series_type_ids: Collection[int] = DEFAULT_SERIES_TYPE_IDS,
        placeholder_base: str = DEFAULT_PLACEHOLDER_BASE,
    ) -> None:
        self._transport = transport
        self._series_type_ids = series_type_ids
        self._placeholder_base = placeholder_base

    async def query(
        self,
        base_url: str,
        *,
        page: int | None = None,
        category_id: str | None = None,
        search_term: str | None = None,
        ids: str | Collection[str] | None = None,
    ) -> PaginatedResult:
        """Return one page of items, or the empty default page on failure."""

        if ids is not None and not isinstance(ids, str):
            ids = ",".join(str(value) for value in ids)
        try:
            url = build_query_url(
                base_url,
                page=page,
                category_id=category_id,
                search_term=search_term,
                ids=ids,
            )
        except httpx.InvalidURL as exc:
            logger.error("Invalid catalog source URL %s: %s", base_url, exc)
            return PaginatedResult.empty()

        logger.info("Requesting %s", url)
        try:
            data = await self._transport.fetch_json(url)
        except TransportError as exc:
            message = str(exc)
            if search_term and any(marker in message for marker in SEARCH_UNSUPPORTED_MARKERS):
                logger.warning("Search not supported by %s: %s", base_url, message)
            else:
                logger.error("Failed to fetch content list from %s: %s", base_url, message)
            return PaginatedResult.empty()

        return self._build_result(data)

    async def fetch_item(self, base_url: str, item_id: str) -> ContentItem | None:
        result = await self.query(base_url, ids=item_id)
        if result.items:
            return result.items[0]
        logger.info("Item %s not found at %s", item_id, base_url)
        return None

    async def fetch_categories(self, base_url: str) -> list[Category]:
        """Return the source's categories, always led by an ``all`` entry."""

        try:
            data = await self._transport.fetch_json(base_url)
        except TransportError as exc:
            logger.error("Failed to fetch categories from %s: %s", base_url, exc)
            return [Category(id=ALL_CATEGORY_ID, name=f"{ALL_CATEGORY_NAME} (unavailable)")]

        raw_classes = data.get("class") if isinstance(data, Mapping) else None
        if not isinstance(raw_classes, list):
            logger.warning("No 'class' array in category data from %s", base_url)
            return [Category(id=ALL_CATEGORY_ID, name=f"{ALL_CATEGORY_NAME} (default)")]

        categories: list[Category] = []
        for entry in raw_classes:
            if not isinstance(entry, Mapping):
                continue
            category_id = text_or_none(entry.get("type_id"))
            name = text_or_none(entry.get("type_name"))
            if category_id and name:
                categories.append(Category(id=category_id, name=name))

        if not any(category.id == ALL_CATEGORY_ID for category in categories):
            categories.insert(0, Category(id=ALL_CATEGORY_ID, name=ALL_CATEGORY_NAME))
        return categories

    def _build_result(self, data: Any) -> PaginatedResult:
        payload: Mapping[str, Any] = data if isinstance(data, Mapping) else {}
        raw_list = payload.get("list")
        items: list[ContentItem] = []
        if isinstance(raw_list, list):
            for record in raw_list:
                item = map_payload(
                    record,
                    series_type_ids=self._series_type_ids,
                    placeholder_base=self._placeholder_base,
                )
                if item is not None:
                    items.append(item)

        page_count_raw = payload.get("pagecount") or payload.get("page_count")
        fallback_total = len(items)
        total = parse_leading_int(payload.get("total"))
        result = PaginatedResult(
            items=items,
            page=_positive_int(payload.get("page"), DEFAULT_PAGE),
            page_count=_positive_int(page_count_raw, DEFAULT_PAGE_COUNT),
            limit=_positive_int(payload.get("limit"), len(items) or DEFAULT_LIMIT),
            total=total if total is not None and total > 0 else fallback_total,
        )
        logger.info(
            "Fetched %s items (page %s/%s, total %s, limit %s)",
            len(items),
            result.page,
            result.page_count,
            result.total,
            result.limit,
        )
        return result
