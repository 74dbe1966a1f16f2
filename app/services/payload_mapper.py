"""Map raw upstream catalog records onto :class:`ContentItem`."""

from __future__ import annotations

import logging
import re
from typing import Any, Collection, Mapping
from urllib.parse import quote

from ..config import DEFAULT_SERIES_TYPE_IDS
from ..models import ContentItem, ContentKind
from ..utils import (
    parse_leading_float,
    parse_leading_int,
    split_tokens,
    text_or_none,
)
from .playback_groups import parse_playback_groups

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description available."
DEFAULT_PLACEHOLDER_BASE = "https://placehold.co"

# Substrings of a category/type name that mark the record as a series.
SERIES_KEYWORDS: tuple[str, ...] = (
    "剧",
    "动漫",
    "动画",
    "综艺",
    "drama",
    "series",
    "show",
    "animation",
    "anime",
    "variety",
)

RESOLUTION_RE = re.compile(r"[0-9]+[pP]")
RATING_FIELDS = ("vod_douban_score", "vod_score")

# Characters encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def placeholder_image(title: str, size: str, *, base: str = DEFAULT_PLACEHOLDER_BASE) -> str:
    """Return a deterministic placeholder image embedding ``title``."""

    return f"{base.rstrip('/')}/{size}.png?text={quote(title, safe=_URI_COMPONENT_SAFE)}"


def classify_kind(
    record: Mapping[str, Any],
    series_type_ids: Collection[int] = DEFAULT_SERIES_TYPE_IDS,
) -> ContentKind:
    """Infer movie/series from the type name, else from the numeric type id."""

    type_name = text_or_none(record.get("type_name")) or text_or_none(record.get("vod_class"))
    if type_name:
        lowered = type_name.lower()
        if any(keyword in lowered for keyword in SERIES_KEYWORDS):
            return "series"
        return "movie"

    type_id = parse_leading_int(record.get("tid"))
    if type_id is not None and type_id in series_type_ids:
        return "series"
    return "movie"


def parse_rating(record: Mapping[str, Any]) -> float | None:
    for field in RATING_FIELDS:
        value = parse_leading_float(record.get(field))
        # Zero is how upstream catalogs spell "unrated".
        if value is not None and 0 < value <= 10:
            return value
    return None


def parse_qualities(record: Mapping[str, Any]) -> tuple[str, ...] | None:
    explicit = text_or_none(record.get("vod_quality"))
    if explicit:
        labels = [part.strip() for part in explicit.split(",") if part.strip()]
        return tuple(labels) or None
    remarks = text_or_none(record.get("vod_remarks"))
    if remarks:
        found = RESOLUTION_RE.findall(remarks)
        if found:
            return tuple(found)
    return None


def map_payload(
    record: Any,
    *,
    series_type_ids: Collection[int] = DEFAULT_SERIES_TYPE_IDS,
    placeholder_base: str = DEFAULT_PLACEHOLDER_BASE,
) -> ContentItem | None:
    """Convert one raw upstream record into a :class:`ContentItem`.

    Returns ``None`` when the record is not a mapping or lacks a non-empty
    identifier or title. The input is never mutated.
    """

    if not isinstance(record, Mapping):
        logger.debug("Skipping non-mapping catalog record: %r", record)
        return None

    item_id = text_or_none(record.get("vod_id"))
    title = text_or_none(record.get("vod_name"))
    if not item_id or not title:
        logger.debug("Skipping record missing vod_id/vod_name: %r", record)
        return None

    description = (
        text_or_none(record.get("vod_blurb"))
        or text_or_none(record.get("vod_content"))
        or NO_DESCRIPTION
    )
    poster = text_or_none(record.get("vod_pic"))
    backdrop = text_or_none(record.get("vod_pic_slide")) or poster

    genres = split_tokens(record.get("vod_class")) or split_tokens(record.get("type_name"))
    groups = parse_playback_groups(record.get("vod_play_from"), record.get("vod_play_url"))

    year = parse_leading_int(record.get("vod_year"))

    return ContentItem(
        id=item_id,
        title=title,
        description=description,
        poster_url=poster or placeholder_image(title, "400x600", base=placeholder_base),
        backdrop_url=backdrop
        or placeholder_image(f"{title} backdrop", "1280x720", base=placeholder_base),
        cast=tuple(split_tokens(record.get("vod_actor"))),
        director=tuple(split_tokens(record.get("vod_director"))),
        rating=parse_rating(record),
        genres=tuple(genres),
        release_year=year or None,
        runtime=text_or_none(record.get("vod_duration")) or text_or_none(record.get("vod_remarks")),
        kind=classify_kind(record, series_type_ids),
        available_qualities=parse_qualities(record),
        playback_sources=tuple(groups) if groups else None,
    )
