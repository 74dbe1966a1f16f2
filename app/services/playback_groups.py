"""Parser for the delimiter-encoded playback source strings.

Upstream catalogs describe playback lines with two parallel strings::

    vod_play_from = "lineA$$$lineB"
    vod_play_url  = "Ep1$http://x/1.m3u8#Ep2$http://x/2.m3u8$$$http://y/3.mp4"

The grammar has three levels: groups are separated by ``$$$``, entries within
a group by ``#`` and the fields of an entry (name, url) by ``$``.
"""

from __future__ import annotations

import logging
from typing import Any

from ..models import PlaybackEntry, PlaybackSourceGroup
from ..utils import looks_playable

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = "$$$"
ENTRY_SEPARATOR = "#"
FIELD_SEPARATOR = "$"


def synthesize_entry_name(position: int) -> str:
    return f"Stream {position}"


def parse_entry(token: str, position: int) -> PlaybackEntry | None:
    """Parse one ``name$url`` token; ``position`` is 1-based."""

    fields = token.split(FIELD_SEPARATOR)
    name: str | None = None
    url: str | None = None
    if len(fields) >= 2:
        name = fields[0].strip() or None
        url = fields[1].strip() or None
    else:
        candidate = fields[0].strip()
        if looks_playable(candidate):
            url = candidate

    if not url or not looks_playable(url):
        return None
    return PlaybackEntry(name=name or synthesize_entry_name(position), url=url)


def parse_group_entries(blob: str) -> list[PlaybackEntry]:
    entries: list[PlaybackEntry] = []
    for index, token in enumerate(blob.split(ENTRY_SEPARATOR)):
        entry = parse_entry(token, index + 1)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_playback_groups(names: Any, url_groups: Any) -> list[PlaybackSourceGroup]:
    """Pair the ``$$$``-separated name and URL lists into playback groups.

    Groups keep a 1:1 index correspondence with ``names``: a blank name or a
    missing URL blob skips that index, groups sharing a name are never merged
    and groups left without a playable entry are dropped.
    """

    if not names or not url_groups:
        return []

    name_list = str(names).split(GROUP_SEPARATOR)
    blob_list = str(url_groups).split(GROUP_SEPARATOR)

    groups: list[PlaybackSourceGroup] = []
    for index, raw_name in enumerate(name_list):
        source_name = raw_name.strip()
        if not source_name or index >= len(blob_list) or not blob_list[index]:
            continue
        entries = parse_group_entries(blob_list[index])
        if not entries:
            logger.debug("Dropping playback group %r without playable entries", source_name)
            continue
        groups.append(PlaybackSourceGroup(source_name=source_name, urls=tuple(entries)))
    return groups
