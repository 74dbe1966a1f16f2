"""Playback session state machine driving the detail-view player.

The session picks a stream from a :class:`ContentItem`, tracks readiness and
error state reported by the native player, and decides when to fall back to
an embedded frame. Previous/next navigation is computed from the current
(group, entry) position rather than stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Mapping

from .models import ContentItem, PlaybackEntry

logger = logging.getLogger(__name__)

# HTML5 MediaError codes.
MEDIA_ERR_ABORTED = 1
MEDIA_ERR_NETWORK = 2
MEDIA_ERR_DECODE = 3
MEDIA_ERR_SRC_NOT_SUPPORTED = 4

MEDIA_ERROR_MESSAGES = {
    MEDIA_ERR_ABORTED: "Video loading was aborted.",
    MEDIA_ERR_NETWORK: "A network error stopped the video from loading.",
    MEDIA_ERR_DECODE: "The video could not be decoded.",
}


class PlaybackState(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    READY = "ready"
    ERRORED = "errored"
    FALLBACK = "fallback"


class PlayerErrorKind(str, Enum):
    MESSAGE = "message"
    RECOVERING = "recovering"
    FATAL = "fatal"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class NativeRender:
    url: str
    kind: Literal["native"] = "native"


@dataclass(frozen=True, slots=True)
class FrameRender:
    url: str
    kind: Literal["frame"] = "frame"


RenderStrategy = NativeRender | FrameRender


@dataclass(frozen=True, slots=True)
class PlayerError:
    """Normalised player error event.

    ``media_code`` carries an HTML5 ``MediaError`` code, ``label`` the string
    form some players report (``"hlsError"``, ``"dashError"``) and ``data`` the
    streaming-library payload (``type``, ``details``, ``fatal``, ...).
    """

    media_code: int | None = None
    label: str | None = None
    data: Mapping[str, Any] | None = None

    @classmethod
    def from_event(cls, error: Any = None, data: Any = None) -> "PlayerError":
        """Build from the raw ``(error, data)`` pair a player callback passes."""

        media_code: int | None = None
        label: str | None = None
        if isinstance(error, str):
            label = error
        elif isinstance(error, Mapping):
            target = error.get("target")
            media = target.get("error") if isinstance(target, Mapping) else None
            if media is None:
                media = error.get("error")
            code = media.get("code") if isinstance(media, Mapping) else None
            if code is None:
                code = error.get("code")
            if isinstance(code, int) and not isinstance(code, bool):
                media_code = code
        payload = data if isinstance(data, Mapping) and data else None
        return cls(media_code=media_code, label=label, data=payload)

    @property
    def is_empty(self) -> bool:
        return self.media_code is None and not self.label and not self.data


@dataclass(frozen=True, slots=True)
class ErrorClassification:
    kind: PlayerErrorKind
    message: str


def _protocol_description(data: Mapping[str, Any]) -> str:
    details = data.get("details")
    return f"{data.get('type')}: {details}" if details else str(data.get("type"))


def classify_player_error(error: PlayerError) -> ErrorClassification:
    """Map a player error onto a message and the action the session takes."""

    if error.media_code is not None:
        if error.media_code == MEDIA_ERR_SRC_NOT_SUPPORTED:
            return ErrorClassification(
                PlayerErrorKind.FALLBACK,
                "The player cannot play this format directly; some links are web players.",
            )
        message = MEDIA_ERROR_MESSAGES.get(
            error.media_code, f"Media error (code {error.media_code})."
        )
        return ErrorClassification(PlayerErrorKind.MESSAGE, message)

    data = error.data or {}
    if error.label:
        lowered = error.label.lower()
        if "hlserror" in lowered and data.get("type"):
            return _classify_protocol_error("HLS playback error", data)
        if "dasherror" in lowered and data:
            dash = data.get("error") if isinstance(data.get("error"), Mapping) else data
            code = dash.get("code") or "unknown"
            detail = f": {dash['message']}" if dash.get("message") else ""
            return ErrorClassification(
                PlayerErrorKind.MESSAGE, f"DASH playback error ({code}{detail})"
            )
        return ErrorClassification(
            PlayerErrorKind.MESSAGE, f"Player reported an error: {error.label}"
        )

    if data.get("type"):
        return _classify_protocol_error("Playback technical error", data)

    return ErrorClassification(
        PlayerErrorKind.FALLBACK,
        "This video cannot be played here; the link may be a web player.",
    )


def _classify_protocol_error(prefix: str, data: Mapping[str, Any]) -> ErrorClassification:
    message = f"{prefix} ({_protocol_description(data)})"
    fatal = data.get("fatal")
    if fatal is False:
        if data.get("type") == "networkError" and data.get("details") == "fragLoadError":
            message = "A video segment failed to load, recovering..."
        elif data.get("type") == "mediaError" and data.get("details") == "bufferStalledError":
            message = "Playback stalled while buffering, recovering..."
        else:
            message = f"{message} (recovering)"
        return ErrorClassification(PlayerErrorKind.RECOVERING, message)
    if fatal is True:
        return ErrorClassification(
            PlayerErrorKind.FATAL, f"{message} (fatal, cannot recover)"
        )
    return ErrorClassification(PlayerErrorKind.MESSAGE, message)


@dataclass(frozen=True, slots=True)
class EpisodeTarget:
    group_index: int
    entry_index: int
    entry: PlaybackEntry


@dataclass(slots=True)
class PlaybackSessionState:
    group_index: int | None = None
    entry_index: int | None = None
    url: str | None = None
    title: str = ""
    error_message: str | None = None
    player_ready: bool = False
    use_fallback: bool = False
    status: PlaybackState = PlaybackState.IDLE


class PlaybackSession:
    """Single-writer playback state for one content item."""

    def __init__(self, item: ContentItem) -> None:
        self._item = item
        self._state = PlaybackSessionState()

    @property
    def item(self) -> ContentItem:
        return self._item

    @property
    def state(self) -> PlaybackSessionState:
        return self._state

    @property
    def status(self) -> PlaybackState:
        return self._state.status

    def reset(self, item: ContentItem | None = None) -> None:
        """Forget the current stream, optionally switching content items."""

        if item is not None:
            self._item = item
        self._state = PlaybackSessionState()

    def select_stream(self, group_index: int, entry_index: int) -> PlaybackEntry:
        group = self._item.group(group_index)
        if entry_index < 0 or entry_index >= len(group.urls):
            raise IndexError(
                f"Entry {entry_index} out of range for group {group_index} of {self._item.id}"
            )
        entry = group.urls[entry_index]
        self._state = PlaybackSessionState(
            group_index=group_index,
            entry_index=entry_index,
            url=entry.url,
            title=f"{self._item.title} - {entry.name}",
            status=PlaybackState.SELECTING,
        )
        return entry

    def report_ready(self) -> None:
        self._state.player_ready = True
        if self._state.status is PlaybackState.SELECTING:
            self._state.status = PlaybackState.READY

    def report_playing(self) -> None:
        self._state.error_message = None
        self._state.use_fallback = False
        if self._state.url is not None:
            self._state.player_ready = True
            self._state.status = PlaybackState.READY

    def report_error(self, error: PlayerError | None = None, data: Any = None) -> ErrorClassification:
        """Classify a player error and apply it; never raises."""

        if not isinstance(error, PlayerError):
            error = PlayerError.from_event(error, data)
        classification = classify_player_error(error)

        if error.is_empty:
            logger.warning(
                "Player error without details for %s; the source may be invalid",
                self._state.url,
            )
        else:
            logger.info("Player error for %s: %s", self._state.url, classification.message)

        # Any reported error ends the loading spinner.
        self._state.player_ready = True
        if classification.kind is PlayerErrorKind.FALLBACK:
            logger.info("Switching %s to embedded-frame playback", self._state.url)
            self._state.use_fallback = True
            self._state.error_message = None
            self._state.status = PlaybackState.FALLBACK
        elif classification.kind is PlayerErrorKind.RECOVERING:
            self._state.error_message = classification.message
        else:
            self._state.use_fallback = False
            self._state.error_message = classification.message
            self._state.status = PlaybackState.ERRORED
        return classification

    @property
    def render(self) -> RenderStrategy | None:
        """Return how the presentation layer should render the current URL."""

        if self._state.url is None:
            return None
        if self._state.use_fallback:
            return FrameRender(self._state.url)
        return NativeRender(self._state.url)

    @property
    def previous_target(self) -> EpisodeTarget | None:
        groups = self._item.playback_sources or ()
        group_index, entry_index = self._state.group_index, self._state.entry_index
        if group_index is None or entry_index is None:
            return None
        if entry_index > 0:
            return EpisodeTarget(
                group_index, entry_index - 1, groups[group_index].urls[entry_index - 1]
            )
        for index in range(group_index - 1, -1, -1):
            urls = groups[index].urls
            if urls:
                return EpisodeTarget(index, len(urls) - 1, urls[-1])
        return None

    @property
    def next_target(self) -> EpisodeTarget | None:
        groups = self._item.playback_sources or ()
        group_index, entry_index = self._state.group_index, self._state.entry_index
        if group_index is None or entry_index is None:
            return None
        urls = groups[group_index].urls
        if entry_index < len(urls) - 1:
            return EpisodeTarget(group_index, entry_index + 1, urls[entry_index + 1])
        for index in range(group_index + 1, len(groups)):
            if groups[index].urls:
                return EpisodeTarget(index, 0, groups[index].urls[0])
        return None

    @property
    def has_previous(self) -> bool:
        return self.previous_target is not None

    @property
    def has_next(self) -> bool:
        return self.next_target is not None

    def previous(self) -> EpisodeTarget | None:
        target = self.previous_target
        if target is not None:
            self.select_stream(target.group_index, target.entry_index)
        return target

    def next(self) -> EpisodeTarget | None:
        target = self.next_target
        if target is not None:
            self.select_stream(target.group_index, target.entry_index)
        return target

    def snapshot(self) -> dict[str, Any]:
        """Read-only view for the presentation layer."""

        render = self.render
        return {
            "status": self._state.status.value,
            "group_index": self._state.group_index,
            "entry_index": self._state.entry_index,
            "url": self._state.url,
            "title": self._state.title,
            "error_message": self._state.error_message,
            "player_ready": self._state.player_ready,
            "use_fallback": self._state.use_fallback,
            "render": render.kind if render else None,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
        }
