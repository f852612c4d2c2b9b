"""
models.py

Value types passed between the scan, sort, delete and export stages.

Every type here is immutable once built. `to_dict()` renders the camelCase
shape used by the export documents; those field names are a stable contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Entry:
    """
    One deletable playlist row.

    set_video_id is the server-assigned edit identifier and can go stale when
    the playlist is mutated elsewhere. video_id is the stable content id and
    may be empty for unavailable rows.
    """

    set_video_id: str
    video_id: str = ""
    title: str = ""
    channel_name: str = ""
    channel_id: str = ""
    published_time_text: str = ""
    length_text: str = ""
    is_playable: bool = True
    unavailable_reason: str = ""
    thumbnails: Tuple[Thumbnail, ...] = ()
    badges: Tuple[str, ...] = ()
    order_index: Optional[int] = None
    raw_renderer: Optional[Dict[str, Any]] = field(
        default=None, compare=False, repr=False
    )

    def with_order_index(self, order_index: int) -> "Entry":
        return replace(self, order_index=order_index)

    def describe(self) -> str:
        return (
            f"setVideoId={self.set_video_id}, videoId={self.video_id or 'unknown'}, "
            f'title="{self.title or "unknown"}"'
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "setVideoId": self.set_video_id,
            "videoId": self.video_id,
            "title": self.title,
            "channelName": self.channel_name,
            "channelId": self.channel_id,
            "publishedTimeText": self.published_time_text,
            "lengthText": self.length_text,
            "isPlayable": self.is_playable,
            "unavailableReason": self.unavailable_reason,
            "thumbnails": [t.to_dict() for t in self.thumbnails],
            "badges": list(self.badges),
            "orderIndex": self.order_index,
        }
        if self.raw_renderer is not None:
            out["rawRenderer"] = self.raw_renderer
        return out


@dataclass(frozen=True)
class SortOption:
    title: str
    selected: bool
    order: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "selected": self.selected,
            "playlistVideoOrder": self.order,
        }


@dataclass(frozen=True)
class SortState:
    """Snapshot of the server's sort menu selection."""

    title: str = ""
    selected_title: str = ""
    selected_order: Optional[int] = None
    items: Tuple[SortOption, ...] = ()

    def matches(self, order: int) -> bool:
        return self.selected_order is not None and self.selected_order == order

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "selectedTitle": self.selected_title,
            "selectedOrder": self.selected_order,
            "items": [i.to_dict() for i in self.items],
        }


@dataclass(frozen=True)
class PlaylistMetadata:
    playlist_id: str = ""
    title: str = ""
    description: str = ""
    stats: Tuple[str, ...] = ()
    reported_video_count: Optional[int] = None
    owner: str = ""
    last_updated_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playlistId": self.playlist_id,
            "title": self.title,
            "description": self.description,
            "stats": list(self.stats),
            "reportedVideoCount": self.reported_video_count,
            "owner": self.owner,
            "lastUpdatedText": self.last_updated_text,
        }


@dataclass(frozen=True)
class ScanStats:
    started_at: str
    finished_at: str
    pages_fetched: int
    unique_entries: int
    tokens_consumed: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "pagesFetched": self.pages_fetched,
            "uniqueEntries": self.unique_entries,
            "tokensConsumed": self.tokens_consumed,
        }


@dataclass(frozen=True)
class ScanResult:
    entries: Tuple[Entry, ...]
    playlist_metadata: PlaylistMetadata
    sort_state: Optional[SortState]
    scan: ScanStats


@dataclass(frozen=True)
class DeletionTarget:
    """An entry selected for removal, pinned to its scan-time position."""

    entry: Entry
    order_index: Optional[int]

    @classmethod
    def from_entry(cls, entry: Entry) -> "DeletionTarget":
        return cls(entry=entry, order_index=entry.order_index)

    @property
    def set_video_id(self) -> str:
        return self.entry.set_video_id

    def describe(self) -> str:
        return self.entry.describe()


@dataclass(frozen=True)
class AuditRecord:
    sequence_number: int
    timestamp: str
    order_index_at_scan: Optional[int]
    set_video_id: str
    video_id: str
    title: str
    channel_name: str
    published_time_text: str
    length_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequenceNumber": self.sequence_number,
            "timestamp": self.timestamp,
            "orderIndexAtScan": self.order_index_at_scan,
            "setVideoId": self.set_video_id,
            "videoId": self.video_id,
            "title": self.title,
            "channelName": self.channel_name,
            "publishedTimeText": self.published_time_text,
            "lengthText": self.length_text,
        }


def entries_to_dicts(entries: List[Entry]) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in entries]
