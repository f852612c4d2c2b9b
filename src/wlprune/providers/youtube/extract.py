"""
extract.py

Pulls playlist rows, continuation cursors, playlist metadata and the sort
menu state out of innertube browse / edit_playlist payloads.

The payloads are deep, loosely versioned JSON trees. Every walk here is an
explicit iterative traversal with a visited-identity set, so shared
substructure and cycles are harmless and nesting depth is not bounded by the
interpreter's recursion limit. Unknown shapes are skipped, never fatal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

from wlprune import config
from wlprune.models import Entry, PlaylistMetadata, SortOption, SortState, Thumbnail
from wlprune.utils import extract_integer_from_text, safe_text

JsonDict = Dict[str, Any]

# ============================================================
# Optional-typed accessors
# ============================================================


def as_dict(value: Any) -> Optional[JsonDict]:
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def dig(node: Any, *path: Any) -> Any:
    """
    Follow a path of dict keys / list indexes. Returns None on the first
    missing key, out-of-range index or type mismatch.
    """
    cur = node
    for step in path:
        if isinstance(step, int):
            if not isinstance(cur, list) or not -len(cur) <= step < len(cur):
                return None
            cur = cur[step]
        else:
            if not isinstance(cur, dict):
                return None
            cur = cur.get(step)
        if cur is None:
            return None
    return cur


def as_number(value: Any) -> Optional[int]:
    """
    Integral number or numeric string -> int; anything else -> None.

    "2.7" is None, not 2: a sort code must match exactly or not at all.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n) or n != int(n):
        return None
    return int(n)


def pick_text(obj: Any) -> str:
    """Read a text object: {"simpleText": ...} or {"runs": [{"text": ...}]}."""
    d = as_dict(obj)
    if d is None:
        return ""
    simple = d.get("simpleText")
    if isinstance(simple, str):
        return safe_text(simple)
    runs = d.get("runs")
    if isinstance(runs, list):
        return safe_text("".join(as_str(dig(r, "text")) for r in runs))
    return ""


# ============================================================
# Traversal
# ============================================================


def walk(root: Any) -> Iterator[Any]:
    """
    Pre-order traversal over dicts and lists.

    Children are yielded in document order (dict insertion order, list
    order). Each composite node is yielded at most once.
    """
    stack: List[Any] = [root]
    seen: Set[int] = set()
    while stack:
        node = stack.pop()
        if not isinstance(node, (dict, list)):
            continue
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        children = node if isinstance(node, list) else list(node.values())
        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append(child)


def find_first(root: Any, predicate: Callable[[JsonDict], bool]) -> Optional[JsonDict]:
    for node in walk(root):
        if isinstance(node, dict) and predicate(node):
            return node
    return None


# ============================================================
# Entries + continuation tokens
# ============================================================


@dataclass
class PageExtract:
    entries: List[Entry] = field(default_factory=list)
    continuation_tokens: List[str] = field(default_factory=list)


def _removal_set_video_id(renderer: JsonDict) -> str:
    """
    The edit identifier lives on the row's "remove from playlist" menu action.
    Rows without it cannot be deleted and are not entries.
    """
    for item in as_list(dig(renderer, "menu", "menuRenderer", "items")):
        actions = dig(
            item,
            "menuServiceItemRenderer",
            "serviceEndpoint",
            "playlistEditEndpoint",
            "actions",
        )
        if not isinstance(actions, list):
            continue
        for action in actions:
            if as_str(dig(action, "action")) != config.ACTION_REMOVE_VIDEO:
                continue
            set_video_id = as_str(dig(action, "setVideoId"))
            if set_video_id:
                return set_video_id
    return ""


def _channel(renderer: JsonDict) -> Tuple[str, str]:
    runs = as_list(dig(renderer, "shortBylineText", "runs"))
    name = safe_text("".join(as_str(dig(r, "text")) for r in runs))
    channel_id = ""
    for run in runs:
        browse_id = as_str(dig(run, "navigationEndpoint", "browseEndpoint", "browseId"))
        if browse_id:
            channel_id = browse_id
            break
    return name, channel_id


def _length_text(renderer: JsonDict) -> str:
    text = pick_text(renderer.get("lengthText"))
    if text:
        return text
    for overlay in as_list(renderer.get("thumbnailOverlays")):
        status = dig(overlay, "thumbnailOverlayTimeStatusRenderer")
        if isinstance(status, dict):
            return pick_text(status.get("text"))
    return ""


def _thumbnails(renderer: JsonDict) -> Tuple[Thumbnail, ...]:
    out = []
    for t in as_list(dig(renderer, "thumbnail", "thumbnails")):
        out.append(
            Thumbnail(
                url=as_str(dig(t, "url")),
                width=as_number(dig(t, "width")) or None,
                height=as_number(dig(t, "height")) or None,
            )
        )
    return tuple(out)


def _badges(renderer: JsonDict) -> Tuple[str, ...]:
    out = []
    for b in as_list(renderer.get("badges")):
        label = dig(b, "metadataBadgeRenderer", "label")
        text = safe_text(label) if isinstance(label, str) else pick_text(label)
        if text:
            out.append(text)
    return tuple(out)


def entry_from_renderer(
    renderer: JsonDict, include_raw: bool = False
) -> Optional[Entry]:
    """Build an Entry from a playlistVideoRenderer, or None if not deletable."""
    set_video_id = _removal_set_video_id(renderer)
    if not set_video_id:
        return None

    channel_name, channel_id = _channel(renderer)
    unplayable = renderer.get("unplayableText")

    return Entry(
        set_video_id=set_video_id,
        video_id=as_str(renderer.get("videoId")),
        title=pick_text(renderer.get("title")),
        channel_name=channel_name,
        channel_id=channel_id,
        published_time_text=pick_text(renderer.get("publishedTimeText")),
        length_text=_length_text(renderer),
        is_playable=renderer.get("isPlayable") is not False and not unplayable,
        unavailable_reason=pick_text(unplayable),
        thumbnails=_thumbnails(renderer),
        badges=_badges(renderer),
        raw_renderer=renderer if include_raw else None,
    )


def _token_from_continuation_item(item: Any) -> str:
    cir = dig(item, "continuationItemRenderer")
    return as_str(
        dig(cir, "continuationEndpoint", "continuationCommand", "token")
    ) or as_str(
        dig(cir, "button", "buttonRenderer", "command", "continuationCommand", "token")
    )


class _PageCollector:
    def __init__(self, include_raw: bool) -> None:
        self.include_raw = include_raw
        self.result = PageExtract()
        self._seen_set_ids: Set[str] = set()
        self._seen_tokens: Set[str] = set()

    def push_token(self, token: Any) -> None:
        if not isinstance(token, str) or not token:
            return
        if token in self._seen_tokens:
            return
        self._seen_tokens.add(token)
        self.result.continuation_tokens.append(token)

    def push_renderer(self, renderer: Any) -> None:
        if not isinstance(renderer, dict):
            return
        entry = entry_from_renderer(renderer, include_raw=self.include_raw)
        if entry is None or entry.set_video_id in self._seen_set_ids:
            return
        self._seen_set_ids.add(entry.set_video_id)
        self.result.entries.append(entry)

    def consume_items(self, items: Any) -> None:
        for item in as_list(items):
            renderer = dig(item, "playlistVideoRenderer")
            if renderer is not None:
                self.push_renderer(renderer)
                continue
            self.push_token(_token_from_continuation_item(item))

    def visit(self, node: Any) -> None:
        if not isinstance(node, dict):
            return

        plvr = as_dict(node.get("playlistVideoListRenderer"))
        if plvr is not None:
            self.consume_items(plvr.get("contents"))
            self.push_token(
                dig(plvr, "continuations", 0, "nextContinuationData", "continuation")
            )

        for container in ("appendContinuationItemsAction", "reloadContinuationItemsCommand"):
            action = as_dict(node.get(container))
            if action is not None:
                self.consume_items(action.get("continuationItems"))

        # Fallback: cursors wherever they appear.
        self.push_token(dig(node, "nextContinuationData", "continuation"))
        self.push_token(dig(node, "continuationCommand", "token"))


def extract_entries_and_continuations(
    payload: Any, include_raw: bool = False
) -> PageExtract:
    """
    Entries (deduplicated by setVideoId, first occurrence wins) and
    continuation tokens (deduplicated, discovery order) from one page.
    """
    collector = _PageCollector(include_raw)
    for node in walk(payload):
        collector.visit(node)
    return collector.result


# ============================================================
# Playlist metadata
# ============================================================


def extract_playlist_metadata(
    payload: Any, default_playlist_id: str = config.DEFAULT_PLAYLIST_ID
) -> PlaylistMetadata:
    meta = as_dict(dig(payload, "metadata", "playlistMetadataRenderer")) or {}
    primary_node = find_first(
        payload, lambda n: isinstance(n.get("playlistSidebarPrimaryInfoRenderer"), dict)
    )
    primary = as_dict(dig(primary_node, "playlistSidebarPrimaryInfoRenderer")) or {}

    raw_stats = as_list(primary.get("stats"))
    stats = tuple(s for s in (pick_text(x) for x in raw_stats) if s)

    reported: Optional[int] = None
    for stat in stats:
        if "video" in stat.lower():
            reported = extract_integer_from_text(stat)
            if reported is not None:
                break

    owner_runs = as_list(dig(primary, "owner", "videoOwnerRenderer", "title", "runs"))

    return PlaylistMetadata(
        playlist_id=as_str(meta.get("playlistId")) or default_playlist_id,
        title=safe_text(as_str(meta.get("title"))),
        description=safe_text(as_str(meta.get("description"))),
        stats=stats,
        reported_video_count=reported,
        owner=safe_text("".join(as_str(dig(r, "text")) for r in owner_runs)),
        last_updated_text=pick_text(raw_stats[2] if len(raw_stats) > 2 else None),
    )


# ============================================================
# Sort state
# ============================================================


def _sort_option(item: Any) -> SortOption:
    order: Optional[int] = None
    for action in as_list(
        dig(item, "serviceEndpoint", "playlistEditEndpoint", "actions")
    ):
        if as_str(dig(action, "action")) == config.ACTION_SET_PLAYLIST_VIDEO_ORDER:
            order = as_number(dig(action, "playlistVideoOrder"))
            break
    title = dig(item, "title")
    return SortOption(
        title=safe_text(title) if isinstance(title, str) else pick_text(title),
        selected=bool(dig(item, "selected")),
        order=order,
    )


def extract_sort_state(payload: Any) -> Optional[SortState]:
    """Current sort menu selection, or None if the payload carries no sort menu."""
    node = find_first(
        payload,
        lambda n: isinstance(n.get("sortFilterSubMenuRenderer"), dict)
        and isinstance(n["sortFilterSubMenuRenderer"].get("subMenuItems"), list),
    )
    if node is None:
        return None

    sub_menu = node["sortFilterSubMenuRenderer"]
    items = tuple(_sort_option(i) for i in sub_menu["subMenuItems"])
    selected = next((i for i in items if i.selected), None)
    title = sub_menu.get("title")

    return SortState(
        title=safe_text(title) if isinstance(title, str) else pick_text(title),
        selected_title=selected.title if selected else "",
        selected_order=selected.order if selected else None,
        items=items,
    )


# ============================================================
# Edit responses
# ============================================================


def edit_status(payload: Any) -> str:
    return safe_text(as_str(dig(payload, "status")))
