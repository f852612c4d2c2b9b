"""
scan.py

Paginates the playlist, extracting and deduplicating rows from every page.

Page 1 is fetched by playlist id and carries the metadata and sort menu.
Every later page is fetched strictly by dequeuing a continuation cursor
(FIFO); each cursor is consumed at most once, which also breaks pagination
loops. Rows are deduplicated by setVideoId on first occurrence and numbered
1..N in that order.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Set

from wlprune import config
from wlprune.env.settings import clamp_int
from wlprune.errors import SortDriftError
from wlprune.logger import get_logger
from wlprune.models import Entry, ScanResult, ScanStats
from wlprune.pipeline.run_state import RunHandle
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.extract import (
    extract_entries_and_continuations,
    extract_playlist_metadata,
    extract_sort_state,
)
from wlprune.utils import utc_now_iso


class Scanner:
    def __init__(
        self,
        service: PlaylistService,
        handle: RunHandle,
        playlist_id: str = config.DEFAULT_PLAYLIST_ID,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.service = service
        self.handle = handle
        self.playlist_id = playlist_id
        self.log = logger or get_logger(__name__)
        self.sleep = sleep

    def fetch_all(
        self,
        page_throttle_ms: int = config.SCAN_PAGE_THROTTLE_MS[0],
        require_sort_order: Optional[int] = None,
        include_raw: bool = False,
        quiet: bool = False,
    ) -> ScanResult:
        """
        Scan the whole playlist.

        Args:
            page_throttle_ms: delay between pages while cursors remain queued
            require_sort_order: if set, page 1 must report this sort order
            include_raw: keep each row's raw renderer node on its Entry
            quiet: report progress at DEBUG instead of INFO

        Raises:
            StoppedError: stop requested between pages
            SortDriftError: page 1 reports a different sort order
        """
        throttle_ms = clamp_int(page_throttle_ms, *config.SCAN_PAGE_THROTTLE_MS)
        level = logging.DEBUG if quiet else logging.INFO
        started_at = utc_now_iso()

        entries: List[Entry] = []
        seen_set_ids: Set[str] = set()
        queue: Deque[str] = deque()
        seen_tokens: Set[str] = set()

        def add_entries(page_entries: List[Entry]) -> int:
            before = len(entries)
            for entry in page_entries:
                if not entry.set_video_id or entry.set_video_id in seen_set_ids:
                    continue
                seen_set_ids.add(entry.set_video_id)
                entries.append(entry)
            return len(entries) - before

        def enqueue(tokens: List[str]) -> None:
            for token in tokens:
                if token not in seen_tokens:
                    queue.append(token)

        # ---- page 1 ----
        self.handle.checkpoint()
        first_json = self.service.browse_playlist(self.playlist_id)
        metadata = extract_playlist_metadata(first_json, self.playlist_id)
        sort_state = extract_sort_state(first_json)

        if require_sort_order is not None and not (
            sort_state is not None and sort_state.matches(require_sort_order)
        ):
            raise SortDriftError(
                require_sort_order,
                sort_state.selected_order if sort_state else None,
                sort_state.selected_title if sort_state else "",
            )

        first = extract_entries_and_continuations(first_json, include_raw=include_raw)
        add_entries(first.entries)
        enqueue(first.continuation_tokens)
        pages = 1
        self.log.log(
            level,
            f"Fetched page {pages}, found {len(first.entries)} entries "
            f"({len(entries)} unique total, {len(queue)} continuation(s) queued).",
        )

        # ---- continuation pages ----
        while queue:
            token = queue.popleft()
            if token in seen_tokens:
                continue

            if throttle_ms > 0:
                self.sleep(throttle_ms / 1000.0)
            self.handle.checkpoint()

            seen_tokens.add(token)

            page_json = self.service.browse_continuation(token)
            page = extract_entries_and_continuations(page_json, include_raw=include_raw)
            added = add_entries(page.entries)
            enqueue(page.continuation_tokens)
            pages += 1

            self.log.log(
                level,
                f"Fetched page {pages}, found {len(page.entries)} entries "
                f"({len(entries)} unique total, +{added} unique, "
                f"{len(queue)} continuation(s) queued).",
            )

        if (
            not quiet
            and pages == 1
            and len(entries) >= config.SINGLE_PAGE_WARNING_THRESHOLD
        ):
            self.log.warning(
                "Only one page fetched and no continuation token was usable."
            )

        indexed = tuple(e.with_order_index(i) for i, e in enumerate(entries, start=1))

        return ScanResult(
            entries=indexed,
            playlist_metadata=metadata,
            sort_state=sort_state,
            scan=ScanStats(
                started_at=started_at,
                finished_at=utc_now_iso(),
                pages_fetched=pages,
                unique_entries=len(indexed),
                tokens_consumed=len(seen_tokens),
            ),
        )
