"""
delete.py

Removes a prefix of the verified-ordered playlist, oldest first.

Each batch is first tried as one multi-action edit. If that call fails, the
batch (and only that batch) falls back to one edit per row. A single-row
edit that fails with a transient signal (409 / ABORTED / "something went
wrong") triggers one rescan + reconciliation + retry; any other failure, or a
reconciliation miss, propagates. Nothing is skipped and nothing is guessed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence

from wlprune import config
from wlprune.env.settings import clamp_int
from wlprune.errors import (
    EditRejectedError,
    ReconciliationAmbiguous,
    ReconciliationNotFound,
    RemoteRequestError,
    should_retry_with_rescan,
)
from wlprune.logger import get_logger
from wlprune.matching import find_replacement
from wlprune.models import AuditRecord, DeletionTarget, Entry
from wlprune.pipeline.run_state import RunHandle
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.actions import remove_videos
from wlprune.utils import utc_now_iso

Rescan = Callable[[], Sequence[Entry]]


class DeletionEngine:
    """
    Audit records are appended to `records` as each removal is confirmed, so
    the orchestrator can still export a partial trail after a stop or a
    failure.
    """

    def __init__(
        self,
        service: PlaylistService,
        handle: RunHandle,
        rescan: Rescan,
        playlist_id: str = config.DEFAULT_PLAYLIST_ID,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.service = service
        self.handle = handle
        self.rescan = rescan
        self.playlist_id = playlist_id
        self.log = logger or get_logger(__name__)
        self.sleep = sleep
        self.clock = clock
        self.records: List[AuditRecord] = []
        self.reconciled = 0
        self._total = 0

    def run(
        self,
        targets: Sequence[DeletionTarget],
        batch_size: int = config.BATCH_DELETE_COUNT[0],
        per_batch_delay_ms: int = config.DELETE_THROTTLE_MS[0],
    ) -> List[AuditRecord]:
        """
        Raises:
            StoppedError: stop requested at a batch boundary
            ReconciliationAmbiguous / ReconciliationNotFound: stale row not re-identified
            RemoteRequestError / EditRejectedError: non-transient removal failure
        """
        batch_size = clamp_int(batch_size, *config.BATCH_DELETE_COUNT)
        delay_ms = clamp_int(per_batch_delay_ms, *config.DELETE_THROTTLE_MS)
        batch_size = min(batch_size, max(1, len(targets)))

        self.records = []
        self.reconciled = 0
        self._total = len(targets)

        self.log.info(
            f"Deleting in batches of up to {batch_size}..."
            if batch_size > 1
            else "Deleting..."
        )

        for cursor in range(0, len(targets), batch_size):
            self.handle.checkpoint()

            batch = list(targets[cursor : cursor + batch_size])
            if len(batch) > 1:
                self._process_batch(batch)
            else:
                self._process_one(batch[0])

            if cursor + batch_size < len(targets):
                self.sleep(delay_ms / 1000.0)

        return list(self.records)

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _process_batch(self, batch: List[DeletionTarget]) -> None:
        try:
            remove_videos(
                self.service, self.playlist_id, [t.set_video_id for t in batch]
            )
        except (RemoteRequestError, EditRejectedError) as err:
            self.log.warning(
                f"Batch delete request failed for {len(batch)} item(s). "
                f"Falling back to per-item for this batch. Error: {err}"
            )
            for target in batch:
                self.handle.checkpoint()
                self._process_one(target)
            return

        for target in batch:
            self._record(target, "batch")

    def _process_one(self, target: DeletionTarget) -> None:
        try:
            remove_videos(self.service, self.playlist_id, [target.set_video_id])
        except (RemoteRequestError, EditRejectedError) as err:
            if not should_retry_with_rescan(err):
                raise
            target = self._reconcile(target)
            remove_videos(self.service, self.playlist_id, [target.set_video_id])
            self.reconciled += 1
            self.log.info(
                f"Recovered with refreshed setVideoId for videoId="
                f"{target.entry.video_id or 'unknown'}."
            )
        self._record(target, "single")

    def _reconcile(self, target: DeletionTarget) -> DeletionTarget:
        self.log.warning(
            f"Delete failed for {target.describe()}. Rescanning to refresh setVideoId..."
        )
        fresh = self.rescan()
        match = find_replacement(fresh, target)

        if match.ambiguous:
            raise ReconciliationAmbiguous(
                f"Delete failed and the best rescanned candidates tie ({match.candidates} scored). "
                "Avoid playlist changes while running; duplicate rows can also cause "
                f"ambiguity. Original: {target.describe()}",
                target,
            )
        if match.entry is None:
            raise ReconciliationNotFound(
                "Delete failed and the item could not be found after rescan. "
                f"Original: {target.describe()}",
                target,
            )

        return DeletionTarget.from_entry(match.entry)

    def _record(self, target: DeletionTarget, mode: str) -> None:
        entry = target.entry
        record = AuditRecord(
            sequence_number=len(self.records) + 1,
            timestamp=self.clock(),
            order_index_at_scan=target.order_index,
            set_video_id=entry.set_video_id,
            video_id=entry.video_id,
            title=entry.title,
            channel_name=entry.channel_name,
            published_time_text=entry.published_time_text,
            length_text=entry.length_text,
        )
        self.records.append(record)
        self.log.info(
            f"Removed {record.sequence_number}/{self._total} [{mode}]: "
            f"videoId={entry.video_id or 'unknown'} | "
            f'title="{entry.title or "unknown"}" | setVideoId={entry.set_video_id}'
        )
