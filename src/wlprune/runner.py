from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from wlprune import config
from wlprune.auth.errors import AuthError, AuthInvalid
from wlprune.env import current_run_id
from wlprune.env.settings import PruneSettings
from wlprune.errors import (
    EmptyPlaylistError,
    ExportError,
    RemoteRequestError,
    StoppedError,
    WlPruneError,
)
from wlprune.logger import get_logger
from wlprune.models import AuditRecord, DeletionTarget, ScanResult
from wlprune.pipeline.run_state import (
    RunHandle,
    RunMetadata,
    RunStage,
    RunState,
    RunStatus,
    playlist_run_lock,
)
from wlprune.providers.base import PlaylistService
from wlprune.stages.delete import DeletionEngine
from wlprune.stages.export import (
    DeletionRunInfo,
    save_deletion_audit,
    save_snapshot,
)
from wlprune.stages.scan import Scanner
from wlprune.stages.sort_order import SortEnforcer
from wlprune.utils import utc_now_iso


@dataclass(frozen=True)
class PruneRequest:
    count: int
    dry_run: bool = False
    export_before: bool = False
    include_raw: bool = False
    save_deleted: bool = False


@dataclass
class RunOutcome:
    state: RunState
    records: List[AuditRecord] = field(default_factory=list)
    exports: List[Path] = field(default_factory=list)
    error: Optional[str] = None
    scan: Optional[ScanResult] = None

    @property
    def status(self) -> RunStatus:
        return self.state.status


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------


def _classify_failure(exc: BaseException) -> RunStatus:
    if isinstance(exc, AuthInvalid):
        return RunStatus.AUTH_INVALID
    if isinstance(exc, RemoteRequestError) and exc.status in (401, 403):
        return RunStatus.AUTH_INVALID
    return RunStatus.FAILED


def _note_reported_count(log: logging.Logger, result: ScanResult) -> None:
    reported = result.playlist_metadata.reported_video_count
    if reported is not None and reported != len(result.entries):
        log.warning(
            f"YouTube reports {reported} videos, but {len(result.entries)} entries had "
            "extractable playlist data. Private/deleted/unavailable rows can cause this gap."
        )


def _new_state(command: str, playlist_id: str) -> RunState:
    return RunState(
        metadata=RunMetadata(
            run_id=current_run_id(), command=command, playlist_id=playlist_id
        )
    )


# ------------------------------------------------------------
# Prune
# ------------------------------------------------------------


def run_prune(
    service: PlaylistService,
    request: PruneRequest,
    settings: PruneSettings,
    *,
    handle: RunHandle,
    out_dir: Path,
    playlist_id: str = config.DEFAULT_PLAYLIST_ID,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """
    Force oldest-first, scan, then remove the oldest `request.count` rows.

    The deletion audit (if requested) is written on every exit path once at
    least one row was removed; an export failure is logged and never changes
    the deletion outcome.

    Raises:
        AlreadyRunningError: another run holds this playlist
    """
    log = logger or get_logger("wlprune.runner")
    state = _new_state("prune", playlist_id)
    outcome = RunOutcome(state=state)
    run_started = utc_now_iso()
    engine: Optional[DeletionEngine] = None
    completed = False

    with playlist_run_lock(playlist_id, "prune"):
        try:
            if request.count < 1:
                raise WlPruneError("N must be a positive number.")
            state.counts.requested = request.count

            log.info(f"Scanning playlist {playlist_id}... target remove count: {request.count}.")
            log.info(
                f"Settings: scanDelay={settings.scan_page_throttle_ms}ms, "
                f"deleteDelay={settings.delete_throttle_ms}ms, "
                f"sortVerify={settings.sort_verify_max_attempts} attempts @ "
                f"{settings.sort_verify_poll_ms}ms, batchDelete={settings.batch_delete_count}."
            )

            state.set_stage(RunStage.SORT_VERIFY)
            log.info(
                f"Forcing sort to oldest-first (playlistVideoOrder={config.OLDEST_FIRST_SORT_ORDER})..."
            )
            verified = SortEnforcer(
                service, handle, playlist_id, logger=log, sleep=sleep
            ).ensure_order(
                config.OLDEST_FIRST_SORT_ORDER,
                settings.sort_verify_max_attempts,
                settings.sort_verify_poll_ms,
            )
            log.info(
                "Selection rule: delete from the START of oldest-first order "
                f"({verified.selected_title or 'Date added (oldest)'})."
            )

            state.set_stage(RunStage.SCAN)
            scanner = Scanner(service, handle, playlist_id, logger=log, sleep=sleep)
            result = scanner.fetch_all(
                settings.scan_page_throttle_ms,
                require_sort_order=config.OLDEST_FIRST_SORT_ORDER,
                include_raw=request.export_before and request.include_raw,
            )
            outcome.scan = result
            state.counts.pages_fetched = result.scan.pages_fetched

            if not result.entries:
                raise EmptyPlaylistError("No playlist entries found.")
            _note_reported_count(log, result)

            if request.export_before:
                state.set_stage(RunStage.EXPORT)
                path = save_snapshot(
                    result, playlist_id, out_dir, config.PRE_DELETE_SNAPSHOT_PREFIX
                )
                outcome.exports.append(path)
                log.info(f"Export complete. Saved {len(result.entries)} entries to {path}.")

            if request.dry_run and request.save_deleted:
                log.info("Save-deleted option is ignored in dry run (nothing is deleted).")

            remove_count = min(request.count, len(result.entries))
            targets = [DeletionTarget.from_entry(e) for e in result.entries[:remove_count]]
            state.counts.selected = remove_count
            log.info(
                f"Playlist size detected: {len(result.entries)}. "
                f"Oldest {remove_count} entries selected."
            )

            if request.dry_run:
                log.info("Dry run enabled. No deletion performed.")
                log.info(f"First deletion target (oldest): {targets[0].describe()}")
                log.info(f"Last deletion target (newer edge): {targets[-1].describe()}")
                completed = True
                state.finish_ok()
                return outcome

            state.set_stage(RunStage.DELETE)
            log.info(
                f"Delete execution: batchSize={min(settings.batch_delete_count, remove_count)}, "
                f"inter-request delay={settings.delete_throttle_ms}ms."
            )
            engine = DeletionEngine(
                service,
                handle,
                rescan=lambda: scanner.fetch_all(
                    settings.scan_page_throttle_ms,
                    require_sort_order=config.OLDEST_FIRST_SORT_ORDER,
                    quiet=True,
                ).entries,
                playlist_id=playlist_id,
                logger=log,
                sleep=sleep,
            )
            engine.run(targets, settings.batch_delete_count, settings.delete_throttle_ms)

            log.info(f"Done. Removed {len(targets)} video(s) from playlist {playlist_id}.")
            completed = True
            state.finish_ok()

        except StoppedError as e:
            outcome.error = str(e)
            state.finish_stopped()
            log.warning(f"Stopped: {e}")

        except (WlPruneError, AuthError) as e:
            outcome.error = str(e)
            state.finish_failed(type(e).__name__, _classify_failure(e))
            log.error(f"Error: {e}")

        except BaseException as e:
            # Hard abort (second Ctrl-C) or a bug: record it, then let it unwind.
            outcome.error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            state.finish_failed(type(e).__name__)
            log.error(f"Aborted: {outcome.error}")
            raise

        finally:
            if engine is not None:
                outcome.records = list(engine.records)
                state.counts.deleted = len(engine.records)
                state.counts.reconciled = engine.reconciled

            if request.save_deleted and not request.dry_run:
                _export_deleted(
                    log,
                    outcome,
                    DeletionRunInfo(
                        started_at=run_started,
                        finished_at=utc_now_iso(),
                        requested_count=request.count,
                        deleted_count=len(outcome.records),
                        settings_used=settings.as_dict(),
                        completed=completed,
                        error=outcome.error,
                    ),
                    playlist_id,
                    out_dir,
                )

    return outcome


def _export_deleted(
    log: logging.Logger,
    outcome: RunOutcome,
    run: DeletionRunInfo,
    playlist_id: str,
    out_dir: Path,
) -> None:
    if not outcome.records:
        if not run.completed:
            log.info("No deleted items to export for this run.")
        return
    try:
        path = save_deletion_audit(outcome.records, run, playlist_id, out_dir)
    except ExportError as e:
        log.error(f"Error: failed to save deleted-videos export: {e}")
        return
    outcome.exports.append(path)
    log.info(
        f"Deleted-videos export complete. Saved {len(outcome.records)} entries to {path}."
    )


# ------------------------------------------------------------
# Export only
# ------------------------------------------------------------


def run_export(
    service: PlaylistService,
    settings: PruneSettings,
    *,
    handle: RunHandle,
    out_dir: Path,
    playlist_id: str = config.DEFAULT_PLAYLIST_ID,
    include_raw: bool = False,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """Scan in whatever order the server currently has and write a snapshot."""
    log = logger or get_logger("wlprune.runner")
    state = _new_state("export", playlist_id)
    outcome = RunOutcome(state=state)

    with playlist_run_lock(playlist_id, "export"):
        try:
            log.info(
                f"Scanning playlist {playlist_id} for JSON export... "
                f"includeRawRenderer={'yes' if include_raw else 'no'}."
            )
            state.set_stage(RunStage.SCAN)
            result = Scanner(
                service, handle, playlist_id, logger=log, sleep=sleep
            ).fetch_all(settings.scan_page_throttle_ms, include_raw=include_raw)
            outcome.scan = result
            state.counts.pages_fetched = result.scan.pages_fetched

            state.set_stage(RunStage.EXPORT)
            path = save_snapshot(result, playlist_id, out_dir)
            outcome.exports.append(path)
            log.info(f"Export complete. Saved {len(result.entries)} entries to {path}.")
            _note_reported_count(log, result)
            state.finish_ok()

        except StoppedError as e:
            outcome.error = str(e)
            state.finish_stopped()
            log.warning(f"Stopped: {e}")

        except (WlPruneError, AuthError) as e:
            outcome.error = str(e)
            state.finish_failed(type(e).__name__, _classify_failure(e))
            log.error(f"Error: {e}")

        except BaseException as e:
            outcome.error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            state.finish_failed(type(e).__name__)
            log.error(f"Aborted: {outcome.error}")
            raise

    return outcome


def summarize(outcome: RunOutcome) -> Tuple[str, int]:
    """(RUN_STATUS value, process exit code)"""
    status = outcome.status
    if status == RunStatus.OK:
        return "completed", 0
    if status == RunStatus.STOPPED:
        return "stopped", 10
    if status == RunStatus.AUTH_INVALID:
        return "auth_invalid", 12
    return "failed", 20
