from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional

from wlprune.errors import AlreadyRunningError, StoppedError


class RunStatus(str, Enum):
    OK = "ok"
    STOPPED = "stopped"
    FAILED = "failed"
    AUTH_INVALID = "auth_invalid"
    RUNNING = "running"


class RunStage(str, Enum):
    INIT = "init"
    SORT_VERIFY = "sort_verify"
    SCAN = "scan"
    DELETE = "delete"
    EXPORT = "export"
    DONE = "done"


# ------------------------------------------------------------------
# Cancellation handle
# ------------------------------------------------------------------


class RunHandle:
    """
    Cooperative cancellation flag owned by the orchestrator.

    Engines call checkpoint() at loop boundaries only (before a page fetch,
    a sort-verify attempt, a deletion batch). An in-flight call is never
    interrupted.
    """

    def __init__(self) -> None:
        self._stop = threading.Event()

    def request_stop(self) -> None:
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def checkpoint(self) -> None:
        if self._stop.is_set():
            raise StoppedError()


# ------------------------------------------------------------------
# Reentrancy guard
# ------------------------------------------------------------------

_LOCKS_GUARD = threading.Lock()
_ACTIVE: Dict[str, str] = {}


@contextmanager
def playlist_run_lock(playlist_id: str, run_kind: str) -> Iterator[None]:
    """
    At most one engine run (prune or export) per playlist at a time.

    Raises AlreadyRunningError instead of waiting.
    """
    with _LOCKS_GUARD:
        holder = _ACTIVE.get(playlist_id)
        if holder is not None:
            raise AlreadyRunningError(
                f"A {holder} run is already active for playlist {playlist_id}."
            )
        _ACTIVE[playlist_id] = run_kind
    try:
        yield
    finally:
        with _LOCKS_GUARD:
            _ACTIVE.pop(playlist_id, None)


def active_run(playlist_id: str) -> Optional[str]:
    with _LOCKS_GUARD:
        return _ACTIVE.get(playlist_id)


# ------------------------------------------------------------------
# Run state
# ------------------------------------------------------------------


@dataclass
class RunCounts:
    requested: int = 0
    selected: int = 0
    deleted: int = 0
    reconciled: int = 0
    pages_fetched: int = 0


@dataclass
class RunMetadata:
    run_id: str
    command: str
    playlist_id: str
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None


@dataclass
class RunState:
    """
    Canonical runtime state for one wlprune execution.

    This object is mutated by the runner only.
    CLI, logging, and summaries must treat it as read-only.
    """

    metadata: RunMetadata
    status: RunStatus = RunStatus.RUNNING
    stage: RunStage = RunStage.INIT
    counts: RunCounts = field(default_factory=RunCounts)
    stop_reason: Optional[str] = None

    def set_stage(self, stage: RunStage) -> None:
        self.stage = stage

    def finish_ok(self) -> None:
        self.status = RunStatus.OK
        self.stage = RunStage.DONE
        self.metadata.finished_at = time.time()

    def finish_stopped(self) -> None:
        self.status = RunStatus.STOPPED
        self.stop_reason = "stopped_by_user"
        self.metadata.finished_at = time.time()

    def finish_failed(self, reason: str, status: RunStatus = RunStatus.FAILED) -> None:
        self.status = status
        self.stop_reason = reason
        self.metadata.finished_at = time.time()

    @property
    def runtime_seconds(self) -> float:
        end = self.metadata.finished_at or time.time()
        return round(end - self.metadata.started_at, 2)
