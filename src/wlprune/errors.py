"""
errors.py

Error taxonomy shared by the scan, sort and delete stages.

Only TransientRemoteError raised by a single-item removal triggers the
rescan-and-retry path. Everything else propagates to the orchestrator.
"""

from __future__ import annotations

from typing import Any, Optional

from wlprune import config


class WlPruneError(Exception):
    """Base error for wlprune."""


class StoppedError(WlPruneError):
    """Cooperative cancellation was observed. Not a failure outcome."""

    def __init__(self, message: str = "Stopped by user.") -> None:
        super().__init__(message)


class AlreadyRunningError(WlPruneError):
    """Another run already holds the playlist."""


class EmptyPlaylistError(WlPruneError):
    pass


# ============================================================
# Sort order
# ============================================================


class SortUnverifiable(WlPruneError):
    """Sort order could not be verified within the allowed attempts."""

    def __init__(self, target_order: int, attempts: int) -> None:
        super().__init__(
            f"Could not verify sort order={target_order} after {attempts} attempt(s). "
            "Stop playlist changes from all devices/sessions and retry."
        )
        self.target_order = target_order
        self.attempts = attempts


class SortDriftError(WlPruneError):
    """The first scanned page disagrees with the required order."""

    def __init__(
        self,
        expected: int,
        observed: Optional[int],
        observed_title: str = "",
    ) -> None:
        shown = observed if observed is not None else "unknown"
        super().__init__(
            f"Sort drift detected while scanning: expected order={expected} "
            f"but got order={shown} ({observed_title or 'unknown'})."
        )
        self.expected = expected
        self.observed = observed
        self.observed_title = observed_title


# ============================================================
# Reconciliation
# ============================================================


class ReconciliationError(WlPruneError):
    def __init__(self, message: str, target: Any) -> None:
        super().__init__(message)
        self.target = target


class ReconciliationAmbiguous(ReconciliationError):
    """Two fresh candidates tie on score and distance."""


class ReconciliationNotFound(ReconciliationError):
    """No fresh candidate shares any identifying field with the target."""


# ============================================================
# Remote service
# ============================================================


def is_transient_signal(status: Optional[int], text: str) -> bool:
    if status in config.TRANSIENT_STATUS_CODES:
        return True
    return bool(config.TRANSIENT_BODY_RE.search(text or ""))


class RemoteRequestError(WlPruneError):
    """Non-2xx response from the remote playlist service."""

    def __init__(self, path: str, status: Optional[int], body: str = "") -> None:
        preview = (body or "")[: config.ERROR_BODY_PREVIEW_CHARS]
        super().__init__(f"youtubei {path} failed ({status}): {preview}")
        self.path = path
        self.status = status
        self.body = body or ""

    @property
    def transient(self) -> bool:
        return is_transient_signal(self.status, f"{self}\n{self.body}")


class TransientRemoteError(RemoteRequestError):
    """A failure the server may stop reporting after a refresh (409 / ABORTED)."""


class EditRejectedError(WlPruneError):
    """edit_playlist answered 2xx but with a status other than STATUS_SUCCEEDED."""

    def __init__(self, action_label: str, status: str) -> None:
        super().__init__(f'{action_label} failed with API status "{status}".')
        self.action_label = action_label
        self.status = status


def remote_error(path: str, status: Optional[int], body: str = "") -> RemoteRequestError:
    """Build the right RemoteRequestError subclass for a failed response."""
    err = RemoteRequestError(path, status, body)
    if err.transient:
        return TransientRemoteError(path, status, body)
    return err


def should_retry_with_rescan(exc: BaseException) -> bool:
    if isinstance(exc, TransientRemoteError):
        return True
    if isinstance(exc, EditRejectedError):
        return is_transient_signal(None, str(exc))
    return False


class ExportError(WlPruneError):
    """An export document could not be written. Never undoes deletions."""
