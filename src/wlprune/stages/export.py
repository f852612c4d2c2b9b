"""
export.py

Portable JSON documents: a playlist snapshot and a deletion-run audit.

build_* functions are pure; save_* functions only add serialization. Field
names and nesting are consumed by downstream tooling and must stay stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from wlprune import config
from wlprune.errors import ExportError
from wlprune.models import AuditRecord, ScanResult, entries_to_dicts
from wlprune.utils import file_stamp, utc_now_iso, write_json


def playlist_url(playlist_id: str) -> str:
    return f"{config.ORIGIN}/playlist?list={playlist_id}"


@dataclass(frozen=True)
class DeletionRunInfo:
    started_at: str
    finished_at: str
    requested_count: Optional[int]
    deleted_count: int
    settings_used: Dict[str, Any] = field(default_factory=dict)
    completed: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": self.started_at,
            "finishedAt": self.finished_at,
            "requestedCount": self.requested_count,
            "deletedCount": self.deleted_count,
            "settingsUsed": dict(self.settings_used),
            "completed": self.completed,
            "error": self.error,
        }


def build_snapshot(
    result: ScanResult,
    playlist_id: str,
    *,
    source_ref: Optional[str] = None,
    exported_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "schemaVersion": config.EXPORT_SCHEMA_VERSION,
        "exportedAt": exported_at or utc_now_iso(),
        "sourceRef": source_ref or playlist_url(playlist_id),
        "playlistId": playlist_id,
        "orderingSemantics": config.ORDERING_SEMANTICS,
        "playlistMetadata": result.playlist_metadata.to_dict(),
        "sortState": result.sort_state.to_dict() if result.sort_state else None,
        "scanStats": result.scan.to_dict(),
        "entries": entries_to_dicts(list(result.entries)),
    }


def build_deletion_audit(
    records: Sequence[AuditRecord],
    run: DeletionRunInfo,
    playlist_id: str,
    *,
    source_ref: Optional[str] = None,
    exported_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "schemaVersion": config.EXPORT_SCHEMA_VERSION,
        "exportedAt": exported_at or utc_now_iso(),
        "sourceRef": source_ref or playlist_url(playlist_id),
        "playlistId": playlist_id,
        "run": run.to_dict(),
        "deletedEntries": [r.to_dict() for r in records],
    }


def _write(doc: Dict[str, Any], out_dir: Path, prefix: str) -> Path:
    path = out_dir / f"{prefix}-{file_stamp(doc['exportedAt'])}.json"
    try:
        write_json(path, doc)
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path


def save_snapshot(
    result: ScanResult,
    playlist_id: str,
    out_dir: Path,
    prefix: str = config.SNAPSHOT_FILENAME_PREFIX,
) -> Path:
    return _write(build_snapshot(result, playlist_id), out_dir, prefix)


def save_deletion_audit(
    records: Sequence[AuditRecord],
    run: DeletionRunInfo,
    playlist_id: str,
    out_dir: Path,
    prefix: str = config.DELETED_FILENAME_PREFIX,
) -> Path:
    return _write(build_deletion_audit(records, run, playlist_id), out_dir, prefix)
