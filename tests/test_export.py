import pytest
from fakes import FakePlaylistService

from wlprune import config
from wlprune.errors import ExportError
from wlprune.models import AuditRecord
from wlprune.stages.export import (
    DeletionRunInfo,
    build_deletion_audit,
    build_snapshot,
    playlist_url,
    save_deletion_audit,
    save_snapshot,
)
from wlprune.stages.scan import Scanner
from wlprune.utils import read_json


def _scan(handle, no_sleep, n=3, include_raw=False):
    svc = FakePlaylistService.with_rows(n, report_count=True)
    return Scanner(svc, handle, sleep=no_sleep).fetch_all(include_raw=include_raw)


def _record(i):
    return AuditRecord(
        sequence_number=i,
        timestamp="2026-01-01T00:00:00.000Z",
        order_index_at_scan=i,
        set_video_id=f"set{i}",
        video_id=f"vid{i}",
        title=f"Video {i}",
        channel_name="Chan",
        published_time_text="",
        length_text="1:00",
    )


def test_snapshot_document_shape(handle, no_sleep):
    result = _scan(handle, no_sleep)
    doc = build_snapshot(result, "WL", exported_at="2026-02-03T04:05:06.789Z")

    assert doc["schemaVersion"] == config.EXPORT_SCHEMA_VERSION
    assert doc["exportedAt"] == "2026-02-03T04:05:06.789Z"
    assert doc["sourceRef"] == playlist_url("WL")
    assert doc["playlistId"] == "WL"
    assert doc["orderingSemantics"] == config.ORDERING_SEMANTICS
    assert doc["playlistMetadata"]["reportedVideoCount"] == 3
    assert doc["sortState"]["selectedOrder"] == 2
    assert doc["scanStats"]["pagesFetched"] == 1
    assert [e["orderIndex"] for e in doc["entries"]] == [1, 2, 3]
    assert "rawRenderer" not in doc["entries"][0]


def test_snapshot_with_raw(handle, no_sleep):
    result = _scan(handle, no_sleep, include_raw=True)
    doc = build_snapshot(result, "WL")
    assert doc["entries"][0]["rawRenderer"]["videoId"] == "vid1"


def test_save_snapshot_writes_json(tmp_path, handle, no_sleep):
    result = _scan(handle, no_sleep)
    path = save_snapshot(result, "WL", tmp_path, config.PRE_DELETE_SNAPSHOT_PREFIX)

    assert path.name.startswith("watch-later-backup-pre-delete-")
    assert path.suffix == ".json"
    assert ":" not in path.name
    data = read_json(path)
    assert len(data["entries"]) == 3
    assert not list(tmp_path.glob("*.tmp"))


def test_deletion_audit_shape(tmp_path):
    run = DeletionRunInfo(
        started_at="a",
        finished_at="b",
        requested_count=5,
        deleted_count=2,
        settings_used={"batchDeleteCount": 1},
        completed=False,
        error="Stopped by user.",
    )
    doc = build_deletion_audit([_record(1), _record(2)], run, "WL")

    assert doc["run"] == {
        "startedAt": "a",
        "finishedAt": "b",
        "requestedCount": 5,
        "deletedCount": 2,
        "settingsUsed": {"batchDeleteCount": 1},
        "completed": False,
        "error": "Stopped by user.",
    }
    assert [d["sequenceNumber"] for d in doc["deletedEntries"]] == [1, 2]
    assert doc["deletedEntries"][0]["orderIndexAtScan"] == 1

    path = save_deletion_audit([_record(1)], run, "WL", tmp_path)
    assert path.name.startswith("watch-later-deleted-")


def test_write_failure_raises_export_error(tmp_path, handle, no_sleep):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")

    with pytest.raises(ExportError):
        save_snapshot(_scan(handle, no_sleep), "WL", blocker)
