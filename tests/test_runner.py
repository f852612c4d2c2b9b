import pytest
from fakes import FakePlaylistService

from wlprune.auth.errors import AuthInvalid
from wlprune.env import PruneSettings
from wlprune.errors import AlreadyRunningError, RemoteRequestError
from wlprune.pipeline.run_state import RunStatus, active_run, playlist_run_lock
from wlprune.runner import PruneRequest, run_export, run_prune, summarize
from wlprune.utils import read_json

FAST = PruneSettings.sanitize(
    {"scanPageThrottleMs": 0, "deleteThrottleMs": 0, "sortVerifyPollMs": 0}
)


def _prune(svc, handle, tmp_path, no_sleep, **req):
    req.setdefault("count", 3)
    return run_prune(
        svc,
        PruneRequest(**req),
        FAST,
        handle=handle,
        out_dir=tmp_path,
        sleep=no_sleep,
    )


def test_prune_removes_oldest_and_saves_audit(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(10, order=1)
    outcome = _prune(svc, handle, tmp_path, no_sleep, count=3, save_deleted=True)

    assert outcome.status == RunStatus.OK
    assert summarize(outcome) == ("completed", 0)
    assert [r["set_id"] for r in svc.rows] == [f"set{i}" for i in range(4, 11)]
    assert outcome.state.counts.deleted == 3

    audits = list(tmp_path.glob("watch-later-deleted-*.json"))
    assert len(audits) == 1
    doc = read_json(audits[0])
    assert doc["run"]["completed"] is True
    assert doc["run"]["error"] is None
    assert doc["run"]["requestedCount"] == 3
    assert doc["run"]["settingsUsed"]["batchDeleteCount"] == 1
    assert [d["videoId"] for d in doc["deletedEntries"]] == ["vid1", "vid2", "vid3"]


def test_dry_run_deletes_nothing(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(5)
    outcome = _prune(svc, handle, tmp_path, no_sleep, count=2, dry_run=True, save_deleted=True)

    assert outcome.status == RunStatus.OK
    assert outcome.state.counts.selected == 2
    assert svc.remove_calls == []
    assert len(svc.rows) == 5
    assert not list(tmp_path.glob("*.json"))


def test_count_larger_than_playlist_is_truncated(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(5)
    outcome = _prune(svc, handle, tmp_path, no_sleep, count=10)

    assert outcome.status == RunStatus.OK
    assert outcome.state.counts.requested == 10
    assert outcome.state.counts.deleted == 5
    assert svc.rows == []


def test_export_before_writes_pre_delete_snapshot(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(4)
    outcome = _prune(svc, handle, tmp_path, no_sleep, count=1, export_before=True, include_raw=True)

    snaps = list(tmp_path.glob("watch-later-backup-pre-delete-*.json"))
    assert len(snaps) == 1
    doc = read_json(snaps[0])
    assert len(doc["entries"]) == 4
    assert "rawRenderer" in doc["entries"][0]
    assert snaps[0] in outcome.exports


def test_empty_playlist_fails(tmp_path, handle, no_sleep):
    svc = FakePlaylistService([])
    outcome = _prune(svc, handle, tmp_path, no_sleep)

    assert outcome.status == RunStatus.FAILED
    assert summarize(outcome) == ("failed", 20)
    assert "No playlist entries" in outcome.error


def test_stop_mid_delete_keeps_partial_audit(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(10)
    svc.on_remove = lambda _: handle.request_stop()
    outcome = _prune(svc, handle, tmp_path, no_sleep, count=5, save_deleted=True)

    assert outcome.status == RunStatus.STOPPED
    assert summarize(outcome) == ("stopped", 10)
    assert len(outcome.records) == 1

    doc = read_json(next(tmp_path.glob("watch-later-deleted-*.json")))
    assert doc["run"]["completed"] is False
    assert doc["run"]["deletedCount"] == 1
    assert doc["run"]["error"] == "Stopped by user."


def test_sort_unverifiable_fails_before_scan(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(5, order=1)
    svc.flip_after = 99
    outcome = _prune(svc, handle, tmp_path, no_sleep)

    assert outcome.status == RunStatus.FAILED
    assert outcome.state.counts.pages_fetched == 0
    assert svc.remove_calls == []


def test_missing_cookie_is_auth_invalid(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(5)
    svc.fail_all = AuthInvalid("No session cookie configured")
    outcome = _prune(svc, handle, tmp_path, no_sleep)

    assert outcome.status == RunStatus.AUTH_INVALID
    assert summarize(outcome) == ("auth_invalid", 12)


def test_http_401_is_auth_invalid(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(5)
    svc.fail_all = RemoteRequestError("browse/edit_playlist", 401, "unauthorized")
    outcome = _prune(svc, handle, tmp_path, no_sleep)

    assert outcome.status == RunStatus.AUTH_INVALID


def test_audit_write_failure_does_not_change_outcome(tmp_path, handle, no_sleep):
    blocker = tmp_path / "blocked"
    blocker.write_text("x")
    svc = FakePlaylistService.with_rows(3)

    outcome = run_prune(
        svc,
        PruneRequest(count=2, save_deleted=True),
        FAST,
        handle=handle,
        out_dir=blocker,
        sleep=no_sleep,
    )

    assert outcome.status == RunStatus.OK
    assert outcome.exports == []
    assert len(svc.rows) == 1


def test_second_run_on_same_playlist_is_rejected(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(3)

    with playlist_run_lock("WL", "export"):
        with pytest.raises(AlreadyRunningError):
            _prune(svc, handle, tmp_path, no_sleep)

    assert active_run("WL") is None
    assert svc.calls == []


def test_lock_released_after_run(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(3)
    _prune(svc, handle, tmp_path, no_sleep, count=1)
    assert active_run("WL") is None


def test_export_uses_server_order(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(3, order=1)
    outcome = run_export(svc, FAST, handle=handle, out_dir=tmp_path, sleep=no_sleep)

    assert outcome.status == RunStatus.OK
    doc = read_json(outcome.exports[0])
    assert [e["setVideoId"] for e in doc["entries"]] == ["set3", "set2", "set1"]
    assert not [c for c in svc.calls if c[0] == "edit"]


def test_hard_abort_is_recorded_in_audit(tmp_path, handle, no_sleep):
    svc = FakePlaylistService.with_rows(6)
    removed = []

    def abort_on_second(set_id):
        removed.append(set_id)
        if len(removed) == 2:
            raise KeyboardInterrupt

    svc.on_remove = abort_on_second

    with pytest.raises(KeyboardInterrupt):
        _prune(svc, handle, tmp_path, no_sleep, count=4, save_deleted=True)

    doc = read_json(next(tmp_path.glob("watch-later-deleted-*.json")))
    assert doc["run"]["completed"] is False
    assert doc["run"]["error"] == "KeyboardInterrupt"
    assert doc["run"]["deletedCount"] == 1
    assert active_run("WL") is None


def test_run_metadata_carries_process_run_id(tmp_path, handle, no_sleep, monkeypatch):
    monkeypatch.setenv("WLPRUNE_RUN_ID", "2026-02-03_04-05-06")
    svc = FakePlaylistService.with_rows(3)

    outcome = _prune(svc, handle, tmp_path, no_sleep, count=1)

    assert outcome.state.metadata.run_id == "2026-02-03_04-05-06"
