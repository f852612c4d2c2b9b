import pytest
from fakes import FakePlaylistService, make_row

from wlprune.errors import (
    ReconciliationAmbiguous,
    ReconciliationNotFound,
    RemoteRequestError,
    StoppedError,
    TransientRemoteError,
    remote_error,
)
from wlprune.models import DeletionTarget, Entry
from wlprune.stages.delete import DeletionEngine
from wlprune.stages.scan import Scanner


def _setup(svc, handle, no_sleep):
    scanner = Scanner(svc, handle, sleep=no_sleep)
    entries = scanner.fetch_all(page_throttle_ms=0).entries
    engine = DeletionEngine(
        svc,
        handle,
        rescan=lambda: scanner.fetch_all(page_throttle_ms=0, quiet=True).entries,
        sleep=no_sleep,
        clock=lambda: "2026-01-01T00:00:00.000Z",
    )
    return engine, [DeletionTarget.from_entry(e) for e in entries]


def test_single_mode_removes_in_order(handle, no_sleep):
    svc = FakePlaylistService.with_rows(8)
    engine, targets = _setup(svc, handle, no_sleep)

    records = engine.run(targets[:5], batch_size=1, per_batch_delay_ms=20)

    assert [r.set_video_id for r in records] == [f"set{i}" for i in range(1, 6)]
    assert [r.sequence_number for r in records] == [1, 2, 3, 4, 5]
    assert [r.order_index_at_scan for r in records] == [1, 2, 3, 4, 5]
    assert svc.remove_calls == [[f"set{i}"] for i in range(1, 6)]
    assert len(svc.rows) == 3
    # no delay after the last batch
    assert no_sleep.calls == [0.02] * 4


def test_batches_group_removals(handle, no_sleep):
    svc = FakePlaylistService.with_rows(10)
    engine, targets = _setup(svc, handle, no_sleep)

    engine.run(targets[:7], batch_size=3, per_batch_delay_ms=0)

    assert [len(c) for c in svc.remove_calls] == [3, 3, 1]
    assert len(engine.records) == 7


def test_batch_size_capped_by_target_count(handle, no_sleep):
    svc = FakePlaylistService.with_rows(10)
    engine, targets = _setup(svc, handle, no_sleep)

    engine.run(targets[:2], batch_size=50)
    assert svc.remove_calls == [["set1", "set2"]]


def test_failed_batch_falls_back_per_item(handle, no_sleep):
    svc = FakePlaylistService.with_rows(10)
    svc.reject_batches = True
    engine, targets = _setup(svc, handle, no_sleep)

    records = engine.run(targets[:5], batch_size=3, per_batch_delay_ms=0)

    assert [len(c) for c in svc.remove_calls] == [3, 1, 1, 1, 2, 1, 1]
    assert [r.set_video_id for r in records] == [f"set{i}" for i in range(1, 6)]


def test_stale_set_video_id_is_reconciled(handle, no_sleep):
    svc = FakePlaylistService.with_rows(6)
    engine, targets = _setup(svc, handle, no_sleep)

    # another session re-added row 2, giving it a new setVideoId
    svc.reassign("set2", "set2-new")

    records = engine.run(targets[:3], batch_size=1, per_batch_delay_ms=0)

    assert [r.set_video_id for r in records] == ["set1", "set2-new", "set3"]
    assert records[1].video_id == "vid2"
    assert engine.reconciled == 1
    assert svc.remove_calls == [["set1"], ["set2"], ["set2-new"], ["set3"]]


def test_reconcile_not_found(handle, no_sleep):
    svc = FakePlaylistService.with_rows(4)
    engine, targets = _setup(svc, handle, no_sleep)

    # row 2 removed elsewhere before we got to it
    svc.rows = [r for r in svc.rows if r["set_id"] != "set2"]

    with pytest.raises(ReconciliationNotFound):
        engine.run(targets[:3], batch_size=1)

    assert [r.set_video_id for r in engine.records] == ["set1"]


def test_reconcile_ambiguous_duplicates(handle, no_sleep):
    dup = dict(video_id="dup", title="Same", channel="Same", length="1:00", published="x")
    svc = FakePlaylistService(
        [make_row(1), make_row(2, set_id="dupA", **dup), make_row(3), make_row(4, set_id="dupB", **dup)]
    )
    engine, _ = _setup(svc, handle, no_sleep)

    stale = Entry(
        set_video_id="gone",
        video_id="dup",
        title="Same",
        channel_name="Same",
        length_text="1:00",
        published_time_text="x",
        order_index=3,
    )
    with pytest.raises(ReconciliationAmbiguous):
        engine.run([DeletionTarget.from_entry(stale)], batch_size=1)

    assert len(svc.rows) == 4


def test_non_transient_failure_propagates(handle, no_sleep):
    svc = FakePlaylistService.with_rows(4)
    engine, targets = _setup(svc, handle, no_sleep)
    svc.fail_next.append(RemoteRequestError("browse/edit_playlist", 400, "bad request"))

    with pytest.raises(RemoteRequestError) as ei:
        engine.run(targets[:2], batch_size=1)

    assert ei.value.status == 400
    assert engine.records == []
    # no rescan was attempted
    assert not [c for c in svc.calls[1:] if c[0] == "browse"]


def test_second_transient_failure_after_rescan_propagates(handle, no_sleep):
    svc = FakePlaylistService.with_rows(4)
    engine, targets = _setup(svc, handle, no_sleep)
    setup_calls = len(svc.calls)
    for _ in range(2):
        svc.fail_next.append(
            remote_error("browse/edit_playlist", 409, '{"error": {"status": "ABORTED"}}')
        )

    with pytest.raises(TransientRemoteError):
        engine.run(targets[:1], batch_size=1)

    after = svc.calls[setup_calls:]
    assert len([c for c in after if c[0] == "edit"]) == 2
    assert len([c for c in after if c[0] == "browse"]) == 1
    assert engine.records == []
    assert engine.reconciled == 0
    assert len(svc.rows) == 4


def test_stop_at_batch_boundary(handle, no_sleep):
    svc = FakePlaylistService.with_rows(6)
    engine, targets = _setup(svc, handle, no_sleep)
    svc.on_remove = lambda _: handle.request_stop()

    with pytest.raises(StoppedError):
        engine.run(targets[:4], batch_size=1, per_batch_delay_ms=0)

    assert [r.set_video_id for r in engine.records] == ["set1"]
    assert len(svc.rows) == 5
