import threading

import pytest

from wlprune.errors import AlreadyRunningError, StoppedError
from wlprune.pipeline.run_state import (
    RunHandle,
    RunMetadata,
    RunStage,
    RunState,
    RunStatus,
    active_run,
    playlist_run_lock,
)


def test_handle_checkpoint():
    h = RunHandle()
    h.checkpoint()

    h.request_stop()
    assert h.stop_requested
    with pytest.raises(StoppedError):
        h.checkpoint()


def test_stop_from_another_thread():
    h = RunHandle()
    t = threading.Thread(target=h.request_stop)
    t.start()
    t.join()
    assert h.stop_requested


def test_lock_is_per_playlist():
    with playlist_run_lock("WL", "prune"):
        assert active_run("WL") == "prune"
        with playlist_run_lock("PLother", "export"):
            assert active_run("PLother") == "export"
        with pytest.raises(AlreadyRunningError):
            with playlist_run_lock("WL", "export"):
                pass
    assert active_run("WL") is None


def test_lock_released_on_error():
    with pytest.raises(RuntimeError):
        with playlist_run_lock("WL", "prune"):
            raise RuntimeError("boom")
    assert active_run("WL") is None


def test_run_state_transitions():
    s = RunState(metadata=RunMetadata(run_id="r", command="prune", playlist_id="WL"))
    assert s.status == RunStatus.RUNNING

    s.set_stage(RunStage.DELETE)
    s.finish_failed("SortUnverifiable")
    assert s.status == RunStatus.FAILED
    assert s.stop_reason == "SortUnverifiable"
    assert s.stage == RunStage.DELETE
    assert s.runtime_seconds >= 0

    s.finish_ok()
    assert s.stage == RunStage.DONE
