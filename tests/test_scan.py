import logging

import pytest
from fakes import FakePlaylistService, continuation_page, first_page, make_row, video_renderer

from wlprune.errors import SortDriftError, StoppedError
from wlprune.stages.scan import Scanner


def test_scan_paginates_all_entries(handle, no_sleep):
    svc = FakePlaylistService.with_rows(250, page_size=100)
    result = Scanner(svc, handle, sleep=no_sleep).fetch_all(page_throttle_ms=50)

    assert len(result.entries) == 250
    assert result.scan.pages_fetched == 3
    assert result.scan.unique_entries == 250
    assert result.scan.tokens_consumed == 2
    assert [e.order_index for e in result.entries] == list(range(1, 251))
    assert result.entries[0].set_video_id == "set1"
    assert no_sleep.calls == [0.05, 0.05]


def test_scan_zero_throttle_never_sleeps(handle, no_sleep):
    svc = FakePlaylistService.with_rows(30, page_size=10)
    Scanner(svc, handle, sleep=no_sleep).fetch_all(page_throttle_ms=0)
    assert no_sleep.calls == []


class OverlappingPages(FakePlaylistService):
    """Continuation pages overlap and point back at an already-used cursor."""

    def browse_playlist(self, playlist_id):
        self.calls.append(("browse", playlist_id))
        items = [video_renderer(make_row(i)) for i in (1, 2, 3)]
        items.append({"continuationItemRenderer": {"continuationEndpoint": {"continuationCommand": {"token": "A"}}}})
        return first_page(items)

    def browse_continuation(self, token):
        self.calls.append(("continuation", token))
        items = [video_renderer(make_row(i)) for i in (3, 4)]
        items.append({"continuationItemRenderer": {"continuationEndpoint": {"continuationCommand": {"token": "A"}}}})
        return continuation_page(items)


def test_scan_dedupes_and_consumes_each_token_once(handle, no_sleep):
    svc = OverlappingPages([])
    result = Scanner(svc, handle, sleep=no_sleep).fetch_all()

    assert [e.set_video_id for e in result.entries] == ["set1", "set2", "set3", "set4"]
    assert [c for c in svc.calls if c[0] == "continuation"] == [("continuation", "A")]


def test_scan_detects_sort_drift(handle, no_sleep):
    svc = FakePlaylistService.with_rows(5, order=1)

    with pytest.raises(SortDriftError) as ei:
        Scanner(svc, handle, sleep=no_sleep).fetch_all(require_sort_order=2)

    assert ei.value.expected == 2
    assert ei.value.observed == 1


def test_scan_without_required_order_uses_server_order(handle, no_sleep):
    svc = FakePlaylistService.with_rows(3, order=1)
    result = Scanner(svc, handle, sleep=no_sleep).fetch_all()

    assert [e.set_video_id for e in result.entries] == ["set3", "set2", "set1"]
    assert result.sort_state.selected_order == 1


def test_stop_before_scan(handle, no_sleep):
    svc = FakePlaylistService.with_rows(5)
    handle.request_stop()

    with pytest.raises(StoppedError):
        Scanner(svc, handle, sleep=no_sleep).fetch_all()
    assert svc.calls == []


def test_stop_between_pages(handle):
    svc = FakePlaylistService.with_rows(250, page_size=100)

    def sleep(_):
        handle.request_stop()

    with pytest.raises(StoppedError):
        Scanner(svc, handle, sleep=sleep).fetch_all(page_throttle_ms=10)
    assert len(svc.calls) == 1


def test_single_large_page_warns(handle, no_sleep, caplog):
    caplog.set_level(logging.INFO)
    svc = FakePlaylistService.with_rows(150, page_size=1000)
    Scanner(svc, handle, sleep=no_sleep).fetch_all()

    assert "Only one page fetched" in caplog.text


def test_quiet_scan_logs_progress_at_debug(handle, no_sleep, caplog):
    caplog.set_level(logging.INFO)
    svc = FakePlaylistService.with_rows(150, page_size=1000)
    Scanner(svc, handle, sleep=no_sleep).fetch_all(quiet=True)

    assert "Fetched page" not in caplog.text
    assert "Only one page fetched" not in caplog.text
