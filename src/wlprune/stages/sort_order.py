"""
sort_order.py

Drives the playlist into a required sort order and verifies it before the
scan or delete stages are allowed to trust row order.

State machine per attempt:

    UNVERIFIED -> VERIFY_VIA_EDIT -> VERIFY_VIA_BROWSE -> VERIFIED
                                                       -> (poll, retry)
    attempts exhausted -> FAILED (SortUnverifiable)

The set-order mutation is idempotent, so repeating it is safe. The edit
response and a follow-up browse can disagree for a while after the write;
either one reporting the target order is accepted.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from wlprune import config
from wlprune.env.settings import clamp_int
from wlprune.errors import SortUnverifiable
from wlprune.logger import get_logger
from wlprune.models import SortState
from wlprune.pipeline.run_state import RunHandle
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.actions import set_playlist_order
from wlprune.providers.youtube.extract import extract_sort_state


class SortVerifyState(str, Enum):
    UNVERIFIED = "unverified"
    VERIFY_VIA_EDIT = "verify_via_edit"
    VERIFY_VIA_BROWSE = "verify_via_browse"
    VERIFIED = "verified"
    FAILED = "failed"


def _describe(state: Optional[SortState]) -> tuple[str, str]:
    title = f'"{state.selected_title}"' if state and state.selected_title else "unknown"
    order = (
        str(state.selected_order)
        if state and state.selected_order is not None
        else "unknown"
    )
    return title, order


class SortEnforcer:
    def __init__(
        self,
        service: PlaylistService,
        handle: RunHandle,
        playlist_id: str = config.DEFAULT_PLAYLIST_ID,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.service = service
        self.handle = handle
        self.playlist_id = playlist_id
        self.log = logger or get_logger(__name__)
        self.sleep = sleep
        self.state = SortVerifyState.UNVERIFIED
        self.attempts_used = 0

    def ensure_order(
        self,
        target_order: int = config.OLDEST_FIRST_SORT_ORDER,
        max_attempts: int = config.SORT_VERIFY_MAX_ATTEMPTS[0],
        poll_ms: int = config.SORT_VERIFY_POLL_MS[0],
    ) -> SortState:
        """
        Returns the verified SortState.

        Raises:
            StoppedError: stop requested before an attempt started
            SortUnverifiable: no attempt observed the target order
        """
        max_attempts = clamp_int(max_attempts, *config.SORT_VERIFY_MAX_ATTEMPTS)
        poll_ms = clamp_int(poll_ms, *config.SORT_VERIFY_POLL_MS)

        self.state = SortVerifyState.UNVERIFIED
        self.attempts_used = 0

        for attempt in range(1, max_attempts + 1):
            self.handle.checkpoint()
            self.attempts_used = attempt

            self.state = SortVerifyState.VERIFY_VIA_EDIT
            edit_json = set_playlist_order(self.service, self.playlist_id, target_order)
            edit_state = extract_sort_state(edit_json)
            if edit_state is not None and edit_state.matches(target_order):
                if attempt > 1:
                    self.log.info(
                        f'Sort verified after {attempt} attempts: "{edit_state.selected_title}" '
                        f"(order={edit_state.selected_order})."
                    )
                self.state = SortVerifyState.VERIFIED
                return edit_state

            self.state = SortVerifyState.VERIFY_VIA_BROWSE
            browse_json = self.service.browse_playlist(self.playlist_id)
            browse_state = extract_sort_state(browse_json)
            if browse_state is not None and browse_state.matches(target_order):
                if attempt > 1 or edit_state is None:
                    self.log.info(
                        f'Sort verified via browse response: "{browse_state.selected_title}" '
                        f"(order={browse_state.selected_order})."
                    )
                self.state = SortVerifyState.VERIFIED
                return browse_state

            if attempt < max_attempts:
                title, order = _describe(browse_state or edit_state)
                self.log.info(
                    f"Sort verify attempt {attempt}/{max_attempts}: still {title} "
                    f"(order={order}). Retrying..."
                )
                self.sleep(poll_ms / 1000.0)

        self.state = SortVerifyState.FAILED
        self.log.error(
            f"Sort verify failed after {max_attempts} attempt(s); target order={target_order}."
        )
        raise SortUnverifiable(target_order, max_attempts)
