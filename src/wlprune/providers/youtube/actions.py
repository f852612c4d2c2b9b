"""
actions.py

edit_playlist action builders and the response-status check every edit
call goes through.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from wlprune import config
from wlprune.errors import EditRejectedError
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.extract import edit_status


def remove_action(set_video_id: str) -> Dict[str, Any]:
    return {"action": config.ACTION_REMOVE_VIDEO, "setVideoId": set_video_id}


def set_order_action(order: int) -> Dict[str, Any]:
    return {
        "action": config.ACTION_SET_PLAYLIST_VIDEO_ORDER,
        "playlistVideoOrder": order,
    }


def ensure_edit_succeeded(payload: Any, action_label: str) -> None:
    status = edit_status(payload)
    if status and status != config.STATUS_SUCCEEDED:
        raise EditRejectedError(action_label, status)


def remove_videos(
    service: PlaylistService, playlist_id: str, set_video_ids: Sequence[str]
) -> Dict[str, Any]:
    """Remove one or more rows in a single edit_playlist call."""
    valid: List[str] = [s for s in set_video_ids if isinstance(s, str) and s]
    if not valid:
        raise ValueError("Remove requires at least one setVideoId.")

    payload = service.edit_playlist(playlist_id, [remove_action(s) for s in valid])
    label = (
        f"Remove video (setVideoId={valid[0]})"
        if len(valid) == 1
        else f"Batch remove ({len(valid)} videos)"
    )
    ensure_edit_succeeded(payload, label)
    return payload


def set_playlist_order(
    service: PlaylistService, playlist_id: str, order: int
) -> Dict[str, Any]:
    payload = service.edit_playlist(playlist_id, [set_order_action(order)])
    ensure_edit_succeeded(payload, f"Set playlist order to {order}")
    return payload
