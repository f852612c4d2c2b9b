from __future__ import annotations

from wlprune.auth.base import AuthHealthResult, AuthHealthStatus
from wlprune.auth.errors import AuthError, AuthInvalid
from wlprune.errors import RemoteRequestError
from wlprune.logger import get_logger
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.extract import (
    extract_entries_and_continuations,
    extract_sort_state,
)


def check(
    service: PlaylistService, playlist_id: str, provider_name: str = "youtube"
) -> AuthHealthResult:
    """
    Validates the session with one playlist browse.

    A signed-out session still gets HTTP 200 for the Watch Later browse, but
    the page carries neither rows nor a sort menu.
    """
    log = get_logger("wlprune.auth.health")
    log.info("session.check.start")

    try:
        payload = service.browse_playlist(playlist_id)
    except AuthInvalid as e:
        log.error(f"session.check.auth_invalid: {e}")
        return AuthHealthResult(provider_name, AuthHealthStatus.AUTH_INVALID, str(e))
    except RemoteRequestError as e:
        if e.status in (401, 403):
            log.error(f"session.check.auth_invalid: HTTP {e.status}")
            return AuthHealthResult(
                provider_name,
                AuthHealthStatus.AUTH_INVALID,
                f"Session rejected (HTTP {e.status})",
            )
        log.error("session.check.failed", exc_info=e)
        return AuthHealthResult(provider_name, AuthHealthStatus.FAILED, str(e))
    except AuthError as e:
        log.error("session.check.failed", exc_info=e)
        return AuthHealthResult(provider_name, AuthHealthStatus.FAILED, str(e))

    page = extract_entries_and_continuations(payload)
    if not page.entries and extract_sort_state(payload) is None:
        log.warning("session.check.auth_invalid: no rows and no sort menu")
        return AuthHealthResult(
            provider_name,
            AuthHealthStatus.AUTH_INVALID,
            f"Playlist {playlist_id} shows no rows and no sort menu (signed out or empty)",
        )

    log.info("session.check.ok")
    return AuthHealthResult(provider_name, AuthHealthStatus.OK, "Session OK")
