from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from wlprune import config
from wlprune.auth.base import AuthProvider
from wlprune.errors import RemoteRequestError, remote_error
from wlprune.logger import get_logger
from wlprune.providers.base import PlaylistService
from wlprune.providers.youtube.api_manager import execute_with_retry


def build_client_context(
    client_version: str = config.DEFAULT_CLIENT_VERSION,
    hl: str = config.DEFAULT_HL,
    gl: str = config.DEFAULT_GL,
    visitor_data: str = "",
) -> Dict[str, Any]:
    client: Dict[str, Any] = {
        "clientName": config.DEFAULT_CLIENT_NAME,
        "clientVersion": client_version,
        "hl": hl or config.DEFAULT_HL,
        "gl": gl or config.DEFAULT_GL,
    }
    if visitor_data:
        client["visitorData"] = visitor_data
    return {"client": client}


def browse_id_for(playlist_id: str) -> str:
    return f"VL{playlist_id}"


class InnertubeClient(PlaylistService):
    """
    requests-backed PlaylistService talking to the youtubei/v1 endpoints.

    Browse calls are retried on 429/5xx. edit_playlist is issued exactly once
    per call; a failed response raises RemoteRequestError (or its transient
    subclass) carrying the HTTP status and body.
    """

    def __init__(
        self,
        auth: AuthProvider,
        context: Optional[Dict[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
        api_key: str = "",
        browse_params: str = "",
        origin: str = config.ORIGIN,
        timeout: float = config.DEFAULT_REQUEST_TIMEOUT_SEC,
        max_retries: int = config.DEFAULT_MAX_RETRIES,
        backoff_base_sec: float = config.DEFAULT_BACKOFF_BASE_SEC,
    ) -> None:
        self.auth = auth
        self.context = context or build_client_context()
        self.session = session or requests.Session()
        self.api_key = api_key
        self.browse_params = browse_params
        self.origin = origin
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base_sec = backoff_base_sec
        self._logger = get_logger(__name__)

    # -----------------------------------------------------------------
    # PlaylistService
    # -----------------------------------------------------------------

    def browse_playlist(self, playlist_id: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "context": self.context,
            "browseId": browse_id_for(playlist_id),
        }
        if self.browse_params:
            body["params"] = self.browse_params
        return self._read(config.BROWSE_PATH, body)

    def browse_continuation(self, token: str) -> Dict[str, Any]:
        return self._read(
            config.BROWSE_PATH, {"context": self.context, "continuation": token}
        )

    def edit_playlist(
        self, playlist_id: str, actions: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        return self._request(
            config.EDIT_PLAYLIST_PATH,
            {
                "context": self.context,
                "playlistId": playlist_id,
                "actions": actions,
                "params": config.EDIT_PARAMS,
            },
        )

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _read(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return execute_with_retry(
            lambda: self._request(path, body),
            f"youtubei {path}",
            max_retries=self.max_retries,
            backoff_base_sec=self.backoff_base_sec,
        )

    def _headers(self) -> Dict[str, str]:
        client_version = str(
            self.context.get("client", {}).get("clientVersion")
            or config.DEFAULT_CLIENT_VERSION
        )
        headers = {
            "content-type": "application/json",
            "x-youtube-client-name": config.DEFAULT_CLIENT_NAME_HEADER,
            "x-youtube-client-version": client_version,
            "x-origin": self.origin,
        }
        headers.update(self.auth.request_headers(self.origin))
        return headers

    def _request(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{config.API_BASE}/{path}"
        params = {"prettyPrint": "false"}
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = self.session.post(
                url,
                params=params,
                json=body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteRequestError(path, None, str(exc)) from exc

        if not response.ok:
            raise remote_error(path, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteRequestError(
                path, response.status_code, "response is not valid JSON"
            ) from exc

        self._logger.debug(f"youtubei {path} -> {response.status_code}")
        return payload if isinstance(payload, dict) else {}
