from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class PlaylistService(ABC):
    """
    The two logical calls the engines depend on.

    Implementations own transport, auth headers and client context. Every
    call is issued synchronously; callers never overlap calls.
    """

    @abstractmethod
    def browse_playlist(self, playlist_id: str) -> Dict[str, Any]:
        """Fetch the first page of a playlist (entries, metadata, sort menu)."""
        raise NotImplementedError

    @abstractmethod
    def browse_continuation(self, token: str) -> Dict[str, Any]:
        """Fetch the page behind a continuation cursor."""
        raise NotImplementedError

    @abstractmethod
    def edit_playlist(
        self, playlist_id: str, actions: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Apply an ordered list of mutation actions in one request."""
        raise NotImplementedError
