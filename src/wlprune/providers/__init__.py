from wlprune.providers.base import PlaylistService

__all__ = ["PlaylistService"]
