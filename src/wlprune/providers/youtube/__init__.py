from wlprune.providers.youtube.client import (
    InnertubeClient,
    browse_id_for,
    build_client_context,
)

__all__ = ["InnertubeClient", "browse_id_for", "build_client_context"]
