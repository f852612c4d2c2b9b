from __future__ import annotations

from typing import Callable, Dict, Optional

from wlprune.auth.base import AuthProvider
from wlprune.auth.providers.youtube import YouTubeCookieProvider
from wlprune.env import Environment, get_env


def _youtube(env: Environment) -> AuthProvider:
    return YouTubeCookieProvider(cookie=env.cookie, cookie_file=env.cookie_file)


_PROVIDERS: Dict[str, Callable[[Environment], AuthProvider]] = {
    "youtube": _youtube,
}


def get_provider(name: str, env: Optional[Environment] = None) -> AuthProvider:
    key = (name or "").strip().lower()
    if key not in _PROVIDERS:
        raise ValueError(f"Unknown auth provider: {name}")
    return _PROVIDERS[key](env or get_env())
