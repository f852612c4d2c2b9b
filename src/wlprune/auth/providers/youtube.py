from __future__ import annotations

import hashlib
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from wlprune.auth.base import AuthProvider
from wlprune.auth.errors import AuthInvalid
from wlprune.logger import get_logger

# Checked in this order; the first present wins.
SAPISID_COOKIES = ("SAPISID", "__Secure-3PAPISID", "__Secure-1PAPISID")


def parse_cookie_header(raw: str) -> Dict[str, str]:
    """'a=1; b=2' -> {'a': '1', 'b': '2'}"""
    out: Dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        k, v = part.split("=", 1)
        out[k.strip()] = v.strip()
    return out


def parse_cookie_file(text: str) -> Dict[str, str]:
    """
    Accepts either a Netscape cookies.txt export or a single Cookie header line.
    """
    cookies: Dict[str, str] = {}
    netscape = False
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#HttpOnly_"):
            line = line[len("#HttpOnly_") :]
        elif not line or line.startswith("#"):
            continue
        fields = line.split("\t")
        if len(fields) >= 7:
            netscape = True
            cookies[fields[5]] = fields[6]
    if netscape:
        return cookies
    body = text.strip()
    if body.lower().startswith("cookie:"):
        body = body.split(":", 1)[1]
    return parse_cookie_header(body)


def sapisid_hash(sapisid: str, origin: str, now: Optional[int] = None) -> str:
    ts = int(time.time()) if now is None else int(now)
    digest = hashlib.sha1(f"{ts} {sapisid} {origin}".encode("utf-8")).hexdigest()
    return f"SAPISIDHASH {ts}_{digest}"


class YouTubeCookieProvider(AuthProvider):
    """
    Signs innertube requests with a browser session cookie.

    The cookie is supplied as a raw header string or a cookie file; the
    authorization header is derived per request from the SAPISID value.
    """

    name = "youtube"

    def __init__(
        self,
        cookie: str = "",
        cookie_file: str = "",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._logger = get_logger("wlprune.auth.youtube")
        self._cookie = cookie
        self._cookie_file = cookie_file
        self._clock = clock
        self._cookies: Optional[Dict[str, str]] = None

    def ensure_ready(self) -> None:
        _ = self._sapisid()

    def request_headers(self, origin: str) -> Dict[str, str]:
        cookies = self._load_cookies()
        return {
            "authorization": sapisid_hash(
                self._sapisid(), origin, int(self._clock())
            ),
            "cookie": "; ".join(f"{k}={v}" for k, v in cookies.items()),
            "x-origin": origin,
        }

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _load_cookies(self) -> Dict[str, str]:
        if self._cookies is not None:
            return self._cookies

        if self._cookie:
            cookies = parse_cookie_header(self._cookie)
        elif self._cookie_file:
            path = Path(self._cookie_file).expanduser()
            if not path.exists():
                raise AuthInvalid(f"Missing cookie file: {path}")
            cookies = parse_cookie_file(path.read_text(encoding="utf-8"))
            self._logger.debug(f"Loaded {len(cookies)} cookies from {path}")
        else:
            raise AuthInvalid(
                "No session cookie configured (set WLPRUNE_COOKIE or WLPRUNE_COOKIE_FILE)."
            )

        self._cookies = cookies
        return cookies

    def _sapisid(self) -> str:
        cookies = self._load_cookies()
        for name in SAPISID_COOKIES:
            value = cookies.get(name)
            if value:
                return value
        raise AuthInvalid(
            "Missing SAPISID/3PAPISID cookie. Is the session logged in to YouTube?"
        )
