import hashlib

import pytest

from wlprune.auth.errors import AuthInvalid
from wlprune.auth.providers.youtube import (
    YouTubeCookieProvider,
    parse_cookie_file,
    parse_cookie_header,
    sapisid_hash,
)


def test_sapisid_hash_format():
    expected = hashlib.sha1(b"1700000000 abc https://www.youtube.com").hexdigest()
    assert sapisid_hash("abc", "https://www.youtube.com", 1700000000) == (
        f"SAPISIDHASH 1700000000_{expected}"
    )


def test_parse_cookie_header():
    assert parse_cookie_header("a=1; b=x=y;; junk") == {"a": "1", "b": "x=y"}


def test_parse_netscape_cookie_file():
    text = (
        "# Netscape HTTP Cookie File\n"
        ".youtube.com\tTRUE\t/\tTRUE\t0\tSAPISID\tabc\n"
        "#HttpOnly_.youtube.com\tTRUE\t/\tTRUE\t0\tSID\tsid\n"
    )
    assert parse_cookie_file(text) == {"SAPISID": "abc", "SID": "sid"}


def test_parse_header_style_cookie_file():
    assert parse_cookie_file("Cookie: SAPISID=abc; SID=s\n") == {"SAPISID": "abc", "SID": "s"}


def test_request_headers_prefers_sapisid():
    p = YouTubeCookieProvider(
        cookie="__Secure-3PAPISID=three; SAPISID=main", clock=lambda: 10
    )
    headers = p.request_headers("https://www.youtube.com")

    digest = hashlib.sha1(b"10 main https://www.youtube.com").hexdigest()
    assert headers["authorization"] == f"SAPISIDHASH 10_{digest}"
    assert headers["x-origin"] == "https://www.youtube.com"


def test_cookie_file_is_read(tmp_path):
    f = tmp_path / "cookies.txt"
    f.write_text("SAPISID=fromfile", encoding="utf-8")

    p = YouTubeCookieProvider(cookie_file=str(f))
    p.ensure_ready()
    assert "SAPISID=fromfile" in p.request_headers("https://www.youtube.com")["cookie"]


def test_missing_cookie_is_auth_invalid(tmp_path):
    with pytest.raises(AuthInvalid):
        YouTubeCookieProvider().ensure_ready()

    with pytest.raises(AuthInvalid):
        YouTubeCookieProvider(cookie_file=str(tmp_path / "nope.txt")).ensure_ready()

    with pytest.raises(AuthInvalid):
        YouTubeCookieProvider(cookie="SID=only").ensure_ready()


def test_registry_builds_from_env(monkeypatch):
    monkeypatch.setenv("WLPRUNE_COOKIE", "SAPISID=env")

    from wlprune.auth.registry import get_provider
    from wlprune.env import reset_env_caches

    reset_env_caches()
    provider = get_provider("YouTube")
    provider.ensure_ready()

    with pytest.raises(ValueError):
        get_provider("vimeo")
