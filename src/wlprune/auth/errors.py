from __future__ import annotations


class AuthError(Exception):
    """Base auth error for any provider."""


class AuthInvalid(AuthError):
    """Session cookie is missing/invalid or the service rejected it."""
