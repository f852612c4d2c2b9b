from wlprune.auth.base import AuthHealthResult, AuthHealthStatus, AuthProvider
from wlprune.auth.errors import AuthError, AuthInvalid

__all__ = [
    "AuthError",
    "AuthHealthResult",
    "AuthHealthStatus",
    "AuthInvalid",
    "AuthProvider",
]
