from auth.token.models import AuthorizeFunc, AuthorizeResult, TokenInfo
from auth.token.token_refresher import (
    LIFESPAN_SAFETY_MARGIN,
    MIN_REFRESH_INTERVAL,
    TokenRefresher,
)
from auth.token.token_provider import (
    ClientGrantTokenProvider,
    OAuth2TokenProvider,
    PasswordGrantTokenProvider,
    StaticTokenProvider,
    TokenProvider,
)

__all__ = [
    "AuthorizeFunc",
    "AuthorizeResult",
    "TokenInfo",
    "LIFESPAN_SAFETY_MARGIN",
    "MIN_REFRESH_INTERVAL",
    "TokenRefresher",
    "ClientGrantTokenProvider",
    "OAuth2TokenProvider",
    "PasswordGrantTokenProvider",
    "StaticTokenProvider",
    "TokenProvider",
]
