from .auth_token import (
    CountingAuthorize,
    FailingAuthorize,
    GatedAuthorize,
    sync_authorize,
)


__all__ = [
    'CountingAuthorize',
    'FailingAuthorize',
    'GatedAuthorize',
    'sync_authorize',
]
