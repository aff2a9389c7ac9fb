from .config import settings
from .errors import (
    AuthenticationError,
    ConflictError,
    ConflictReason,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from .security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)

__all__ = [
    "settings",
    "AuthenticationError",
    "ConflictError",
    "ConflictReason",
    "NotFoundError",
    "PermissionDeniedError",
    "PersistenceError",
    "ValidationError",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
