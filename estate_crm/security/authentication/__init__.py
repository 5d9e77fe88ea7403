"""
Authentication module - Tokens and admin credentials

Provides:
- TokenService: JWT issuance and verification (HS256)
- UserManager: bcrypt credentials, profiles, seeded administrators
"""

from .token_service import (
    TokenService,
    TokenClaims,
    TokenError,
    TokenInvalidError,
    TokenExpiredError,
    TokenRevokedError,
)
from .user_manager import (
    UserManager,
    DEFAULT_USERS,
    build_default_users,
    hash_password,
    verify_password,
)

__all__ = [
    "TokenService",
    "TokenClaims",
    "TokenError",
    "TokenInvalidError",
    "TokenExpiredError",
    "TokenRevokedError",
    "UserManager",
    "DEFAULT_USERS",
    "build_default_users",
    "hash_password",
    "verify_password",
]
