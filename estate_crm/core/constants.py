"""
Constants for Estate CRM

Module: core.constants
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial constants definition
  - Server configuration defaults
  - Credential cookie and token lifetime
  - Entity enumerations and identifier prefixes
  - Persisted document names

SECURITY NOTES:
- The fallback secret is for local development only
- Cookies are HTTP-only with SameSite=Lax
"""

from typing import Final

# ============================================================================
# Server Configuration
# ============================================================================

SERVER_NAME: Final[str] = "EstateCRM"
SERVER_VERSION: Final[str] = "0.1.0"

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 8080
DEFAULT_DATA_DIR: Final[str] = "./data"
DEFAULT_BCRYPT_ROUNDS: Final[int] = 10
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

# Used only when AUTH_SECRET is unset. Never deploy with it.
FALLBACK_AUTH_SECRET: Final[str] = "default-secret-change-in-production-0000"
MIN_SECRET_LENGTH: Final[int] = 32

# ============================================================================
# Authentication
# ============================================================================

TOKEN_ALGORITHM: Final[str] = "HS256"
TOKEN_TTL_SECONDS: Final[int] = 24 * 60 * 60
TOKEN_CLOCK_SKEW_SECONDS: Final[int] = 60

AUTH_COOKIE_NAME: Final[str] = "authToken"
AUTH_COOKIE_MAX_AGE: Final[int] = TOKEN_TTL_SECONDS

LOGIN_PATH: Final[str] = "/"
API_PREFIX: Final[str] = "/api/"
STATIC_PREFIX: Final[str] = "/static/"

# API endpoints reachable without a credential
PUBLIC_API_PATHS: Final[frozenset] = frozenset({
    "/api/auth/login",
    "/api/auth/verify",
    "/api/auth/logout",
    "/api/health",
})

INVALID_CREDENTIALS_MESSAGE: Final[str] = "Invalid username or password"

# ============================================================================
# Entities
# ============================================================================

PROPERTY_TYPES: Final[tuple] = ("apartment", "house")
PROPERTY_STATUSES: Final[tuple] = ("available", "reserved", "sold")
STATUS_AVAILABLE: Final[str] = "available"

CALL_STATUSES: Final[tuple] = ("not_called", "reached", "not_reached")
CLIENT_TYPES: Final[tuple] = ("buyer", "seller", "both")
CLIENT_STATUSES: Final[tuple] = ("active", "inactive", "completed")

PROPERTY_ID_PREFIX: Final[str] = "OBJ"
CLIENT_ID_PREFIX: Final[str] = "CLI"
SHOWING_ID_PREFIX: Final[str] = "SHW"
ACTION_ID_PREFIX: Final[str] = "ACT"
ID_SEQUENCE_WIDTH: Final[int] = 3

PHOTO_URL_PREFIX: Final[str] = "/uploads"
UNKNOWN_ADDRESS: Final[str] = "Unknown"

# ============================================================================
# Persistence
# ============================================================================

PROPERTIES_FILE: Final[str] = "properties.json"
CLIENTS_FILE: Final[str] = "clients.json"
SHOWINGS_FILE: Final[str] = "showings.json"
USERS_FILE: Final[str] = "users.json"
ACTIONS_FILE: Final[str] = "admin-actions.json"
SESSIONS_FILE: Final[str] = "sessions.json"

# ============================================================================
# Audit action labels
# ============================================================================

ACTION_LOGIN: Final[str] = "login"
ACTION_LOGOUT: Final[str] = "logout"
ACTION_PROPERTY_CREATED: Final[str] = "property_created"
ACTION_PROPERTY_UPDATED: Final[str] = "property_updated"
ACTION_PROPERTY_DELETED: Final[str] = "property_deleted"
ACTION_PHOTO_ADDED: Final[str] = "photo_added"
ACTION_PHOTO_REMOVED: Final[str] = "photo_removed"
ACTION_SHOWING_CREATED: Final[str] = "showing_created"
ACTION_SHOWING_UPDATED: Final[str] = "showing_updated"
ACTION_SHOWING_DELETED: Final[str] = "showing_deleted"
ACTION_CLIENT_CREATED: Final[str] = "client_created"
ACTION_CLIENT_UPDATED: Final[str] = "client_updated"
ACTION_CLIENT_DELETED: Final[str] = "client_deleted"
ACTION_PROFILE_UPDATED: Final[str] = "profile_updated"
ACTION_PASSWORD_CHANGED: Final[str] = "password_changed"
ACTION_USER_CREATED: Final[str] = "user_created"
