"""
Estate CRM

Back-office service for a small real-estate agency: properties, clients,
viewings and an audit trail of administrator actions, behind a login.

CHANGELOG:
[2026-10-19 v0.1.0] Initial release
  - JSON-file record store with atomic writes
  - JWT credentials with server-side revocation
  - Append-only admin action log
  - aiohttp JSON API and login-gated pages

ARCHITECTURE:
- Layer 1 : Transport (aiohttp application, middlewares)
- Layer 2 : API routes (auth, properties, clients, admin, pages)
- Layer 3 : Security (token service, user manager, access gate)
- Layer 4 : Persistence (record store, audit logger, session registry)

SECURITY NOTES:
- Passwords hashed with bcrypt
- Every route except login is gated by a signed credential
- Every mutation is recorded with actor and caller address
"""

__version__ = "0.1.0"

# Version info
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# Export main classes
from .core.config import ServerConfig
from .core.crm_server import CRMServer
from .persistence import RecordStore, AuditLogger
from .security.authentication import TokenService, UserManager

__all__ = [
    "ServerConfig",
    "CRMServer",
    "RecordStore",
    "AuditLogger",
    "TokenService",
    "UserManager",
]
