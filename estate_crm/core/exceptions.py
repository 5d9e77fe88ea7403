"""
Exceptions - Shared error taxonomy

Module: core.exceptions
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial taxonomy
  - CRMError base with HTTP status
  - Validation, auth, not-found, conflict and server errors

ARCHITECTURE:
Every component raises a subclass of CRMError. Only the HTTP error
middleware turns them into responses, using http_status and message.
"""

from typing import Optional


class CRMError(Exception):
    """Base CRM error"""

    http_status = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def to_dict(self) -> dict:
        """Convert to JSON error body"""
        return {"success": False, "error": self.message}


class ValidationError(CRMError):
    """Missing or malformed required fields"""
    http_status = 400


class AuthError(CRMError):
    """Missing, invalid or expired credential"""
    http_status = 401


class NotFoundError(CRMError):
    """Referenced identifier absent"""
    http_status = 404


class ConflictError(CRMError):
    """Duplicate identifier"""
    http_status = 409


class ServerError(CRMError):
    """I/O or unexpected failure"""
    http_status = 500
