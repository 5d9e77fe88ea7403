"""
Token Service - Signed, expiring credentials

Module: security.authentication.token_service
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - JWT issuance with HS256 (username, iat, exp, jti)
  - Verification returning claims or None
  - 24 hour validity window measured from issuance
  - Session-backed revocation for logout

ARCHITECTURE:
TokenService provides:
  - Stateless signature and expiry checks with PyJWT
  - Optional SessionRegistry: when present every issued token gets a
    session row and verification also requires that row to exist

SECURITY NOTES:
- Secret key must be 32+ characters
- Expiry is computed from iat, not trusted from exp alone
- All times in UTC
- verify() never raises for a bad token; decode() explains why
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ...core.constants import (
    TOKEN_ALGORITHM,
    TOKEN_TTL_SECONDS,
    TOKEN_CLOCK_SKEW_SECONDS,
    MIN_SECRET_LENGTH,
)
from ...core.exceptions import AuthError
from ...persistence.session_store import SessionRegistry


class TokenError(AuthError):
    """Base token error"""
    pass


class TokenInvalidError(TokenError):
    """Token is malformed, has a bad signature or misses claims"""
    pass


class TokenExpiredError(TokenError):
    """Token is older than the validity window"""
    pass


class TokenRevokedError(TokenError):
    """Token session was deleted (logout)"""
    pass


@dataclass
class TokenClaims:
    """Verified token claims"""
    username: str
    jti: str
    issued_at: datetime
    expires_at: datetime


_REQUIRED_CLAIMS = ["sub", "username", "iat", "exp", "jti"]


class TokenService:
    """
    Issues and verifies signed credentials for usernames.

    Uses HS256 (HMAC-SHA256) over the claims with a server-held secret.
    """

    def __init__(
        self,
        secret_key: str,
        sessions: Optional[SessionRegistry] = None,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        algorithm: str = TOKEN_ALGORITHM,
    ):
        """
        Initialize token service

        Args:
            secret_key: Secret key for signing (32+ characters)
            sessions: Session registry enabling revocation
            ttl_seconds: Validity window from issuance
            algorithm: JWT algorithm (default HS256)

        Raises:
            ValueError: If secret_key too short
        """
        if not secret_key or len(secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(f"Secret key must be at least {MIN_SECRET_LENGTH} characters")

        self.logger = logging.getLogger("security.token_service")
        self.secret_key = secret_key
        self.sessions = sessions
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)

        self.logger.info(
            f"Token service initialized (algo={algorithm}, ttl={ttl_seconds}s, "
            f"sessions={'on' if sessions else 'off'})"
        )

    def issue(self, username: str, issued_at: Optional[datetime] = None) -> str:
        """
        Issue a token for a username

        Args:
            username: Authenticated username
            issued_at: Issuance time (defaults to now)

        Returns:
            Encoded token string
        """
        if not username:
            raise ValueError("username required")

        now = issued_at or datetime.now(timezone.utc)
        expires_at = now + self.ttl
        jti = str(uuid.uuid4())

        claims = {
            "sub": username,
            "username": username,
            "jti": jti,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

        if self.sessions is not None:
            self.sessions.create_session(jti, username, token, expires_at)

        self.logger.info(f"Token issued for {username}")
        return token

    def decode(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        """
        Verify a token and extract its claims

        Args:
            token: Token string
            now: Reference time (defaults to now)

        Returns:
            TokenClaims

        Raises:
            TokenInvalidError: If token is malformed, tampered or lacks claims
            TokenExpiredError: If token is older than the validity window
            TokenRevokedError: If the session no longer exists
        """
        claims = self._decode_signed(token)
        now = now or datetime.now(timezone.utc)

        age = now - claims.issued_at
        if age > self.ttl or now >= claims.expires_at:
            raise TokenExpiredError("Token expired")
        if age < -timedelta(seconds=TOKEN_CLOCK_SKEW_SECONDS):
            raise TokenInvalidError("Token issued in the future")

        if self.sessions is not None and not self.sessions.is_active(claims.jti, token):
            raise TokenRevokedError("Session has ended")

        return claims

    def verify(self, token: Optional[str], now: Optional[datetime] = None) -> Optional[TokenClaims]:
        """
        Verify a token

        Returns:
            TokenClaims if the token is valid, None otherwise
        """
        try:
            return self.decode(token, now)
        except TokenError as e:
            self.logger.debug(f"Token rejected: {e}")
            return None

    def revoke(self, token: Optional[str]) -> bool:
        """
        End the session of a token (logout)

        Expired tokens can still be revoked; tampered ones cannot.

        Returns:
            True if a session was deleted
        """
        if self.sessions is None:
            return False
        try:
            claims = self._decode_signed(token)
        except TokenInvalidError:
            return False
        return self.sessions.revoke(claims.jti)

    def _decode_signed(self, token: Optional[str]) -> TokenClaims:
        """Check signature and claim presence; expiry is checked by the caller"""
        if not token or not isinstance(token, str):
            raise TokenInvalidError("Token must be non-empty string")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "require": _REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise TokenInvalidError(f"Invalid signature: {e}")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        username = payload["username"]
        if not isinstance(username, str) or not username or username != payload["sub"]:
            raise TokenInvalidError("Invalid username claim")

        try:
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (ValueError, TypeError, OverflowError) as e:
            raise TokenInvalidError(f"Invalid timestamp: {e}")

        return TokenClaims(
            username=username,
            jti=str(payload["jti"]),
            issued_at=issued_at,
            expires_at=expires_at,
        )
