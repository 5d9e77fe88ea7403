"""
Session Registry - Persistent record of issued credentials

Module: persistence.session_store
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Session storage in sessions.json
  - Logout deletes the session row
  - Expired session cleanup, at start and on every new session

ARCHITECTURE:
SessionRegistry provides:
  - One row per issued token, keyed by the token's jti claim
  - Token hashing for comparison (tokens are never stored in clear)
  - Revocation by deletion, so a logged-out token fails verification
    even before it expires
"""

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.constants import SESSIONS_FILE
from .json_store import JSONStore, JSONStoreFormatError


class SessionRecord:
    """Represents a stored session"""

    def __init__(
        self,
        jti: str,
        username: str,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
    ):
        self.jti = jti
        self.username = username
        self.token_hash = token_hash
        self.created_at = created_at
        self.expires_at = expires_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        return {
            "jti": self.jti,
            "username": self.username,
            "token_hash": self.token_hash,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        """Create from dictionary (from JSON)"""
        return cls(
            jti=data["jti"],
            username=data["username"],
            token_hash=data["token_hash"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


class SessionRegistry:
    """
    Tracks live sessions in sessions.json.

    A token is only accepted while its row exists.
    """

    def __init__(self, data_dir: str = "./data"):
        """
        Initialize session registry

        Args:
            data_dir: Directory for data files
        """
        self.logger = logging.getLogger("persistence.session_registry")
        self.data_dir = Path(data_dir)
        self.sessions_file = self.data_dir / SESSIONS_FILE

        default_data = {
            "sessions": [],
            "last_cleanup": None,
        }
        self.store = JSONStore(str(self.sessions_file), default_data)
        self.logger.info(f"SessionRegistry initialized (file={self.sessions_file})")

    def create_session(
        self,
        jti: str,
        username: str,
        token: str,
        expires_at: datetime,
    ) -> SessionRecord:
        """
        Store a session for a freshly issued token

        Args:
            jti: Token identifier claim
            username: Session owner
            token: Token string (stored hashed)
            expires_at: Token expiration time

        Returns:
            SessionRecord with stored data
        """
        record = SessionRecord(
            jti=jti,
            username=username,
            token_hash=self._hash_token(token),
            created_at=datetime.now(timezone.utc),
            expires_at=expires_at,
        )

        data = self._load()
        removed_count = self._drop_expired(data, record.created_at)
        data["sessions"].append(record.to_dict())
        self.store.save(data)

        if removed_count:
            self.logger.info(f"Dropped {removed_count} expired sessions")

        self.logger.info(f"Session created: {jti} for {username}")
        return record

    def is_active(self, jti: str, token: str) -> bool:
        """
        Check the session exists and belongs to this exact token

        Args:
            jti: Token identifier claim
            token: Token string
        """
        record = self.get_session(jti)
        return record is not None and record.token_hash == self._hash_token(token)

    def get_session(self, jti: str) -> Optional[SessionRecord]:
        """
        Get session by jti

        Returns:
            SessionRecord if found, None otherwise
        """
        for session in self._load()["sessions"]:
            if session["jti"] == jti:
                return SessionRecord.from_dict(session)
        return None

    def revoke(self, jti: str) -> bool:
        """
        Delete a session (logout)

        Args:
            jti: Token identifier claim

        Returns:
            True if a session was deleted, False if none existed
        """
        data = self._load()
        remaining = [s for s in data["sessions"] if s["jti"] != jti]
        if len(remaining) == len(data["sessions"]):
            return False

        data["sessions"] = remaining
        self.store.save(data)
        self.logger.info(f"Session revoked: {jti}")
        return True

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove expired sessions

        Returns:
            Number of sessions removed
        """
        data = self._load()
        removed_count = self._drop_expired(data, now or datetime.now(timezone.utc))
        if removed_count > 0:
            self.store.save(data)
            self.logger.info(f"Cleanup removed {removed_count} expired sessions")

        return removed_count

    def list_user_sessions(self, username: str) -> List[SessionRecord]:
        """List live sessions of a user"""
        return [
            SessionRecord.from_dict(s)
            for s in self._load()["sessions"]
            if s["username"] == username
        ]

    @staticmethod
    def _drop_expired(data: Dict[str, Any], now: datetime) -> int:
        """Remove expired rows from loaded data in place, stamping last_cleanup"""
        original_count = len(data["sessions"])
        data["sessions"] = [
            s for s in data["sessions"]
            if datetime.fromisoformat(s["expires_at"]) > now
        ]
        removed_count = original_count - len(data["sessions"])
        if removed_count > 0:
            data["last_cleanup"] = now.isoformat()
        return removed_count

    def _load(self) -> Dict[str, Any]:
        try:
            data = self.store.load()
        except JSONStoreFormatError as e:
            self.logger.warning(f"Discarding unreadable sessions file: {e}")
            data = {}
        if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
            data = {"sessions": [], "last_cleanup": None}
        return data

    @staticmethod
    def _hash_token(token: str) -> str:
        """SHA256 hex digest of a token"""
        return hashlib.sha256(token.encode()).hexdigest()
