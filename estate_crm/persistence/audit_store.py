"""
Audit Logger - Append-only admin action trail

Module: persistence.audit_store
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Append-only action recording through the RecordStore
  - Unique ids and server-side timestamps
  - Queries by actor, newest first
  - Distinct actor listing

ARCHITECTURE:
AuditLogger never touches files itself: entries are appended to the
admin_actions collection owned by RecordStore. Entries are frozen
dataclasses; correcting a mistake means recording a new entry.
"""

import logging
import time
import uuid
from typing import List, Optional

from ..core.constants import ACTION_ID_PREFIX, UNKNOWN_ADDRESS
from ..core.exceptions import ValidationError
from .records import AdminAction, utcnow
from .record_store import RecordStore


class AuditLogger:
    """
    Append-only audit trail of admin actions.

    Supports querying all entries or those of a single actor.
    """

    def __init__(self, store: RecordStore):
        """
        Initialize audit logger

        Args:
            store: RecordStore owning the admin_actions collection
        """
        self.logger = logging.getLogger("persistence.audit_logger")
        self.store = store

    def record(
        self,
        actor: str,
        action: str,
        details: str = "",
        source_address: Optional[str] = None,
    ) -> AdminAction:
        """
        Record an admin action (append-only)

        Args:
            actor: Username performing the action
            action: Short action label
            details: Free-text details
            source_address: Caller IP address

        Returns:
            AdminAction that was stored

        Raises:
            ValidationError: If actor or action is empty
        """
        if not actor or not action:
            raise ValidationError("Audit entries require an actor and an action")

        entry = AdminAction(
            id=self._new_id(),
            admin_username=actor,
            action=action,
            details=details or "",
            ip_address=source_address or UNKNOWN_ADDRESS,
            timestamp=utcnow(),
        )
        self.store.append_action(entry)

        self.logger.debug(f"Audit: {actor} {action} ({entry.ip_address})")
        return entry

    def query_all(self, limit: Optional[int] = None) -> List[AdminAction]:
        """
        All audit entries, newest first

        Args:
            limit: Max results
        """
        return self._newest_first(self.store.list_actions(), limit)

    def query_by_actor(self, username: str, limit: Optional[int] = None) -> List[AdminAction]:
        """
        Audit entries of one actor, newest first

        Args:
            username: Acting username
            limit: Max results
        """
        return self._newest_first(self.store.list_actions(username), limit)

    def list_actors(self) -> List[str]:
        """Distinct usernames that ever logged an action, sorted"""
        return sorted({a.admin_username for a in self.store.list_actions()})

    def get_entry_count(self) -> int:
        """Get total audit entries"""
        return len(self.store.list_actions())

    @staticmethod
    def _newest_first(entries: List[AdminAction], limit: Optional[int]) -> List[AdminAction]:
        # Entries sharing a timestamp are ordered by insertion position
        ordered = sorted(enumerate(entries), key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
        result = [entry for _, entry in ordered]
        if limit:
            return result[:limit]
        return result

    @staticmethod
    def _new_id() -> str:
        return f"{ACTION_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"
