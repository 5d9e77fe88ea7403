"""
Persistence module - JSON-based data storage

Provides:
- JSONStore: Single JSON document with atomic writes
- RecordStore: Entity collections (properties, clients, showings, users, actions)
- AuditLogger: Append-only admin action trail
- SessionRegistry: Issued-token sessions and revocation
"""

from .json_store import JSONStore, JSONStoreError, JSONStoreIOError, JSONStoreFormatError
from .records import (
    Property,
    Client,
    Showing,
    UserRecord,
    AdminAction,
    PropertyFilter,
)
from .record_store import RecordStore
from .audit_store import AuditLogger
from .session_store import SessionRegistry, SessionRecord

__all__ = [
    "JSONStore",
    "JSONStoreError",
    "JSONStoreIOError",
    "JSONStoreFormatError",
    "Property",
    "Client",
    "Showing",
    "UserRecord",
    "AdminAction",
    "PropertyFilter",
    "RecordStore",
    "AuditLogger",
    "SessionRegistry",
    "SessionRecord",
]
