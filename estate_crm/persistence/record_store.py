"""
Record Store - Entity collections persisted as JSON documents

Module: persistence.record_store
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Properties, clients, showings, users and admin actions
  - Lazy load on first access, degraded defaults for missing/corrupt files
  - Full rewrite of every document after each mutation
  - Cascade delete of showings with their property
  - Rollback of in-memory state when a write fails
  - Nestable transaction() grouping several mutations into one save

ARCHITECTURE:
RecordStore owns the in-memory collections and is the only writer of
their documents (one JSONStore per collection). Every mutation runs under
an RLock: validate, mutate, save. A failed save restores the previous
collection lists, so memory never diverges from what callers were told.

SECURITY NOTES:
- Two processes sharing a data directory can still lose updates:
  whichever saves last wins. Run a single server process per directory.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ..core.constants import (
    PROPERTIES_FILE,
    CLIENTS_FILE,
    SHOWINGS_FILE,
    USERS_FILE,
    ACTIONS_FILE,
    PROPERTY_ID_PREFIX,
    CLIENT_ID_PREFIX,
    SHOWING_ID_PREFIX,
    ID_SEQUENCE_WIDTH,
)
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .json_store import JSONStore, JSONStoreError
from .records import (
    Property,
    Client,
    Showing,
    UserRecord,
    AdminAction,
    PropertyFilter,
)


_COLLECTIONS = {
    "properties": (PROPERTIES_FILE, Property),
    "clients": (CLIENTS_FILE, Client),
    "showings": (SHOWINGS_FILE, Showing),
    "users": (USERS_FILE, UserRecord),
    "admin_actions": (ACTIONS_FILE, AdminAction),
}

# Collections emptied by clear_all(); users survive a reset
_CLEARABLE = ("properties", "clients", "showings", "admin_actions")


def next_sequential_id(prefix: str, existing_ids) -> str:
    """
    Mint PREFIX-<n> where n is one more than the largest numeric suffix in use

    Args:
        prefix: Identifier prefix (e.g. "CLI")
        existing_ids: Identifiers already present in the collection

    Returns:
        New identifier, zero-padded to ID_SEQUENCE_WIDTH digits
    """
    marker = f"{prefix}-"
    highest = 0
    for existing in existing_ids:
        if existing.startswith(marker) and existing[len(marker):].isdigit():
            highest = max(highest, int(existing[len(marker):]))
    return f"{marker}{highest + 1:0{ID_SEQUENCE_WIDTH}d}"


class RecordStore:
    """
    In-process repository of every entity collection.

    Typical usage:
        store = RecordStore("./data")
        prop = store.create_property({"id": "10001", ...})
    """

    def __init__(
        self,
        data_dir: str = "./data",
        default_users: Optional[Callable[[], List[UserRecord]]] = None,
    ):
        """
        Initialize record store

        Args:
            data_dir: Directory holding one JSON document per collection
            default_users: Factory for the users seeded into a fresh store
        """
        self.logger = logging.getLogger("persistence.record_store")
        self.data_dir = Path(data_dir)
        self._default_users = default_users or (lambda: [])
        self._documents: Dict[str, JSONStore] = {
            name: JSONStore(str(self.data_dir / file_name), [])
            for name, (file_name, _) in _COLLECTIONS.items()
        }
        self._collections: Dict[str, list] = {name: [] for name in _COLLECTIONS}
        self._loaded = False
        self._lock = threading.RLock()
        self._depth = 0

        self.logger.info(f"RecordStore initialized (dir={self.data_dir})")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Read every collection from disk

        Missing or corrupt documents degrade to an empty collection (seeded
        default users for the users collection); startup never fails here.
        """
        with self._lock:
            seeded = False
            for name, (_, record_type) in _COLLECTIONS.items():
                records = self._read_collection(name, record_type)
                if records is None:
                    if name == "users":
                        records = self._default_users()
                        seeded = not self._documents[name].exists
                    else:
                        records = []
                self._collections[name] = records
            self._loaded = True

            if seeded:
                self._documents["users"].save([u.to_dict() for u in self._collections["users"]])
                self.logger.info(f"Seeded {len(self._collections['users'])} default users")

            self.logger.info(
                "Collections loaded: "
                + ", ".join(f"{name}={len(items)}" for name, items in self._collections.items())
            )

    def save(self) -> None:
        """
        Rewrite every collection document from memory

        Raises:
            JSONStoreError: If a document cannot be written
        """
        with self._lock:
            for name, records in self._collections.items():
                self._documents[name].save([r.to_dict() for r in records])

    def _read_collection(self, name: str, record_type) -> Optional[list]:
        """Read one collection; None means 'use the default'"""
        document = self._documents[name]
        if not document.exists:
            return None
        try:
            raw = document.load()
            if not isinstance(raw, list):
                raise ValueError(f"expected a list, got {type(raw).__name__}")
            return [record_type.from_dict(item) for item in raw]
        except (JSONStoreError, ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Ignoring unreadable {document.file_path}: {e}")
            return None

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, list]]:
        """
        Run a mutate-then-save cycle

        Yields the live collections. If the body or the save raises, the
        collection lists are restored to their previous state.

        Cycles nest: an inner one joins the outermost, which alone saves
        and rolls back. A record change and its audit entry grouped this
        way are written together or not at all.
        """
        with self._lock:
            self._ensure_loaded()
            if self._depth:
                yield self._collections
                return

            snapshot = {name: list(items) for name, items in self._collections.items()}
            self._depth = 1
            try:
                yield self._collections
                self.save()
            except Exception:
                self._collections = snapshot
                raise
            finally:
                self._depth = 0

    def _collection(self, name: str) -> list:
        self._ensure_loaded()
        return self._collections[name]

    @staticmethod
    def _index_of(records: list, record_id: str, key: str = "id") -> int:
        for i, record in enumerate(records):
            if getattr(record, key) == record_id:
                return i
        return -1

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def list_properties(self) -> List[Property]:
        return list(self._collection("properties"))

    def find_properties(self, criteria: PropertyFilter) -> List[Property]:
        """Linear scan of properties matching every set predicate"""
        return [p for p in self._collection("properties") if criteria.matches(p)]

    def get_property(self, property_id: str) -> Optional[Property]:
        records = self._collection("properties")
        index = self._index_of(records, property_id)
        return records[index] if index >= 0 else None

    def require_property(self, property_id: str) -> Property:
        """
        Get property or fail

        Raises:
            NotFoundError: If no property has this id
        """
        prop = self.get_property(property_id)
        if prop is None:
            raise NotFoundError(f"Property {property_id} not found")
        return prop

    def create_property(self, payload: dict) -> Property:
        """
        Create a property with a caller-supplied or minted identifier

        Args:
            payload: Property fields; "id" is optional

        Returns:
            Created Property

        Raises:
            ValidationError: If the payload is invalid
            ConflictError: If the identifier already exists
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        with self.transaction() as collections:
            records = collections["properties"]
            property_id = payload.get("id")
            if property_id is not None and (
                not isinstance(property_id, (str, int)) or isinstance(property_id, bool)
            ):
                raise ValidationError("Field 'id' must be a string")
            property_id = "" if property_id is None else str(property_id).strip()
            if not property_id:
                property_id = next_sequential_id(PROPERTY_ID_PREFIX, (p.id for p in records))

            prop = Property.from_payload(payload, property_id)
            if self._index_of(records, property_id) >= 0:
                raise ConflictError(f"Property with id {property_id} already exists")

            records.append(prop)

        self.logger.info(f"Property created: {prop.id}")
        return prop

    def update_property(self, property_id: str, patch: dict) -> Property:
        """
        Apply a partial update to a property

        Raises:
            NotFoundError: If the property doesn't exist
            ValidationError: If the patch is invalid
        """
        with self.transaction() as collections:
            records = collections["properties"]
            index = self._index_of(records, property_id)
            if index < 0:
                raise NotFoundError(f"Property {property_id} not found")
            updated = records[index].apply_patch(patch)
            records[index] = updated

        self.logger.info(f"Property updated: {property_id}")
        return updated

    def delete_property(self, property_id: str) -> Tuple[Property, List[Showing]]:
        """
        Delete a property and every showing that references it

        Returns:
            (deleted property, deleted showings)

        Raises:
            NotFoundError: If the property doesn't exist
        """
        with self.transaction() as collections:
            records = collections["properties"]
            index = self._index_of(records, property_id)
            if index < 0:
                raise NotFoundError(f"Property {property_id} not found")
            removed = records.pop(index)

            showings = collections["showings"]
            dropped = [s for s in showings if s.property_id == property_id]
            collections["showings"] = [s for s in showings if s.property_id != property_id]

        self.logger.info(f"Property deleted: {property_id} (cascaded {len(dropped)} showings)")
        return removed, dropped

    def add_photo(self, property_id: str, photo_path: str) -> Property:
        """Append a photo reference to a property"""
        with self.transaction() as collections:
            records = collections["properties"]
            index = self._index_of(records, property_id)
            if index < 0:
                raise NotFoundError(f"Property {property_id} not found")
            current = records[index]
            records[index] = current.apply_patch({"photos": current.photos + [photo_path]})
            updated = records[index]

        self.logger.info(f"Photo added to {property_id}: {photo_path}")
        return updated

    def remove_photo(self, property_id: str, photo_path: str) -> Property:
        """Remove every occurrence of a photo reference from a property"""
        with self.transaction() as collections:
            records = collections["properties"]
            index = self._index_of(records, property_id)
            if index < 0:
                raise NotFoundError(f"Property {property_id} not found")
            current = records[index]
            remaining = [p for p in current.photos if p != photo_path]
            records[index] = current.apply_patch({"photos": remaining})
            updated = records[index]

        self.logger.info(f"Photo removed from {property_id}: {photo_path}")
        return updated

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def list_clients(self) -> List[Client]:
        return list(self._collection("clients"))

    def get_client(self, client_id: str) -> Optional[Client]:
        records = self._collection("clients")
        index = self._index_of(records, client_id)
        return records[index] if index >= 0 else None

    def require_client(self, client_id: str) -> Client:
        client = self.get_client(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    def create_client(self, payload: dict) -> Client:
        """
        Create a client with a minted CLI-<n> identifier

        Raises:
            ValidationError: If the payload is invalid
        """
        with self.transaction() as collections:
            records = collections["clients"]
            client_id = next_sequential_id(CLIENT_ID_PREFIX, (c.id for c in records))
            client = Client.from_payload(payload, client_id)
            records.append(client)

        self.logger.info(f"Client created: {client.id}")
        return client

    def update_client(self, client_id: str, patch: dict) -> Client:
        """
        Apply a partial update to a client; absent fields keep their values

        Raises:
            NotFoundError: If the client doesn't exist
            ValidationError: If the patch is invalid
        """
        with self.transaction() as collections:
            records = collections["clients"]
            index = self._index_of(records, client_id)
            if index < 0:
                raise NotFoundError(f"Client {client_id} not found")
            updated = records[index].apply_patch(patch)
            records[index] = updated

        self.logger.info(f"Client updated: {client_id}")
        return updated

    def delete_client(self, client_id: str) -> Client:
        """
        Delete a client

        Raises:
            NotFoundError: If the client doesn't exist
        """
        with self.transaction() as collections:
            records = collections["clients"]
            index = self._index_of(records, client_id)
            if index < 0:
                raise NotFoundError(f"Client {client_id} not found")
            removed = records.pop(index)

        self.logger.info(f"Client deleted: {client_id}")
        return removed

    # ------------------------------------------------------------------
    # Showings
    # ------------------------------------------------------------------

    def list_showings(self) -> List[Showing]:
        """All showings ordered by date then time"""
        return sorted(self._collection("showings"), key=lambda s: s.sort_key)

    def showings_for_property(self, property_id: str) -> List[Showing]:
        """Showings of one property ordered by date then time"""
        return sorted(
            (s for s in self._collection("showings") if s.property_id == property_id),
            key=lambda s: s.sort_key,
        )

    def create_showing(self, property_id: str, payload: dict) -> Showing:
        """
        Schedule a showing for an existing property

        Raises:
            ValidationError: If date/time are missing or malformed
            NotFoundError: If the property doesn't exist
        """
        with self.transaction() as collections:
            records = collections["showings"]
            showing_id = next_sequential_id(SHOWING_ID_PREFIX, (s.id for s in records))
            showing = Showing.from_payload(payload, showing_id, property_id)
            if self._index_of(collections["properties"], property_id) < 0:
                raise NotFoundError(f"Property {property_id} not found")
            records.append(showing)

        self.logger.info(f"Showing created: {showing.id} for {property_id}")
        return showing

    def _showing_index(self, records: list, property_id: str, showing_id: str) -> int:
        index = self._index_of(records, showing_id)
        if index < 0 or records[index].property_id != property_id:
            raise NotFoundError(f"Showing {showing_id} not found for property {property_id}")
        return index

    def update_showing(self, property_id: str, showing_id: str, patch: dict) -> Showing:
        """
        Apply a partial update to a showing of the given property

        Raises:
            NotFoundError: If the showing doesn't exist under this property
            ValidationError: If the patch is invalid
        """
        with self.transaction() as collections:
            records = collections["showings"]
            index = self._showing_index(records, property_id, showing_id)
            updated = records[index].apply_patch(patch)
            records[index] = updated

        self.logger.info(f"Showing updated: {showing_id}")
        return updated

    def delete_showing(self, property_id: str, showing_id: str) -> Showing:
        """
        Delete a showing of the given property

        Raises:
            NotFoundError: If the showing doesn't exist under this property
        """
        with self.transaction() as collections:
            records = collections["showings"]
            index = self._showing_index(records, property_id, showing_id)
            removed = records.pop(index)

        self.logger.info(f"Showing deleted: {showing_id}")
        return removed

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> List[UserRecord]:
        return list(self._collection("users"))

    def get_user(self, username: str) -> Optional[UserRecord]:
        records = self._collection("users")
        index = self._index_of(records, username, key="username")
        return records[index] if index >= 0 else None

    def add_user(self, user: UserRecord) -> UserRecord:
        """
        Store a new user

        Raises:
            ConflictError: If the username is taken
        """
        with self.transaction() as collections:
            records = collections["users"]
            if self._index_of(records, user.username, key="username") >= 0:
                raise ConflictError(f"User '{user.username}' already exists")
            records.append(user)

        self.logger.info(f"User created: {user.username}")
        return user

    def replace_user(self, user: UserRecord) -> UserRecord:
        """
        Overwrite the stored user with the same username

        Raises:
            NotFoundError: If the user doesn't exist
        """
        with self.transaction() as collections:
            records = collections["users"]
            index = self._index_of(records, user.username, key="username")
            if index < 0:
                raise NotFoundError(f"User '{user.username}' not found")
            records[index] = user

        self.logger.info(f"User updated: {user.username}")
        return user

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    def append_action(self, action: AdminAction) -> AdminAction:
        """Append an audit entry; entries are never edited afterwards"""
        with self.transaction() as collections:
            collections["admin_actions"].append(action)
        return action

    def list_actions(self, username: Optional[str] = None) -> List[AdminAction]:
        """Audit entries in insertion order, optionally for one actor"""
        actions = self._collection("admin_actions")
        if username is not None:
            return [a for a in actions if a.admin_username == username]
        return list(actions)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def clear_all(self) -> Dict[str, int]:
        """
        Empty properties, clients, showings and admin actions (irreversible)

        Returns:
            Number of records removed per collection
        """
        with self.transaction() as collections:
            removed = {name: len(collections[name]) for name in _CLEARABLE}
            for name in _CLEARABLE:
                collections[name] = []

        self.logger.warning(f"All mutable collections cleared: {removed}")
        return removed

    def counts(self) -> Dict[str, int]:
        self._ensure_loaded()
        return {name: len(items) for name, items in self._collections.items()}
