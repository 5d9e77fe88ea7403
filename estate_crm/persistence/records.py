"""
Records - Entity types, payload validation and patches

Module: persistence.records
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Property, Client, Showing, UserRecord, AdminAction
  - Create payload validation (before any mutation)
  - Explicit updatable field sets, unknown fields rejected
  - Property search filter

ARCHITECTURE:
Records are plain dataclasses. to_dict/from_dict convert to and from the
persisted JSON shape; from_payload validates a request body for creation;
apply_patch returns a new record, never mutating the existing one, so the
store can roll back by keeping the previous list.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..core.constants import (
    PROPERTY_TYPES,
    PROPERTY_STATUSES,
    STATUS_AVAILABLE,
    CALL_STATUSES,
    CLIENT_TYPES,
    CLIENT_STATUSES,
)
from ..core.exceptions import ValidationError

Number = Union[int, float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Field validation helpers
# ============================================================================

def _text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Field '{name}' must be a string")
    return value.strip()


def _required_text(value: Any, name: str) -> str:
    text = _text(value, name)
    if not text:
        raise ValidationError(f"Field '{name}' is required")
    return text


def _choice(value: Any, name: str, choices: Iterable[str], default: str) -> str:
    if value is None or value == "":
        return default
    if value not in choices:
        raise ValidationError(
            f"Field '{name}' must be one of: {', '.join(choices)}"
        )
    return value


def _number(value: Any, name: str) -> Number:
    if isinstance(value, bool):
        raise ValidationError(f"Field '{name}' must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
        try:
            number = float(value)
        except ValueError:
            raise ValidationError(f"Field '{name}' must be a number")
    else:
        raise ValidationError(f"Field '{name}' must be a number")
    # NaN and infinities cannot be stored as JSON
    if not math.isfinite(number):
        raise ValidationError(f"Field '{name}' must be a finite number")
    return number


def _positive_number(value: Any, name: str) -> Number:
    if value is None or value == "":
        raise ValidationError(f"Field '{name}' is required")
    number = _number(value, name)
    if number <= 0:
        raise ValidationError(f"Field '{name}' must be greater than zero")
    return number


def _optional_count(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    number = _number(value, name)
    if number != int(number) or number < 0:
        raise ValidationError(f"Field '{name}' must be a non-negative integer")
    return int(number)


def _flag(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false", "on", "off", "1", "0"):
        return value.lower() in ("true", "on", "1")
    raise ValidationError(f"Field '{name}' must be a boolean")


def _string_list(value: Any, name: str, unique: bool = False) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"Field '{name}' must be a list of strings")
    items = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"Field '{name}' must be a list of strings")
        item = item.strip()
        if not item or (unique and item in items):
            continue
        items.append(item)
    return items


def _date(value: Any, name: str) -> str:
    text = _required_text(value, name)
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"Field '{name}' must be a date (YYYY-MM-DD)")
    return text


def _time(value: Any, name: str) -> str:
    text = _required_text(value, name)
    try:
        datetime.strptime(text, "%H:%M")
    except ValueError:
        raise ValidationError(f"Field '{name}' must be a time (HH:MM)")
    return text


def _reject_unknown(payload: Mapping[str, Any], allowed: Iterable[str], entity: str) -> None:
    unknown = sorted(set(payload) - set(allowed))
    if unknown:
        raise ValidationError(f"Unknown {entity} field(s): {', '.join(unknown)}")


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return payload


# ============================================================================
# Property
# ============================================================================

PROPERTY_CREATE_FIELDS = frozenset({
    "id", "address", "type", "status", "price", "area", "rooms", "floor",
    "total_floors", "owner", "owner_phone", "owner_email", "description",
    "has_furniture", "inventory", "photos", "tags", "district", "notes",
})
PROPERTY_PATCH_FIELDS = PROPERTY_CREATE_FIELDS - {"id"}


def _check_owner(status: str, owner: str, owner_phone: str) -> None:
    if status != STATUS_AVAILABLE and not (owner and owner_phone):
        raise ValidationError(
            f"Owner name and phone are required when status is '{status}'"
        )


_PROPERTY_PARSERS = {
    "address": lambda v: _required_text(v, "address"),
    "type": lambda v: _choice(v, "type", PROPERTY_TYPES, PROPERTY_TYPES[0]),
    "status": lambda v: _choice(v, "status", PROPERTY_STATUSES, STATUS_AVAILABLE),
    "price": lambda v: _positive_number(v, "price"),
    "area": lambda v: _positive_number(v, "area"),
    "rooms": lambda v: _optional_count(v, "rooms"),
    "floor": lambda v: _optional_count(v, "floor"),
    "total_floors": lambda v: _optional_count(v, "total_floors"),
    "owner": lambda v: _text(v, "owner"),
    "owner_phone": lambda v: _text(v, "owner_phone"),
    "owner_email": lambda v: _text(v, "owner_email"),
    "description": lambda v: _text(v, "description"),
    "has_furniture": lambda v: _flag(v, "has_furniture"),
    "inventory": lambda v: _text(v, "inventory"),
    "photos": lambda v: _string_list(v, "photos"),
    "tags": lambda v: _string_list(v, "tags", unique=True),
    "district": lambda v: _text(v, "district"),
    "notes": lambda v: _text(v, "notes"),
}


@dataclass
class Property:
    """A property listing"""
    id: str
    address: str
    type: str = PROPERTY_TYPES[0]
    status: str = STATUS_AVAILABLE
    price: Number = 0
    area: Number = 0
    rooms: Optional[int] = None
    floor: Optional[int] = None
    total_floors: Optional[int] = None
    owner: str = ""
    owner_phone: str = ""
    owner_email: str = ""
    description: str = ""
    has_furniture: bool = False
    inventory: str = ""
    photos: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    district: str = ""
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        data = dataclasses.asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        """Create from dictionary (from JSON)"""
        return cls(
            id=data["id"],
            address=data.get("address", ""),
            type=data.get("type", PROPERTY_TYPES[0]),
            status=data.get("status", STATUS_AVAILABLE),
            price=data.get("price", 0),
            area=data.get("area", 0),
            rooms=data.get("rooms"),
            floor=data.get("floor"),
            total_floors=data.get("total_floors"),
            owner=data.get("owner", ""),
            owner_phone=data.get("owner_phone", ""),
            owner_email=data.get("owner_email", ""),
            description=data.get("description", ""),
            has_furniture=data.get("has_furniture", False),
            inventory=data.get("inventory", ""),
            photos=list(data.get("photos") or []),
            tags=list(data.get("tags") or []),
            district=data.get("district", ""),
            notes=data.get("notes", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    @classmethod
    def from_payload(cls, payload: Any, property_id: str) -> "Property":
        """
        Validate a creation payload

        Args:
            payload: Request body
            property_id: Identifier chosen by the store

        Returns:
            New Property

        Raises:
            ValidationError: On missing, malformed or unknown fields
        """
        payload = _require_mapping(payload)
        _reject_unknown(payload, PROPERTY_CREATE_FIELDS, "property")

        values = {name: parse(payload.get(name)) for name, parse in _PROPERTY_PARSERS.items()}
        _check_owner(values["status"], values["owner"], values["owner_phone"])
        return cls(id=property_id, **values)

    def apply_patch(self, patch: Any) -> "Property":
        """
        Shallow-merge supplied fields onto a copy of this property

        Raises:
            ValidationError: On unknown or malformed fields, or when the
                merged record breaks the owner invariant
        """
        patch = _require_mapping(patch)
        _reject_unknown(patch, PROPERTY_PATCH_FIELDS, "property")

        changes = {name: _PROPERTY_PARSERS[name](value) for name, value in patch.items()}
        updated = dataclasses.replace(self, **changes)
        _check_owner(updated.status, updated.owner, updated.owner_phone)
        return updated


# ============================================================================
# Client
# ============================================================================

CLIENT_CREATE_FIELDS = frozenset({
    "name", "phone", "call_status", "type", "status", "budget", "notes",
})
CLIENT_PATCH_FIELDS = CLIENT_CREATE_FIELDS

_CLIENT_PARSERS = {
    "name": lambda v: _required_text(v, "name"),
    "phone": lambda v: _required_text(v, "phone"),
    "call_status": lambda v: _choice(v, "call_status", CALL_STATUSES, CALL_STATUSES[0]),
    "type": lambda v: _choice(v, "type", CLIENT_TYPES, CLIENT_TYPES[0]),
    "status": lambda v: _choice(v, "status", CLIENT_STATUSES, CLIENT_STATUSES[0]),
    "budget": lambda v: _text(v, "budget"),
    "notes": lambda v: _text(v, "notes"),
}


@dataclass
class Client:
    """A buyer or seller"""
    id: str
    name: str
    phone: str
    call_status: str = CALL_STATUSES[0]
    type: str = CLIENT_TYPES[0]
    status: str = CLIENT_STATUSES[0]
    budget: str = ""
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        data = dataclasses.asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Client":
        """Create from dictionary (from JSON)"""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            call_status=data.get("call_status", CALL_STATUSES[0]),
            type=data.get("type", CLIENT_TYPES[0]),
            status=data.get("status", CLIENT_STATUSES[0]),
            budget=data.get("budget", ""),
            notes=data.get("notes", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    @classmethod
    def from_payload(cls, payload: Any, client_id: str) -> "Client":
        """Validate a creation payload"""
        payload = _require_mapping(payload)
        _reject_unknown(payload, CLIENT_CREATE_FIELDS, "client")
        values = {name: parse(payload.get(name)) for name, parse in _CLIENT_PARSERS.items()}
        return cls(id=client_id, **values)

    def apply_patch(self, patch: Any) -> "Client":
        """Shallow-merge supplied fields onto a copy of this client"""
        patch = _require_mapping(patch)
        _reject_unknown(patch, CLIENT_PATCH_FIELDS, "client")
        changes = {name: _CLIENT_PARSERS[name](value) for name, value in patch.items()}
        return dataclasses.replace(self, **changes)


# ============================================================================
# Showing
# ============================================================================

SHOWING_CREATE_FIELDS = frozenset({"date", "time", "notes"})
SHOWING_PATCH_FIELDS = SHOWING_CREATE_FIELDS

_SHOWING_PARSERS = {
    "date": lambda v: _date(v, "date"),
    "time": lambda v: _time(v, "time"),
    "notes": lambda v: _text(v, "notes"),
}


@dataclass
class Showing:
    """A scheduled visit to a property"""
    id: str
    property_id: str
    date: str
    time: str
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        data = dataclasses.asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Showing":
        """Create from dictionary (from JSON)"""
        return cls(
            id=data["id"],
            property_id=data["property_id"],
            date=data.get("date", ""),
            time=data.get("time", ""),
            notes=data.get("notes", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    @classmethod
    def from_payload(cls, payload: Any, showing_id: str, property_id: str) -> "Showing":
        """Validate a creation payload"""
        payload = _require_mapping(payload)
        _reject_unknown(payload, SHOWING_CREATE_FIELDS, "showing")
        values = {name: parse(payload.get(name)) for name, parse in _SHOWING_PARSERS.items()}
        return cls(id=showing_id, property_id=property_id, **values)

    def apply_patch(self, patch: Any) -> "Showing":
        """Shallow-merge supplied fields onto a copy of this showing"""
        patch = _require_mapping(patch)
        _reject_unknown(patch, SHOWING_PATCH_FIELDS, "showing")
        changes = {name: _SHOWING_PARSERS[name](value) for name, value in patch.items()}
        return dataclasses.replace(self, **changes)

    @property
    def sort_key(self):
        return (self.date, self.time)


# ============================================================================
# Users and audit entries
# ============================================================================

USER_PROFILE_FIELDS = frozenset({"display_name", "email"})


@dataclass
class UserRecord:
    """An admin user. password_hash is a bcrypt hash, never plaintext."""
    username: str
    password_hash: str
    display_name: str = ""
    email: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        data = dataclasses.asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        """Profile view without the password hash"""
        return {
            "username": self.username,
            "display_name": self.display_name,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        """Create from dictionary (from JSON)"""
        return cls(
            username=data["username"],
            password_hash=data["password_hash"],
            display_name=data.get("display_name", ""),
            email=data.get("email", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    def apply_profile(self, patch: Any) -> "UserRecord":
        """Shallow-merge display_name/email onto a copy of this user"""
        patch = _require_mapping(patch)
        _reject_unknown(patch, USER_PROFILE_FIELDS, "profile")
        changes = {name: _text(value, name) for name, value in patch.items()}
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class AdminAction:
    """An immutable audit entry"""
    id: str
    admin_username: str
    action: str
    details: str
    ip_address: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        return {
            "id": self.id,
            "admin_username": self.admin_username,
            "action": self.action,
            "details": self.details,
            "ip_address": self.ip_address,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdminAction":
        """Create from dictionary (from JSON)"""
        return cls(
            id=data["id"],
            admin_username=data["admin_username"],
            action=data["action"],
            details=data.get("details", ""),
            ip_address=data.get("ip_address", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


# ============================================================================
# Property search
# ============================================================================

@dataclass
class PropertyFilter:
    """Optional predicates over properties; unset fields match everything"""
    search: str = ""
    status: str = ""
    type: str = ""
    rooms: Optional[int] = None
    district: str = ""
    min_price: Optional[Number] = None
    max_price: Optional[Number] = None
    min_area: Optional[Number] = None
    max_area: Optional[Number] = None

    # "4" in the rooms filter means four rooms or more
    ROOMS_OR_MORE = 4

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "PropertyFilter":
        """
        Build a filter from URL query parameters

        Raises:
            ValidationError: If a numeric parameter is not a number
        """
        def number(name):
            value = query.get(name)
            return None if value in (None, "") else _number(value, name)

        status = query.get("status", "")
        prop_type = query.get("type", "")
        return cls(
            search=query.get("search", "").strip().lower(),
            status="" if status == "all" else status,
            type="" if prop_type == "all" else prop_type,
            rooms=None if query.get("rooms") in (None, "", "all") else _optional_count(query.get("rooms"), "rooms"),
            district=query.get("district", "").strip().lower(),
            min_price=number("min_price"),
            max_price=number("max_price"),
            min_area=number("min_area"),
            max_area=number("max_area"),
        )

    def matches(self, prop: Property) -> bool:
        if self.search and not any(
            self.search in value.lower() for value in (prop.address, prop.id, prop.district)
        ):
            return False
        if self.status and prop.status != self.status:
            return False
        if self.type and prop.type != self.type:
            return False
        if self.rooms is not None:
            if prop.rooms is None:
                return False
            if self.rooms >= self.ROOMS_OR_MORE:
                if prop.rooms < self.ROOMS_OR_MORE:
                    return False
            elif prop.rooms != self.rooms:
                return False
        if self.district and self.district not in prop.district.lower():
            return False
        if self.min_price is not None and prop.price < self.min_price:
            return False
        if self.max_price is not None and prop.price > self.max_price:
            return False
        if self.min_area is not None and prop.area < self.min_area:
            return False
        if self.max_area is not None and prop.area > self.max_area:
            return False
        return True
