"""Shared API utilities: application keys, request parsing, caller identity."""

import json
import logging
from typing import Any, Dict, Optional

from aiohttp import web

from ..core.config import ServerConfig
from ..core.constants import UNKNOWN_ADDRESS
from ..core.exceptions import AuthError, ValidationError
from ..persistence.audit_store import AuditLogger
from ..persistence.record_store import RecordStore
from ..persistence.records import AdminAction
from ..security.access_gate import ACTOR_KEY
from ..security.authentication.token_service import TokenService
from ..security.authentication.user_manager import UserManager

logger = logging.getLogger("api")

STORE_KEY = web.AppKey("store", RecordStore)
AUDIT_KEY = web.AppKey("audit", AuditLogger)
USERS_KEY = web.AppKey("users", UserManager)
TOKENS_KEY = web.AppKey("tokens", TokenService)
CONFIG_KEY = web.AppKey("config", ServerConfig)


async def read_json(request: web.Request) -> Dict[str, Any]:
    """
    JSON object from the request body

    Raises:
        ValidationError: If the body is missing, not JSON, or not an object
    """
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid or missing JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def client_address(request: web.Request) -> str:
    """Caller IP: X-Forwarded-For, then X-Real-IP, then the peer address"""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip
    return request.remote or UNKNOWN_ADDRESS


def current_actor(request: web.Request) -> str:
    """
    Username attached by the access gate

    Raises:
        AuthError: If the request was not authenticated
    """
    actor = request.get(ACTOR_KEY)
    if not actor:
        raise AuthError("Authentication required")
    return actor


def audit(request: web.Request, action: str, details: str) -> AdminAction:
    """Record an admin action for the authenticated caller"""
    return request.app[AUDIT_KEY].record(
        current_actor(request),
        action,
        details,
        client_address(request),
    )


def query_limit(request: web.Request) -> Optional[int]:
    value = request.query.get("limit")
    if value in (None, ""):
        return None
    try:
        limit = int(value)
    except ValueError:
        raise ValidationError("Parameter 'limit' must be an integer")
    if limit <= 0:
        raise ValidationError("Parameter 'limit' must be positive")
    return limit


def records_response(records, status: int = 200) -> web.Response:
    return web.json_response([r.to_dict() for r in records], status=status)
