"""Audit trail, bulk clear and health endpoints."""

import logging

from aiohttp import web

from ..core.constants import SERVER_NAME, SERVER_VERSION
from ..core.exceptions import ValidationError
from .helpers import (
    AUDIT_KEY,
    STORE_KEY,
    audit,
    current_actor,
    query_limit,
    read_json,
    records_response,
)

logger = logging.getLogger("api.admin")

routes = web.RouteTableDef()


@routes.get("/api/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "ok",
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
    })


@routes.get("/api/admin-actions")
async def list_admin_actions(request: web.Request) -> web.Response:
    """Audit entries, newest first. Query: username, limit"""
    limit = query_limit(request)
    username = request.query.get("username", "").strip()
    audit_log = request.app[AUDIT_KEY]
    if username:
        entries = audit_log.query_by_actor(username, limit)
    else:
        entries = audit_log.query_all(limit)
    return records_response(entries)


@routes.post("/api/admin-actions")
async def record_admin_action(request: web.Request) -> web.Response:
    """Manual entry by the authenticated actor. Body: {"action": "...", "details": "..."}"""
    data = await read_json(request)
    action = data.get("action")
    details = data.get("details", "")
    if not isinstance(action, str) or not action.strip():
        raise ValidationError("Field 'action' is required")
    if not isinstance(details, str):
        raise ValidationError("Field 'details' must be a string")

    entry = audit(request, action.strip(), details)
    return web.json_response(entry.to_dict(), status=201)


@routes.get("/api/admin-actions/admins")
async def list_admins(request: web.Request) -> web.Response:
    return web.json_response(request.app[AUDIT_KEY].list_actors())


@routes.post("/api/admin/clear-database")
async def clear_database(request: web.Request) -> web.Response:
    """Empty properties, clients, showings and the audit trail. Irreversible."""
    actor = current_actor(request)
    removed = request.app[STORE_KEY].clear_all()
    logger.warning(f"Database cleared by {actor}: {removed}")
    return web.json_response({
        "success": True,
        "message": "Database cleared",
        "removed": removed,
    })
