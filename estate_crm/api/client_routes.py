"""Client endpoints."""

from aiohttp import web

from ..core.constants import (
    ACTION_CLIENT_CREATED,
    ACTION_CLIENT_UPDATED,
    ACTION_CLIENT_DELETED,
)
from .helpers import STORE_KEY, audit, read_json, records_response

routes = web.RouteTableDef()


@routes.get("/api/clients")
async def list_clients(request: web.Request) -> web.Response:
    return records_response(request.app[STORE_KEY].list_clients())


@routes.post("/api/clients")
async def create_client(request: web.Request) -> web.Response:
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        client = store.create_client(data)
        audit(request, ACTION_CLIENT_CREATED, f"Client {client.id} - {client.name}")
    return web.json_response(client.to_dict(), status=201)


@routes.get("/api/clients/{client_id}")
async def get_client(request: web.Request) -> web.Response:
    client = request.app[STORE_KEY].require_client(request.match_info["client_id"])
    return web.json_response(client.to_dict())


@routes.put("/api/clients/{client_id}")
async def update_client(request: web.Request) -> web.Response:
    """Partial update: fields absent from the body keep their values."""
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        client = store.update_client(request.match_info["client_id"], data)
        audit(request, ACTION_CLIENT_UPDATED, f"Client {client.id} - {client.name}")
    return web.json_response(client.to_dict())


@routes.delete("/api/clients/{client_id}")
async def delete_client(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    with store.transaction():
        client = store.delete_client(request.match_info["client_id"])
        audit(request, ACTION_CLIENT_DELETED, f"Client {client.id} - {client.name}")
    return web.json_response({"success": True, "message": "Client deleted"})
