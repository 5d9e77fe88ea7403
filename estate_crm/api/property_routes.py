"""Property, photo and showing endpoints."""

import logging
from pathlib import PurePosixPath

from aiohttp import web

from ..core.constants import (
    PHOTO_URL_PREFIX,
    ACTION_PROPERTY_CREATED,
    ACTION_PROPERTY_UPDATED,
    ACTION_PROPERTY_DELETED,
    ACTION_PHOTO_ADDED,
    ACTION_PHOTO_REMOVED,
    ACTION_SHOWING_CREATED,
    ACTION_SHOWING_UPDATED,
    ACTION_SHOWING_DELETED,
)
from ..core.exceptions import ValidationError
from ..persistence.records import PropertyFilter
from .helpers import STORE_KEY, audit, read_json, records_response

logger = logging.getLogger("api.properties")

routes = web.RouteTableDef()


# ════════════════════════════════════════════════════════════════
# Properties
# ════════════════════════════════════════════════════════════════

@routes.get("/api/properties")
async def list_properties(request: web.Request) -> web.Response:
    """List properties, optionally filtered.
    Query: search, status, type, rooms, district, min_price, max_price, min_area, max_area
    """
    criteria = PropertyFilter.from_query(request.query)
    return records_response(request.app[STORE_KEY].find_properties(criteria))


@routes.post("/api/properties")
async def create_property(request: web.Request) -> web.Response:
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        prop = store.create_property(data)
        audit(request, ACTION_PROPERTY_CREATED, f"Property {prop.id} - {prop.address}")
    return web.json_response(prop.to_dict(), status=201)


@routes.get("/api/properties/{property_id}")
async def get_property(request: web.Request) -> web.Response:
    prop = request.app[STORE_KEY].require_property(request.match_info["property_id"])
    return web.json_response(prop.to_dict())


@routes.put("/api/properties/{property_id}")
async def update_property(request: web.Request) -> web.Response:
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        prop = store.update_property(request.match_info["property_id"], data)
        audit(request, ACTION_PROPERTY_UPDATED, f"Property {prop.id} - {prop.address}")
    return web.json_response(prop.to_dict())


@routes.delete("/api/properties/{property_id}")
async def delete_property(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    with store.transaction():
        prop, showings = store.delete_property(request.match_info["property_id"])
        audit(
            request,
            ACTION_PROPERTY_DELETED,
            f"Property {prop.id} - {prop.address} ({len(showings)} showings removed)",
        )
    return web.json_response({
        "success": True,
        "message": "Property deleted",
        "deleted_showings": len(showings),
    })


# ════════════════════════════════════════════════════════════════
# Photos (references only, no binary storage)
# ════════════════════════════════════════════════════════════════

async def _photo_filename(request: web.Request) -> str:
    if request.content_type.startswith("multipart/") or request.content_type == "application/x-www-form-urlencoded":
        form = await request.post()
        photo = form.get("photo")
        name = getattr(photo, "filename", photo)
    else:
        name = (await read_json(request)).get("filename")

    if not isinstance(name, str) or not PurePosixPath(name.replace("\\", "/")).name.strip():
        raise ValidationError("No photo provided")
    return PurePosixPath(name.replace("\\", "/")).name.strip()


@routes.post("/api/properties/{property_id}/photos")
async def add_photo(request: web.Request) -> web.Response:
    """Attach a photo reference.
    Body: multipart field "photo", or JSON {"filename": "..."}
    """
    property_id = request.match_info["property_id"]
    filename = await _photo_filename(request)
    store = request.app[STORE_KEY]
    store.require_property(property_id)

    photo_url = f"{PHOTO_URL_PREFIX}/{property_id}/{filename}"
    with store.transaction():
        prop = store.add_photo(property_id, photo_url)
        audit(request, ACTION_PHOTO_ADDED, f"Property {property_id}: {photo_url}")
    return web.json_response({"success": True, "photo_url": photo_url, "photos": prop.photos})


@routes.delete("/api/properties/{property_id}/photos")
async def remove_photo(request: web.Request) -> web.Response:
    """Detach a photo reference. Body: {"photo_path": "..."}"""
    property_id = request.match_info["property_id"]
    photo_path = (await read_json(request)).get("photo_path")
    if not isinstance(photo_path, str) or not photo_path.strip():
        raise ValidationError("Field 'photo_path' is required")

    store = request.app[STORE_KEY]
    with store.transaction():
        prop = store.remove_photo(property_id, photo_path.strip())
        audit(request, ACTION_PHOTO_REMOVED, f"Property {property_id}: {photo_path.strip()}")
    return web.json_response({"success": True, "photos": prop.photos})


# ════════════════════════════════════════════════════════════════
# Showings
# ════════════════════════════════════════════════════════════════

@routes.get("/api/showings")
async def list_showings(request: web.Request) -> web.Response:
    return records_response(request.app[STORE_KEY].list_showings())


@routes.get("/api/properties/{property_id}/showings")
async def list_property_showings(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    prop = store.require_property(request.match_info["property_id"])
    return records_response(store.showings_for_property(prop.id))


@routes.post("/api/properties/{property_id}/showings")
async def create_showing(request: web.Request) -> web.Response:
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        showing = store.create_showing(request.match_info["property_id"], data)
        audit(
            request,
            ACTION_SHOWING_CREATED,
            f"Showing {showing.id} of {showing.property_id} on {showing.date} {showing.time}",
        )
    return web.json_response(showing.to_dict(), status=201)


@routes.put("/api/properties/{property_id}/showings/{showing_id}")
async def update_showing(request: web.Request) -> web.Response:
    data = await read_json(request)
    store = request.app[STORE_KEY]
    with store.transaction():
        showing = store.update_showing(
            request.match_info["property_id"],
            request.match_info["showing_id"],
            data,
        )
        audit(
            request,
            ACTION_SHOWING_UPDATED,
            f"Showing {showing.id} of {showing.property_id} on {showing.date} {showing.time}",
        )
    return web.json_response(showing.to_dict())


@routes.delete("/api/properties/{property_id}/showings/{showing_id}")
async def delete_showing(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    with store.transaction():
        showing = store.delete_showing(
            request.match_info["property_id"],
            request.match_info["showing_id"],
        )
        audit(request, ACTION_SHOWING_DELETED, f"Showing {showing.id} of {showing.property_id}")
    return web.json_response({"success": True, "message": "Showing deleted"})
