"""Authentication, profile and user registration endpoints."""

import logging

from aiohttp import web

from ..core.constants import (
    ACTION_LOGIN,
    ACTION_LOGOUT,
    ACTION_PROFILE_UPDATED,
    ACTION_PASSWORD_CHANGED,
    ACTION_USER_CREATED,
)
from ..core.exceptions import ValidationError
from ..security.access_gate import candidate_tokens, clear_auth_cookie, set_auth_cookie, verify_request
from .helpers import (
    AUDIT_KEY,
    CONFIG_KEY,
    STORE_KEY,
    TOKENS_KEY,
    USERS_KEY,
    audit,
    client_address,
    current_actor,
    read_json,
)

logger = logging.getLogger("api.auth")

routes = web.RouteTableDef()


@routes.post("/api/auth/login")
async def login(request: web.Request) -> web.Response:
    """Exchange {username, password} for a token and the authToken cookie."""
    data = await read_json(request)
    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError("Username and password are required")

    user = request.app[USERS_KEY].authenticate(username, password)
    token = request.app[TOKENS_KEY].issue(user.username)

    request.app[AUDIT_KEY].record(
        user.username,
        ACTION_LOGIN,
        f"Administrator {user.display_name or user.username} logged in",
        client_address(request),
    )

    response = web.json_response({
        "success": True,
        "token": token,
        "username": user.username,
        "display_name": user.display_name,
    })
    set_auth_cookie(response, token, request.app[CONFIG_KEY].cookie_secure)
    return response


@routes.post("/api/auth/logout")
async def logout(request: web.Request) -> web.Response:
    """End the session (if any) and clear the cookie."""
    tokens = request.app[TOKENS_KEY]
    claims, _ = verify_request(tokens, request)
    for token in candidate_tokens(request):
        tokens.revoke(token)

    if claims is not None:
        request.app[AUDIT_KEY].record(
            claims.username,
            ACTION_LOGOUT,
            f"Administrator {claims.username} logged out",
            client_address(request),
        )

    response = web.json_response({"success": True})
    clear_auth_cookie(response)
    return response


@routes.get("/api/auth/verify")
async def verify(request: web.Request) -> web.Response:
    claims, _ = verify_request(request.app[TOKENS_KEY], request)
    if claims is None:
        return web.json_response(
            {"authenticated": False, "error": "Invalid or expired token"},
            status=401,
        )
    return web.json_response({"authenticated": True, "username": claims.username})


@routes.get("/api/profile")
async def get_profile(request: web.Request) -> web.Response:
    user = request.app[USERS_KEY].require_user(current_actor(request))
    return web.json_response(user.to_public_dict())


@routes.put("/api/profile")
async def update_profile(request: web.Request) -> web.Response:
    data = await read_json(request)
    with request.app[STORE_KEY].transaction():
        user = request.app[USERS_KEY].update_profile(current_actor(request), data)
        audit(request, ACTION_PROFILE_UPDATED, f"Profile of {user.username} updated")
    return web.json_response(user.to_public_dict())


@routes.put("/api/profile/password")
async def change_password(request: web.Request) -> web.Response:
    data = await read_json(request)
    with request.app[STORE_KEY].transaction():
        user = request.app[USERS_KEY].change_password(
            current_actor(request),
            data.get("current_password"),
            data.get("new_password"),
        )
        audit(request, ACTION_PASSWORD_CHANGED, f"Password of {user.username} changed")
    return web.json_response({"success": True, "message": "Password updated"})


@routes.post("/api/users")
async def create_user(request: web.Request) -> web.Response:
    """Register another administrator."""
    data = await read_json(request)
    with request.app[STORE_KEY].transaction():
        user = request.app[USERS_KEY].create_user(
            data.get("username"),
            data.get("password"),
            data.get("display_name") or "",
            data.get("email") or "",
        )
        audit(request, ACTION_USER_CREATED, f"Administrator {user.username} created")
    return web.json_response(user.to_public_dict(), status=201)
