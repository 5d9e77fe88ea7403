"""
Access Gate - Credential check in front of every route

Module: security.access_gate
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Credential from the authToken cookie, falling back to a Bearer header
  - Page requests without a valid token redirect to the login page
  - API requests without a valid token answer 401
  - Verified username attached to the request as the audit actor

SECURITY NOTES:
- A stale cookie is deleted on the redirect that rejects it
- Any valid token grants access to every route; there are no roles
"""

import logging
from typing import List, Optional, Tuple

from aiohttp import web

from ..core.constants import (
    AUTH_COOKIE_NAME,
    AUTH_COOKIE_MAX_AGE,
    API_PREFIX,
    LOGIN_PATH,
    PUBLIC_API_PATHS,
    STATIC_PREFIX,
)
from ..core.exceptions import AuthError
from .authentication.token_service import TokenClaims, TokenService

logger = logging.getLogger("security.access_gate")

ACTOR_KEY = "actor"


def candidate_tokens(request: web.Request) -> List[str]:
    """Credentials offered by the request: the authToken cookie, then Authorization: Bearer"""
    candidates = []
    cookie = request.cookies.get(AUTH_COOKIE_NAME)
    if cookie:
        candidates.append(cookie)
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        bearer = header[len("Bearer "):].strip()
        if bearer and bearer not in candidates:
            candidates.append(bearer)
    return candidates


def verify_request(tokens: TokenService, request: web.Request) -> Tuple[Optional[TokenClaims], Optional[str]]:
    """
    First offered credential that verifies

    A stale cookie does not mask a valid Bearer header.

    Returns:
        (claims, token), or (None, None) when no credential is valid
    """
    for token in candidate_tokens(request):
        claims = tokens.verify(token)
        if claims is not None:
            return claims, token
    return None, None


def set_auth_cookie(response: web.StreamResponse, token: str, secure: bool = False) -> None:
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=AUTH_COOKIE_MAX_AGE,
        httponly=True,
        samesite="Lax",
        secure=secure,
        path="/",
    )


def clear_auth_cookie(response: web.StreamResponse) -> None:
    response.del_cookie(AUTH_COOKIE_NAME, path="/")


def _is_public_page(path: str) -> bool:
    if path == LOGIN_PATH or path.startswith(STATIC_PREFIX):
        return True
    # Files with an extension (favicon.ico, robots.txt, ...)
    return "." in path.rsplit("/", 1)[-1]


def _redirect_to_login(clear_cookie: bool) -> web.Response:
    response = web.Response(status=302, headers={"Location": LOGIN_PATH})
    if clear_cookie:
        clear_auth_cookie(response)
    return response


def create_access_gate(tokens: TokenService):
    """
    Build the access gate middleware

    Args:
        tokens: TokenService used to verify credentials

    Returns:
        aiohttp middleware
    """

    @web.middleware
    async def access_gate(request: web.Request, handler):
        path = request.path

        if path.startswith(API_PREFIX):
            if path in PUBLIC_API_PATHS:
                return await handler(request)
        elif _is_public_page(path):
            return await handler(request)

        claims, _ = verify_request(tokens, request)

        if claims is None:
            if path.startswith(API_PREFIX):
                raise AuthError("Authentication required")
            logger.info(f"Redirecting unauthenticated request for {path}")
            return _redirect_to_login(clear_cookie=AUTH_COOKIE_NAME in request.cookies)

        request[ACTOR_KEY] = claims.username
        return await handler(request)

    return access_gate
