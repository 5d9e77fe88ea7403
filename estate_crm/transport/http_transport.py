"""
HTTP Transport - aiohttp application hosting the CRM

Module: transport.http_transport
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Application factory wiring store, audit, users and tokens
  - Error middleware rendering the exception taxonomy as JSON
  - Access gate middleware in front of every route
  - HTTPTransport lifecycle (AppRunner + TCPSite)

ARCHITECTURE:
create_app() builds a web.Application whose dependencies live under typed
AppKeys; handlers never reach for globals. Middleware order matters: the
error middleware wraps the access gate, so a 401 raised by the gate is
rendered like any other CRMError.

SECURITY NOTES:
- Unexpected exceptions are logged, never echoed to the client
- No TLS; deploy behind a reverse proxy and set CRM_COOKIE_SECURE
"""

import logging
from typing import Optional

from aiohttp import web

from ..api import admin_routes, auth_routes, client_routes, pages, property_routes
from ..api.helpers import AUDIT_KEY, CONFIG_KEY, STORE_KEY, TOKENS_KEY, USERS_KEY
from ..core.config import ServerConfig
from ..core.exceptions import CRMError
from ..persistence.audit_store import AuditLogger
from ..persistence.record_store import RecordStore
from ..security.access_gate import create_access_gate
from ..security.authentication.token_service import TokenService
from ..security.authentication.user_manager import UserManager

logger = logging.getLogger("transport.http")

INTERNAL_ERROR_MESSAGE = "Internal server error"


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render CRMError as {"success": false, "error": ...} with its status"""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except CRMError as e:
        if e.http_status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
            return web.json_response(
                {"success": False, "error": INTERNAL_ERROR_MESSAGE},
                status=e.http_status,
            )
        return web.json_response(e.to_dict(), status=e.http_status)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response(
            {"success": False, "error": INTERNAL_ERROR_MESSAGE},
            status=500,
        )


def create_app(
    store: RecordStore,
    audit: AuditLogger,
    users: UserManager,
    tokens: TokenService,
    config: ServerConfig,
) -> web.Application:
    """
    Build the CRM application

    Args:
        store: Loaded RecordStore
        audit: AuditLogger over the same store
        users: UserManager over the same store
        tokens: TokenService issuing and verifying credentials
        config: Server configuration

    Returns:
        aiohttp Application ready to be served
    """
    app = web.Application(middlewares=[error_middleware, create_access_gate(tokens)])
    app[STORE_KEY] = store
    app[AUDIT_KEY] = audit
    app[USERS_KEY] = users
    app[TOKENS_KEY] = tokens
    app[CONFIG_KEY] = config

    for module in (auth_routes, property_routes, client_routes, admin_routes, pages):
        app.router.add_routes(module.routes)

    return app


class HTTPTransport:
    """
    Serves an aiohttp application on host:port.

    start() returns once the socket is listening; stop() releases it.
    """

    def __init__(self, app: web.Application, host: str, port: int):
        self.app = app
        self.host = host
        self.port = port
        self.runner: Optional[web.AppRunner] = None
        self.is_running = False
        self.logger = logging.getLogger("transport.http")

    async def start(self) -> None:
        """Start HTTP server"""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
        except OSError as e:
            self.logger.error(f"Server startup failed: {e}")
            if self.runner:
                await self.runner.cleanup()
                self.runner = None
            raise

        self.is_running = True
        self.logger.info(f"HTTP server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop HTTP server"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        self.is_running = False
        self.logger.info("HTTP transport stopped")
