"""
CRM Server - Main server orchestrator

Module: core.crm_server
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - Component wiring from a ServerConfig
  - Store load and expired session cleanup on start
  - HTTP transport lifecycle (start/stop/run)
  - Status snapshot

ARCHITECTURE:
CRMServer builds every component exactly once and hands them to the
application:
1. RecordStore (collections, seeded users)
2. SessionRegistry + TokenService (credentials)
3. UserManager (passwords and profiles)
4. AuditLogger (admin action trail)
5. HTTPTransport serving create_app()

SECURITY NOTES:
- A missing AUTH_SECRET is logged as a warning on every start
- Expired sessions are purged before the first request is served
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from aiohttp import web

from .config import ServerConfig
from .constants import SERVER_NAME, SERVER_VERSION
from ..persistence import AuditLogger, RecordStore, SessionRegistry
from ..security.authentication import TokenService, UserManager, build_default_users
from ..transport.http_transport import HTTPTransport, create_app


@dataclass
class ServerStatus:
    """Status information about the server"""
    name: str
    version: str
    is_running: bool
    uptime_seconds: float
    host: str
    port: int
    data_dir: str
    records: Dict[str, int]
    timestamp: datetime


class CRMServer:
    """
    Main Estate CRM server

    Typical usage:
        server = CRMServer(ServerConfig.from_env())
        await server.run()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize CRM server

        Args:
            config: Server configuration (defaults from the environment)
        """
        self.logger = logging.getLogger("core.crm_server")
        self.config = config or ServerConfig.from_env()

        rounds = self.config.bcrypt_rounds
        self.store = RecordStore(self.config.data_dir, default_users=lambda: build_default_users(rounds))
        self.sessions = SessionRegistry(self.config.data_dir)
        self.tokens = TokenService(
            self.config.resolved_secret(),
            sessions=self.sessions,
            ttl_seconds=self.config.token_ttl_seconds,
        )
        self.users = UserManager(self.store, bcrypt_rounds=rounds)
        self.audit = AuditLogger(self.store)

        self.app: web.Application = create_app(
            self.store, self.audit, self.users, self.tokens, self.config
        )
        self.transport = HTTPTransport(self.app, self.config.host, self.config.port)

        self._is_running = False
        self._startup_time: Optional[datetime] = None

        self.logger.info(f"Server initialized: {SERVER_NAME} v{SERVER_VERSION}")
        self.logger.info(f"Data directory: {self.config.data_dir}")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def uptime_seconds(self) -> float:
        if not self._startup_time:
            return 0.0
        return (datetime.now(timezone.utc) - self._startup_time).total_seconds()

    def prepare(self) -> None:
        """Load collections and drop expired sessions"""
        self.store.load()
        removed = self.sessions.cleanup_expired()
        if removed:
            self.logger.info(f"Removed {removed} expired sessions")

    async def start(self) -> None:
        """
        Start the server

        Raises:
            OSError: If the listening socket cannot be opened
        """
        if self._is_running:
            self.logger.warning("Server already running")
            return

        self.prepare()
        await self.transport.start()
        self._is_running = True
        self._startup_time = datetime.now(timezone.utc)
        self.logger.info(f"{SERVER_NAME} listening on http://{self.config.host}:{self.config.port}")

    async def stop(self) -> None:
        """Stop the server gracefully"""
        if not self._is_running:
            return

        await self.transport.stop()
        self._is_running = False
        self.logger.info("Server stopped")

    async def run(self) -> None:
        """
        Run server until cancelled

        Starts the server and serves until the task is cancelled (SIGINT).
        """
        await self.start()
        try:
            while self._is_running:
                await asyncio.sleep(1)
        finally:
            await self.stop()

    def get_status(self) -> ServerStatus:
        return ServerStatus(
            name=SERVER_NAME,
            version=SERVER_VERSION,
            is_running=self._is_running,
            uptime_seconds=self.uptime_seconds,
            host=self.config.host,
            port=self.config.port,
            data_dir=self.config.data_dir,
            records=self.store.counts(),
            timestamp=datetime.now(timezone.utc),
        )
