"""
CRMServer Lifecycle Tests

Module: tests.test_crm_server
Date: 2026-10-19
Version: 0.1.0

Scenarios:
1. Server startup seeds a fresh data directory
2. Expired sessions are purged on start
3. Clean shutdown
"""

import asyncio
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch
from datetime import datetime, timedelta, timezone

from estate_crm.__main__ import build_config, parse_args
from estate_crm.core.config import ServerConfig
from estate_crm.core.crm_server import CRMServer

SECRET = "lifecycle-test-secret-with-32-characters"


class TestCRMServer(unittest.TestCase):

    def setUp(self):
        """Setup before each test"""
        self.test_dir = tempfile.mkdtemp()
        self.server = CRMServer(ServerConfig(
            host="127.0.0.1",
            port=0,
            data_dir=self.test_dir,
            auth_secret=SECRET,
            bcrypt_rounds=4,
        ))

    def tearDown(self):
        """Cleanup after each test"""
        if self.server.is_running:
            asyncio.run(self.server.stop())
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_startup_and_shutdown(self):
        """
        Given: a server over an empty data directory
        When: it starts and stops
        Then: users are seeded and the status reflects each phase
        """
        async def test():
            self.assertFalse(self.server.is_running)

            await self.server.start()
            status = self.server.get_status()
            self.assertTrue(status.is_running)
            self.assertEqual(status.records["users"], 3)
            self.assertTrue(os.path.exists(os.path.join(self.test_dir, "users.json")))

            await self.server.stop()
            self.assertFalse(self.server.is_running)
            self.assertFalse(self.server.transport.is_running)

        asyncio.run(test())

    def test_expired_sessions_purged_on_start(self):
        past = datetime.now(timezone.utc) - timedelta(days=2)
        stale = self.server.tokens.issue("admin", issued_at=past)
        fresh = self.server.tokens.issue("admin")

        self.server.prepare()

        self.assertIsNone(self.server.sessions.get_session(
            self.server.tokens._decode_signed(stale).jti
        ))
        self.assertIsNotNone(self.server.tokens.verify(fresh))

    def test_uptime_zero_before_start(self):
        self.assertEqual(self.server.uptime_seconds, 0.0)


class TestCommandLine(unittest.TestCase):

    def test_arguments_override_environment(self):
        with patch.dict(os.environ, {"CRM_PORT": "7000", "CRM_HOST": "0.0.0.0"}):
            config = build_config(parse_args(["--port", "9191", "--data-dir", "/tmp/crm"]))

        self.assertEqual(config.port, 9191)
        self.assertEqual(config.data_dir, "/tmp/crm")
        self.assertEqual(config.host, "0.0.0.0")


if __name__ == "__main__":
    unittest.main()
