"""
ServerConfig Tests

Module: tests.test_config
Date: 2026-10-19
Version: 0.1.0
"""

import unittest

from estate_crm.core.config import ServerConfig
from estate_crm.core.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_DATA_DIR,
    FALLBACK_AUTH_SECRET,
)


class TestServerConfig(unittest.TestCase):

    def test_defaults_from_empty_environment(self):
        config = ServerConfig.from_env({})

        self.assertEqual(config.host, DEFAULT_HOST)
        self.assertEqual(config.port, DEFAULT_PORT)
        self.assertEqual(config.data_dir, DEFAULT_DATA_DIR)
        self.assertFalse(config.cookie_secure)
        self.assertTrue(config.uses_fallback_secret)

    def test_values_from_environment(self):
        config = ServerConfig.from_env({
            "CRM_HOST": "0.0.0.0",
            "CRM_PORT": "9090",
            "CRM_DATA_DIR": "/var/lib/crm",
            "AUTH_SECRET": "s" * 40,
            "CRM_BCRYPT_ROUNDS": "12",
            "CRM_COOKIE_SECURE": "true",
            "CRM_LOG_LEVEL": "debug",
        })

        self.assertEqual(config.host, "0.0.0.0")
        self.assertEqual(config.port, 9090)
        self.assertEqual(config.data_dir, "/var/lib/crm")
        self.assertEqual(config.bcrypt_rounds, 12)
        self.assertTrue(config.cookie_secure)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.resolved_secret(), "s" * 40)

    def test_invalid_port(self):
        with self.assertRaises(ValueError):
            ServerConfig.from_env({"CRM_PORT": "http"})

    def test_fallback_secret_logs_warning(self):
        config = ServerConfig.from_env({"AUTH_SECRET": ""})

        with self.assertLogs("core.config", level="WARNING"):
            secret = config.resolved_secret()

        self.assertEqual(secret, FALLBACK_AUTH_SECRET)


if __name__ == "__main__":
    unittest.main()
