"""
Server configuration

Module: core.config
Date: 2026-10-19
Version: 0.1.0

ServerConfig gathers every tunable of the server. Defaults come from
core.constants; from_env() overlays the process environment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_DATA_DIR,
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_LOG_LEVEL,
    FALLBACK_AUTH_SECRET,
    TOKEN_TTL_SECONDS,
)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Estate CRM server configuration"""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_dir: str = DEFAULT_DATA_DIR
    auth_secret: Optional[str] = None
    token_ttl_seconds: int = TOKEN_TTL_SECONDS
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    cookie_secure: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def uses_fallback_secret(self) -> bool:
        """True when no secret was configured"""
        return not self.auth_secret

    def resolved_secret(self) -> str:
        """
        Secret used for token signing

        Falls back to a well-known literal when AUTH_SECRET is unset and
        logs a warning every time that happens.
        """
        if self.uses_fallback_secret:
            logging.getLogger("core.config").warning(
                "AUTH_SECRET is not set; using the built-in development secret. "
                "Tokens can be forged by anyone who knows it. Do not deploy like this."
            )
            return FALLBACK_AUTH_SECRET
        return self.auth_secret

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read (defaults to os.environ)

        Returns:
            ServerConfig

        Raises:
            ValueError: If a numeric variable is not a number
        """
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("CRM_HOST", DEFAULT_HOST),
            port=int(env.get("CRM_PORT", DEFAULT_PORT)),
            data_dir=env.get("CRM_DATA_DIR", DEFAULT_DATA_DIR),
            auth_secret=env.get("AUTH_SECRET") or None,
            bcrypt_rounds=int(env.get("CRM_BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
            cookie_secure=env.get("CRM_COOKIE_SECURE", "").strip().lower() in _TRUE_VALUES,
            log_level=env.get("CRM_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
