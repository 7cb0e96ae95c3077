"""
Environment based configuration.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

STORAGE_BACKENDS = ("postgres", "memory")


@dataclass(frozen=True)
class Settings:
    # Falls back to the PG* environment variables when unset
    database_url: str | None = None
    storage_backend: str = "postgres"
    database_timeout: float = 10.0
    database_pool_size: int = 10
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.storage_backend!r}, "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            )
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level {self.log_level!r}")
        if self.database_timeout <= 0:
            raise ValueError("DATABASE_TIMEOUT must be positive")
        if self.database_pool_size < 1:
            raise ValueError("DATABASE_POOL_SIZE must be at least 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Read settings from the environment, using defaults for unset values.

        Raises ValueError if a value can't be parsed.
        """

        env = os.environ if environ is None else environ

        return cls(
            database_url=env.get("DATABASE_URL") or env.get("DB_CONNECTION_STRING"),
            storage_backend=env.get("STORAGE_BACKEND", cls.storage_backend).lower(),
            database_timeout=float(
                env.get("DATABASE_TIMEOUT", cls.database_timeout)
            ),
            database_pool_size=int(
                env.get("DATABASE_POOL_SIZE", cls.database_pool_size)
            ),
            host=env.get("HOST", cls.host),
            port=int(env.get("PORT", cls.port)),
            log_level=env.get("LOG_LEVEL", cls.log_level),
        )
