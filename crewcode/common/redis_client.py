"""Redis connection helpers.

Redis is optional. When ``REDIS_HOST`` is set it backs the Socket.IO message
queue so that several server processes (or an external worker) can emit into
the same game rooms:

    REST process → Redis message queue → every Socket.IO process → Clients
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import redis

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig:
    """Where to find Redis; an unset host disables it."""

    host: Optional[str]
    port: int
    db: int
    password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "RedisConfig":
        """Build from ``REDIS_HOST``, ``REDIS_PORT``, ``REDIS_DB`` and ``REDIS_PASSWORD``."""
        return cls(
            host=os.environ.get("REDIS_HOST"),
            port=int(os.environ.get("REDIS_PORT", "6379")),
            db=int(os.environ.get("REDIS_DB", "0")),
            password=os.environ.get("REDIS_PASSWORD"),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def url(self) -> Optional[str]:
        """Return a redis:// URL for Socket.IO, or None when Redis is disabled."""
        if not self.enabled:
            return None
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class RedisClient:
    """Thin lazy wrapper used for health checks."""

    def __init__(self, config: Optional[RedisConfig] = None):
        self.config = config or RedisConfig.from_env()
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(
                host=self.config.host or "localhost",
                port=self.config.port,
                db=self.config.db,
                password=self.config.password,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=False,
            )
        return self._client

    def ping(self) -> bool:
        """False when Redis is disabled or does not answer."""
        if not self.config.enabled:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError as exc:
            logger.warning("redis_ping_failed host=%s error=%s", self.config.host, exc)
            return False
