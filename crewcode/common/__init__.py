"""Common modules shared by the server and the Python client."""

from crewcode.common.database import DBController
from crewcode.common.redis_client import RedisClient, RedisConfig

__all__ = [
    "DBController",
    "RedisClient",
    "RedisConfig",
]
