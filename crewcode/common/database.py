"""MongoDB connection for the game server.

Games, players, tasks and the question bank live in one database. The
server connects once at startup; repositories resolve their collections
lazily from ``DBController.db``.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional, Tuple

import boto3
import pymongo
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

SSM_USERNAME_PARAMETER = "/crewcode/mongodb/root-username"
SSM_PASSWORD_PARAMETER = "/crewcode/mongodb/root-password"


def _credentials_from_ssm() -> Tuple[Optional[str], Optional[str]]:
    """Read root credentials from SSM; ``(None, None)`` when unavailable."""

    try:
        ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "eu-north-1"))
        username = ssm.get_parameter(Name=SSM_USERNAME_PARAMETER)["Parameter"]["Value"]
        password = ssm.get_parameter(Name=SSM_PASSWORD_PARAMETER, WithDecryption=True)["Parameter"]["Value"]
    except Exception as exc:  # pragma: no cover - relies on AWS infra
        logger.debug("mongodb_ssm_credentials_unavailable error=%s", exc)
        return None, None
    logger.info("mongodb_credentials_fetched_from_ssm")
    return username, password


class DBController:
    """Owns the PyMongo client and the game database handle."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        db_name: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssm: Optional[bool] = None,
    ) -> None:
        self.host = host or os.environ.get("MONGODB_HOST", "localhost")
        self.port = port or int(os.environ.get("MONGODB_PORT", "27017"))
        self.db_name = db_name or os.environ.get("MONGODB_DB", "crewcode")
        self.username = username or os.environ.get("MONGODB_USERNAME")
        self.password = password or os.environ.get("MONGODB_PASSWORD")

        if use_ssm is None:
            use_ssm = os.environ.get("MONGODB_USE_SSM", "false").lower() == "true"
        if use_ssm and not (self.username and self.password):
            ssm_username, ssm_password = _credentials_from_ssm()
            self.username = self.username or ssm_username
            self.password = self.password or ssm_password

        self.client: Optional[pymongo.MongoClient] = None
        self.db = None

    def _connection_string(self) -> str:
        if self.username and self.password:
            return (
                f"mongodb://{self.username}:{self.password}"
                f"@{self.host}:{self.port}/{self.db_name}?authSource=admin"
            )
        return f"mongodb://{self.host}:{self.port}/"

    def connect(self, max_retries: int = 3, retry_delay: int = 2) -> bool:
        """Connect and ping, retrying ``max_retries`` times.

        Returns False once every attempt has failed.
        """
        for attempt in range(1, max_retries + 1):
            try:
                self.client = pymongo.MongoClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=5000,
                    connectTimeoutMS=5000,
                    socketTimeoutMS=5000,
                    connect=False,  # lazy connect plays well with eventlet
                )
                self.db = self.client[self.db_name]
                self.client.admin.command("ping")
                logger.info(
                    "mongodb_connected host=%s db=%s attempt=%d", self.host, self.db_name, attempt
                )
                return True
            except PyMongoError as exc:
                logger.warning(
                    "mongodb_connect_failed attempt=%d/%d error=%s", attempt, max_retries, exc
                )
                self.client = None
                self.db = None
                if attempt < max_retries:
                    time.sleep(retry_delay)

        logger.error("mongodb_unreachable host=%s attempts=%d", self.host, max_retries)
        return False

    def ping(self) -> bool:
        """True when the database answers a ping (readiness probe)."""
        if self.db is None:
            return False
        try:
            self.db.command("ping")
        except PyMongoError as exc:
            logger.warning("mongodb_ping_failed error=%s", exc)
            return False
        return True

    def disconnect(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("mongodb_disconnected host=%s", self.host)
        self.client = None
        self.db = None
