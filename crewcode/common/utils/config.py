"""Runtime configuration helpers for the crewcode backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

import boto3


@dataclass(frozen=True)
class Settings:
    """Server, Socket.IO and game-rule settings, read once from the environment."""

    debug: bool
    host: str
    port: int
    jwt_exp_hours: int
    jwt_ssm_parameter_name: str
    admin_ssm_parameter_name: str
    require_authentication: bool
    # WebSocket configuration
    websocket_cors_origins: str
    websocket_ping_interval: int
    websocket_ping_timeout: int
    socketio_async_mode: Optional[str]
    # Redis configuration (Socket.IO message queue)
    redis_host: Optional[str]
    redis_port: int
    redis_db: int
    # Game configuration
    min_players_to_start: int
    max_players: int
    max_imposters: int
    tasks_per_crewmate: int
    kill_cooldown_seconds: int
    vent_cooldown_seconds: int
    sabotage_duration_seconds: int
    starting_room: str

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "Settings":
        env = env or os.environ
        return Settings(

            # also turns on Socket.IO and Engine.IO logging
            debug=env.get("FLASK_DEBUG", "false").lower() in ("1", "true", "yes"),
            host=env.get("FLASK_HOST", "0.0.0.0"),  # nosec B104 - Required for LAN play
            port=int(env.get("FLASK_PORT", "3000")),

            # auth parameters
            jwt_exp_hours=int(env.get("JWT_EXP_HOURS", "24")),
            jwt_ssm_parameter_name=env.get("JWT_SSM_PARAMETER", "/crewcode/jwt-secret"),
            admin_ssm_parameter_name=env.get(
                "ADMIN_SSM_PARAMETER", "/crewcode/admin-secret"
            ),
            # false for LAN play and tests
            require_authentication=env.get("REQUIRE_AUTHENTICATION", "true").lower()
            in ("1", "true", "yes"),

            # websocket configuration
            websocket_cors_origins=env.get("WEBSOCKET_CORS_ORIGINS", "*"),
            websocket_ping_interval=int(env.get("WEBSOCKET_PING_INTERVAL", "25")),
            websocket_ping_timeout=int(env.get("WEBSOCKET_PING_TIMEOUT", "60")),
            socketio_async_mode=env.get("SOCKETIO_ASYNC_MODE", "eventlet") or None,

            # redis configuration (optional - for scaling Socket.IO across processes)
            redis_host=env.get("REDIS_HOST"),
            redis_port=int(env.get("REDIS_PORT", "6379")),
            redis_db=int(env.get("REDIS_DB", "0")),

            # game configuration
            min_players_to_start=int(env.get("MIN_PLAYERS_TO_START", "2")),
            max_players=int(env.get("MAX_PLAYERS", "10")),
            max_imposters=int(env.get("MAX_IMPOSTERS", "3")),
            tasks_per_crewmate=int(env.get("TASKS_PER_CREWMATE", "3")),
            kill_cooldown_seconds=int(env.get("KILL_COOLDOWN_SECONDS", "30")),
            vent_cooldown_seconds=int(env.get("VENT_COOLDOWN_SECONDS", "15")),
            sabotage_duration_seconds=int(env.get("SABOTAGE_DURATION_SECONDS", "60")),
            starting_room=env.get("STARTING_ROOM", "cafeteria"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process; cached after the first call."""

    return Settings.from_env()


settings = get_settings()


def _get_secret(env_name: str, parameter_name: str, ssm_client=None) -> str:
    logger = logging.getLogger(__name__)

    value = os.environ.get(env_name)
    if value:
        logger.debug("using_secret_from_environment name=%s", env_name)
        return value

    logger.info("fetching_secret_from_ssm parameter=%s", parameter_name)
    try:
        client = ssm_client or boto3.client(
            "ssm", region_name=os.environ.get("AWS_REGION", "eu-north-1")
        )
        resp = client.get_parameter(Name=parameter_name, WithDecryption=True)
        logger.info("secret_fetched_from_ssm parameter=%s", parameter_name)
        return resp["Parameter"]["Value"]
    except Exception as exc:  # pragma: no cover - relies on AWS infra
        logger.error("secret_fetch_failed parameter=%s error=%s", parameter_name, str(exc))
        raise ValueError(f"Failed to retrieve secret {env_name}: {str(exc)}") from exc


def get_jwt_secret(ssm_client=None) -> str:
    """Signing key for player tokens: ``JWT_SECRET`` first, then SSM."""
    return _get_secret("JWT_SECRET", settings.jwt_ssm_parameter_name, ssm_client)


def get_admin_secret(ssm_client=None) -> str:
    """Fetch the admin header secret from ADMIN_SECRET or SSM."""
    return _get_secret("ADMIN_SECRET", settings.admin_ssm_parameter_name, ssm_client)
