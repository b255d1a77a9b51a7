"""Python client for crewcode: REST API, socket wrapper and game state hook."""

from crewcode.client.api import ApiError, GameAPI
from crewcode.client.game_state import GameStateHook
from crewcode.client.reducers import GameSnapshot, reduce_event
from crewcode.client.socket_service import SocketService

__all__ = [
    "ApiError",
    "GameAPI",
    "GameSnapshot",
    "GameStateHook",
    "SocketService",
    "reduce_event",
]
