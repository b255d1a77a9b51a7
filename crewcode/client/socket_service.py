"""Socket.IO client wrapper used by the state hook.

Calls made while disconnected are logged and ignored.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_URL = "http://localhost:3000"


class SocketService:
    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        client: Optional[socketio.Client] = None,
    ) -> None:
        self.url = url or os.environ.get("CREWCODE_SOCKET_URL", DEFAULT_SOCKET_URL)
        self.token = token
        self._client = client

    @property
    def connected(self) -> bool:
        return self._client is not None and self._client.connected

    def connect(self) -> None:
        if self.connected:
            return
        if self._client is None:
            self._client = socketio.Client(
                reconnection=True,
                reconnection_attempts=5,
                reconnection_delay=1,
                reconnection_delay_max=5,
            )
        url = f"{self.url}?token={self.token}" if self.token else self.url
        logger.info("socket_connecting url=%s", self.url)
        try:
            self._client.connect(url, transports=["websocket", "polling"], wait_timeout=10)
        except SocketConnectionError as exc:
            logger.error("socket_connect_failed url=%s error=%s", self.url, exc)

    def disconnect(self) -> None:
        if self._client is not None and self._client.connected:
            logger.info("socket_disconnecting")
            self._client.disconnect()

    def join_game(self, game_id: str, player_id: str) -> None:
        self.emit("joinGame", {"gameId": game_id, "playerId": player_id}, callback=self._log_ack("joinGame"))

    def leave_game(self, game_id: str, player_id: str) -> None:
        self.emit("leaveGame", {"gameId": game_id, "playerId": player_id}, callback=self._log_ack("leaveGame"))

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if self._client is None:
            logger.error("socket_not_connected action=on event=%s", event)
            return
        self._client.on(event, handler)

    def emit(self, event: str, data: Any, callback: Optional[Callable[..., Any]] = None) -> None:
        if not self.connected:
            logger.error("socket_not_connected action=emit event=%s", event)
            return
        self._client.emit(event, data, callback=callback)

    def start_background_task(self, target: Callable[..., Any], *args, **kwargs):
        if self._client is None:
            logger.error("socket_not_connected action=background_task")
            return None
        return self._client.start_background_task(target, *args, **kwargs)

    def sleep(self, seconds: float) -> None:
        if self._client is not None:
            self._client.sleep(seconds)

    @staticmethod
    def _log_ack(event: str) -> Callable[[Any], None]:
        def ack(response: Any) -> None:
            logger.info("socket_ack event=%s response=%s", event, response)

        return ack
