"""Realtime gateway: the only object that pushes Socket.IO events.

Controllers receive a ``RealtimeGateway`` through their constructor and call
its ``emit_*`` helpers after a state change has been saved. Rooms follow two
conventions: the ``gameId`` room holds every socket watching a game, and the
``playerId`` room holds the sockets of one player (private pushes).

Emits are fire-and-forget; a failing emit is logged and never reaches the
caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from crewcode.common.game_types import GameEvent
from crewcode.common.sanitization import sanitize_game

logger = logging.getLogger(__name__)


def event_name(event) -> str:
    """Plain string name for a GameEvent member or a raw event string."""
    return event.value if isinstance(event, GameEvent) else str(event)


class RealtimeGateway:
    """Wraps a Flask-SocketIO server with game-aware emit helpers."""

    def __init__(self, socketio, events_counter=None) -> None:
        self.socketio = socketio
        self._events_counter = events_counter
        # sid -> (gameId, playerId) for sockets that joined a game
        self._connections: Dict[str, Tuple[str, str]] = {}

    # ------------------------------------------------------------------
    # connection tracking
    # ------------------------------------------------------------------
    def track(self, sid: str, game_id: str, player_id: str) -> None:
        self._connections[sid] = (game_id, player_id)

    def untrack(self, sid: str) -> Optional[Tuple[str, str]]:
        return self._connections.pop(sid, None)

    def connection_for(self, sid: str) -> Optional[Tuple[str, str]]:
        return self._connections.get(sid)

    # ------------------------------------------------------------------
    # emit helpers
    # ------------------------------------------------------------------
    def emit_to_game(
        self,
        game_id: str,
        event,
        data: Any = None,
        game: Optional[Dict[str, Any]] = None,
        requesting_player_id: Optional[str] = None,
    ) -> None:
        """Emit to every socket in the game room.

        ``gameUpdate`` with a ``game`` is sanitized first (player form when
        ``requesting_player_id`` is given, broadcast form otherwise); any
        other event goes out with ``data`` as is.
        """
        payload = data
        if event_name(event) == GameEvent.GAME_UPDATE.value and game is not None:
            payload = sanitize_game(game, requesting_player_id)
        self._emit(event, payload, room=game_id)

    def emit_to_player_with_game(self, player_id: str, event, game: Dict[str, Any]) -> None:
        """Send ``player_id`` its own player-form view of ``game``."""
        self._emit(event, sanitize_game(game, player_id), room=player_id)

    def emit_to_player(self, player_id: str, event, data: Any) -> None:
        self._emit(event, data, room=player_id)

    def _emit(self, event, payload: Any, room: str) -> None:
        name = event_name(event)
        try:
            self.socketio.emit(name, payload, to=room)
        except Exception as exc:
            logger.error("socket_emit_failed event=%s room=%s error=%s", name, room, exc)
            return
        if self._events_counter is not None:
            self._events_counter.labels(event=name, direction="outbound").inc()
        logger.debug("socket_emit event=%s room=%s", name, room)

    def count_inbound(self, event) -> None:
        if self._events_counter is not None:
            self._events_counter.labels(event=event_name(event), direction="inbound").inc()
