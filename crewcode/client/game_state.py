"""Client-side game state holder for one player watching one game.

``mount`` connects the socket, joins the game and player rooms and fetches
the player-form Game document; from then on every registered socket event
is folded into the snapshot by its reducer. Actions only issue REST calls:
the visible change arrives with the server's broadcast.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from crewcode.client.api import ApiError, GameAPI
from crewcode.client.reducers import (
    REDUCERS,
    VENT_ANIMATION_SECONDS,
    GameSnapshot,
    clear_venting,
    reduce_event,
    snapshot_from_game,
)
from crewcode.client.socket_service import SocketService
from crewcode.common.game_types import GameEvent

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]


class GameStateHook:
    def __init__(
        self,
        game_id: str,
        player_id: str,
        api: Optional[GameAPI] = None,
        socket: Optional[SocketService] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.game_id = game_id
        self.player_id = player_id
        self.api = api or GameAPI()
        self.socket = socket or SocketService(token=self.api.token)
        self._scheduler = scheduler or self._socket_scheduler
        self._lock = threading.RLock()
        self._listeners: List[Callable[[GameSnapshot], None]] = []
        self._vent_sequence: Dict[str, int] = {}
        self.state = GameSnapshot()

    # ------------------------------------------------------------------
    # state access
    # ------------------------------------------------------------------
    @property
    def game(self) -> Optional[Dict[str, Any]]:
        return self.state.game

    @property
    def players(self) -> List[Dict[str, Any]]:
        return self.state.players

    @property
    def tasks(self) -> List[Dict[str, Any]]:
        return self.state.tasks

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    @property
    def loading(self) -> bool:
        return self.state.loading

    def subscribe(self, listener: Callable[[GameSnapshot], None]) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: GameSnapshot) -> None:
        with self._lock:
            self.state = state
        for listener in list(self._listeners):
            listener(state)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def mount(self) -> GameSnapshot:
        self.socket.connect()
        for event in REDUCERS:
            self.socket.on(event, self._handler_for(event))
        self.socket.join_game(self.game_id, self.player_id)

        try:
            game = self.api.get_game(self.game_id, self.player_id)
        except ApiError as exc:
            logger.error("game_fetch_failed game=%s error=%s", self.game_id, exc.message)
            with self._lock:
                failed = replace(self.state, error="Failed to fetch game data", loading=False)
            self._set_state(failed)
            return self.state

        with self._lock:
            fetched = snapshot_from_game(game, self.player_id, base=self.state)
        self._set_state(replace(fetched, loading=False))
        return self.state

    def unmount(self) -> None:
        self.socket.leave_game(self.game_id, self.player_id)
        self.socket.disconnect()

    # ------------------------------------------------------------------
    # events
    # ------------------------------------------------------------------
    def _handler_for(self, event: str) -> Callable[..., None]:
        def handler(data=None, *_args):
            self.dispatch(event, data)

        return handler

    def dispatch(self, event: str, data: Any) -> GameSnapshot:
        """Fold one socket event into the snapshot."""
        with self._lock:
            new_state = reduce_event(self.state, event, data, self.player_id)
        self._set_state(new_state)

        if event == GameEvent.PLAYER_VENT_MOVE.value and isinstance(data, dict):
            vented_id = data.get("playerId")
            with self._lock:
                sequence = self._vent_sequence.get(vented_id, 0) + 1
                self._vent_sequence[vented_id] = sequence
            self._scheduler(VENT_ANIMATION_SECONDS, lambda: self._end_venting(vented_id, sequence))
        return new_state

    def _end_venting(self, player_id: str, sequence: int) -> None:
        with self._lock:
            # a later vent move restarted the animation
            if self._vent_sequence.get(player_id) != sequence:
                return
            new_state = clear_venting(self.state, {"playerId": player_id}, self.player_id)
        self._set_state(new_state)

    def _socket_scheduler(self, delay: float, callback: Callable[[], None]) -> None:
        def run_later():
            self.socket.sleep(delay)
            callback()

        self.socket.start_background_task(run_later)

    # ------------------------------------------------------------------
    # actions
    # ------------------------------------------------------------------
    def _call(self, failure: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except ApiError as exc:
            logger.warning("action_failed game=%s action=%s error=%s", self.game_id, failure, exc.message)
            with self._lock:
                failed = replace(self.state, error=f"{failure}: {exc.message}")
            self._set_state(failed)
            raise

    def submit_task(self, task_id: str, answer: str) -> Dict[str, Any]:
        return self._call(
            "Failed to submit task", self.api.submit_task, self.game_id, task_id, self.player_id, answer
        )

    def call_meeting(self, reason: Optional[str] = None) -> Dict[str, Any]:
        return self._call("Failed to call meeting", self.api.call_meeting, self.game_id, self.player_id, reason)

    def vote(self, voted_player_id: str) -> Dict[str, Any]:
        return self._call("Failed to submit vote", self.api.vote, self.game_id, self.player_id, voted_player_id)

    def sabotage(self, sabotage_type: str) -> Dict[str, Any]:
        return self._call(
            "Failed to initiate sabotage", self.api.sabotage, self.game_id, self.player_id, sabotage_type
        )

    def move_player(self, target_room: str) -> Dict[str, Any]:
        return self._call("Failed to move", self.api.move_player, self.game_id, self.player_id, target_room)

    def use_vent(self, target_room: str) -> Dict[str, Any]:
        return self._call("Failed to use vent", self.api.use_vent, self.game_id, self.player_id, target_room)

    def kill_player(self, target_id: str) -> Dict[str, Any]:
        return self._call("Failed to kill player", self.api.kill_player, self.game_id, self.player_id, target_id)

    def report_body(self, dead_player_id: str) -> Dict[str, Any]:
        return self._call(
            "Failed to report body", self.api.report_body, self.game_id, self.player_id, dead_player_id
        )
