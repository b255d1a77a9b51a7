"""Pure reducers from socket events to the client's game snapshot.

Each reducer takes ``(state, data, player_id)`` and returns a new
``GameSnapshot``; the input snapshot is never mutated. Reducers only patch
the fields their event carries, so they can be applied in any order and
re-applying an identical event is harmless.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from crewcode.common.game_types import (
    GAME_DISCUSSION,
    GAME_ENDED,
    GAME_IN_PROGRESS,
    GameEvent,
    PLAYER_DEAD,
    TASK_COMPLETED,
    TASK_FAILED,
    UNKNOWN_ROLE,
)

# How long a vent move shows as "venting" on this client.
VENT_ANIMATION_SECONDS = 2.0


@dataclass
class GameSnapshot:
    """Local view of one game for one player.

    ``game`` holds the game-level fields; players, the player's own tasks
    (plus an active emergency task) and the room map are split out.
    """

    game: Optional[Dict[str, Any]] = None
    players: List[Dict[str, Any]] = field(default_factory=list)
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    map: List[Dict[str, Any]] = field(default_factory=list)
    emergency_task: Optional[Dict[str, Any]] = None
    sabotage_deadline: Optional[str] = None
    error: Optional[str] = None
    loading: bool = True

    def player(self, player_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.players if p.get("playerId") == player_id), None)


Reducer = Callable[[GameSnapshot, Dict[str, Any], str], GameSnapshot]


def _copy(state: GameSnapshot) -> GameSnapshot:
    return deepcopy(state)


def _active_emergency_task(game: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    emergency_id = game.get("emergencyTaskId")
    for task in game.get("tasks") or []:
        if not task.get("isEmergency") or task.get("status") == TASK_COMPLETED:
            continue
        if emergency_id is None or task.get("taskId") == emergency_id:
            if game.get("currentSabotage"):
                return task
    return None


def snapshot_from_game(game: Dict[str, Any], player_id: str, base: Optional[GameSnapshot] = None) -> GameSnapshot:
    """Build a snapshot from a full (player-form) Game document."""
    document = deepcopy(game)
    players = document.pop("players", None) or []
    all_tasks = document.get("tasks") or []
    rooms = document.pop("map", None) or []

    own = next((p for p in players if p.get("playerId") == player_id), None)
    own_ids = list(dict.fromkeys(own.get("tasks") or [])) if own else []
    tasks = [t for t in all_tasks if t.get("taskId") in own_ids]

    emergency = _active_emergency_task(document)
    if emergency is not None and emergency not in tasks:
        tasks.append(emergency)
    document.pop("tasks", None)

    state = base if base is not None else GameSnapshot()
    return replace(
        state,
        game=document,
        players=players,
        tasks=tasks,
        map=rooms or state.map,
        emergency_task=emergency,
        sabotage_deadline=document.get("sabotageDeadline") if emergency else None,
    )


def _set_game_fields(state: GameSnapshot, **fields: Any) -> GameSnapshot:
    new_state = _copy(state)
    if new_state.game is not None:
        new_state.game.update(fields)
    return new_state


def _patch_player(state: GameSnapshot, player_id: Optional[str], **fields: Any) -> GameSnapshot:
    new_state = _copy(state)
    player = new_state.player(player_id) if player_id else None
    if player is not None:
        player.update(fields)
    return new_state


def _set_task_status(tasks: List[Dict[str, Any]], task_id: str, status: str) -> None:
    for task in tasks:
        if task.get("taskId") == task_id:
            task["status"] = status


# ----------------------------------------------------------------------
# reducers
# ----------------------------------------------------------------------
def game_started(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = snapshot_from_game(data, player_id, base=_copy(state))
    new_state.game["gameStatus"] = GAME_IN_PROGRESS
    return new_state


def game_update(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    """Merge a broadcast snapshot; the broadcast masks roles, so keep our own."""
    known = state.player(player_id)
    new_state = snapshot_from_game(data, player_id, base=_copy(state))
    own = new_state.player(player_id)
    if own is not None and known is not None and own.get("role") == UNKNOWN_ROLE:
        own["role"] = known.get("role")
    return new_state


def task_submitted(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _copy(state)
    # relayed taskCompleted payloads carry neither field
    failed = data.get("isCorrect") is False or data.get("status") == TASK_FAILED
    status = TASK_FAILED if failed else TASK_COMPLETED
    _set_task_status(new_state.tasks, data.get("taskId"), status)
    if new_state.emergency_task and new_state.emergency_task.get("taskId") == data.get("taskId"):
        new_state.emergency_task["status"] = status
    return new_state


def sabotage_alert(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _set_game_fields(state, currentSabotage=data.get("sabotageType"))


def sabotage(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _set_game_fields(state, currentSabotage=data.get("sabotageType"))
    task = deepcopy(data.get("emergencyTask"))
    if task:
        new_state.emergency_task = task
        if all(t.get("taskId") != task.get("taskId") for t in new_state.tasks):
            new_state.tasks.append(task)
        if new_state.game is not None:
            new_state.game["emergencyTaskId"] = task.get("taskId")
    new_state.sabotage_deadline = data.get("deadline") or (task or {}).get("deadline")
    if new_state.game is not None:
        new_state.game["sabotageDeadline"] = new_state.sabotage_deadline
    return new_state


def sabotage_cleared(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _set_game_fields(
        state, currentSabotage=None, sabotageDeadline=None, emergencyTaskId=None
    )
    task_id = data.get("taskId") or (state.emergency_task or {}).get("taskId")
    if task_id:
        _set_task_status(new_state.tasks, task_id, TASK_COMPLETED)
    new_state.emergency_task = None
    new_state.sabotage_deadline = None
    return new_state


def meeting_called(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _set_game_fields(
        state,
        gameStatus=GAME_DISCUSSION,
        meetingCalledBy=data.get("calledBy") or data.get("playerId"),
    )


def vote_recorded(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _patch_player(state, data.get("voterId"), hasVoted=True)


def vote_result(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _set_game_fields(
        state,
        gameStatus=GAME_ENDED if data.get("gameOver") else GAME_IN_PROGRESS,
        winner=data.get("winner"),
    )
    ejected = data.get("ejectedPlayerId")
    if ejected:
        if new_state.game is not None:
            dead = new_state.game.setdefault("deadPlayers", [])
            if ejected not in dead:
                dead.append(ejected)
        player = new_state.player(ejected)
        if player is not None:
            player["status"] = PLAYER_DEAD
    for player in new_state.players:
        player["hasVoted"] = False
    return new_state


def game_ended(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _set_game_fields(state, gameStatus=GAME_ENDED, winner=data.get("winner"))


def player_moved(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    room = data.get("toRoom") or data.get("room")
    if not room:
        return _copy(state)
    return _patch_player(state, data.get("playerId"), currentRoom=room)


def player_vent_move(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _patch_player(state, data.get("playerId"), currentRoom=data.get("toRoom"), isVenting=True)


def clear_venting(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    """Local timer follow-up to ``player_vent_move``."""
    return _patch_player(state, data.get("playerId"), isVenting=False)


def player_killed(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _patch_player(state, data.get("playerId"), status=PLAYER_DEAD)


def body_reported(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _set_game_fields(state, gameStatus=GAME_DISCUSSION)


def player_joined(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _copy(state)
    joined_id = data.get("playerId")
    if joined_id and new_state.player(joined_id) is None:
        new_state.players.append(
            {
                "playerId": joined_id,
                "name": data.get("name"),
                "role": UNKNOWN_ROLE,
                "status": "alive",
                "isOnline": True,
                "tasks": [],
                "completedTasks": [],
                "votes": [],
                "hasVoted": False,
            }
        )
    return new_state


def player_connected(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _patch_player(state, data.get("playerId"), isOnline=True)


def player_disconnected(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    return _patch_player(state, data.get("playerId"), isOnline=False)


def player_kicked(state: GameSnapshot, data: Dict[str, Any], player_id: str) -> GameSnapshot:
    new_state = _copy(state)
    new_state.players = [p for p in new_state.players if p.get("playerId") != data.get("playerId")]
    return new_state


REDUCERS: Dict[str, Reducer] = {
    GameEvent.GAME_STARTED.value: game_started,
    GameEvent.GAME_UPDATE.value: game_update,
    GameEvent.TASK_SUBMITTED.value: task_submitted,
    GameEvent.SABOTAGE_ALERT.value: sabotage_alert,
    GameEvent.SABOTAGE.value: sabotage,
    GameEvent.SABOTAGE_CLEARED.value: sabotage_cleared,
    GameEvent.MEETING_CALLED.value: meeting_called,
    GameEvent.VOTE_RECORDED.value: vote_recorded,
    GameEvent.VOTE_RESULT.value: vote_result,
    GameEvent.GAME_ENDED.value: game_ended,
    GameEvent.PLAYER_MOVED.value: player_moved,
    GameEvent.PLAYER_VENT_MOVE.value: player_vent_move,
    GameEvent.PLAYER_KILLED.value: player_killed,
    GameEvent.BODY_REPORTED.value: body_reported,
    GameEvent.PLAYER_JOINED.value: player_joined,
    GameEvent.PLAYER_CONNECTED.value: player_connected,
    GameEvent.PLAYER_DISCONNECTED.value: player_disconnected,
    GameEvent.PLAYER_KICKED.value: player_kicked,
}


def reduce_event(state: GameSnapshot, event: str, data: Any, player_id: str) -> GameSnapshot:
    """Apply the reducer registered for ``event``; unknown events leave state as is."""
    reducer = REDUCERS.get(event)
    if reducer is None:
        return state
    return reducer(state, data if isinstance(data, dict) else {}, player_id)
