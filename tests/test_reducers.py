"""Tests for the client-side event reducers."""

import pytest

from crewcode.client.reducers import GameSnapshot, reduce_event, snapshot_from_game


def _game():
    return {
        "gameId": "G1",
        "gameStatus": "in-progress",
        "currentSabotage": None,
        "sabotageDeadline": None,
        "emergencyTaskId": None,
        "deadPlayers": [],
        "players": [
            {"playerId": "P1", "name": "Alice", "role": "crewmate", "status": "alive",
             "currentRoom": "cafeteria", "tasks": ["T1"], "hasVoted": False},
            {"playerId": "P2", "name": "Bob", "role": "unknown", "status": "alive",
             "currentRoom": "cafeteria", "tasks": [], "hasVoted": False},
        ],
        "tasks": [
            {"taskId": "T1", "assignedTo": "P1", "status": "pending", "isEmergency": False},
            {"taskId": "T9", "assignedTo": "P3", "status": "pending", "isEmergency": False},
        ],
        "map": [{"name": "cafeteria"}],
    }


@pytest.fixture
def state():
    return snapshot_from_game(_game(), "P1")


def test_snapshot_splits_players_tasks_and_map(state):
    assert [p["playerId"] for p in state.players] == ["P1", "P2"]
    assert [t["taskId"] for t in state.tasks] == ["T1"]
    assert state.map == [{"name": "cafeteria"}]
    assert "players" not in state.game
    assert state.emergency_task is None


def test_unknown_event_leaves_state_untouched(state):
    assert reduce_event(state, "somethingElse", {}, "P1") is state


def test_reducers_do_not_mutate_input(state):
    reduce_event(state, "playerMoved", {"playerId": "P2", "toRoom": "admin"}, "P1")

    assert state.player("P2")["currentRoom"] == "cafeteria"


def test_player_moved_is_idempotent(state):
    data = {"playerId": "P2", "fromRoom": "cafeteria", "toRoom": "admin"}

    once = reduce_event(state, "playerMoved", data, "P1")
    twice = reduce_event(once, "playerMoved", data, "P1")

    assert once.player("P2")["currentRoom"] == "admin"
    assert twice == once


def test_relayed_position_uses_room_field(state):
    moved = reduce_event(state, "playerMoved", {"playerId": "P2", "room": "medbay"}, "P1")

    assert moved.player("P2")["currentRoom"] == "medbay"


def test_task_submitted(state):
    failed = reduce_event(state, "taskSubmitted", {"taskId": "T1", "isCorrect": False}, "P1")
    done = reduce_event(failed, "taskSubmitted", {"taskId": "T1", "isCorrect": True}, "P1")

    assert failed.tasks[0]["status"] == "failed"
    assert done.tasks[0]["status"] == "completed"


def test_relayed_task_completion_marks_task_completed(state):
    relayed = reduce_event(state, "taskSubmitted", {"gameId": "G1", "taskId": "T1", "playerId": "P2"}, "P1")
    explicit = reduce_event(state, "taskSubmitted", {"taskId": "T1", "status": "failed"}, "P1")

    assert relayed.tasks[0]["status"] == "completed"
    assert explicit.tasks[0]["status"] == "failed"


def test_sabotage_then_cleared(state):
    task = {"taskId": "E1", "assignedTo": "all", "isEmergency": True, "status": "pending",
            "deadline": "2024-01-01T12:01:00"}
    sabotaged = reduce_event(
        state,
        "sabotage",
        {"sabotageType": "lights", "emergencyTask": task, "deadline": task["deadline"]},
        "P1",
    )

    assert sabotaged.game["currentSabotage"] == "lights"
    assert sabotaged.emergency_task["taskId"] == "E1"
    assert sabotaged.sabotage_deadline == "2024-01-01T12:01:00"
    assert [t["taskId"] for t in sabotaged.tasks] == ["T1", "E1"]

    cleared = reduce_event(sabotaged, "sabotageCleared", {"taskId": "E1", "sabotageType": "lights"}, "P1")

    assert cleared.game["currentSabotage"] is None
    assert cleared.emergency_task is None
    assert cleared.sabotage_deadline is None
    assert cleared.tasks[1]["status"] == "completed"


def test_sabotage_alert_only_flags_the_game(state):
    alerted = reduce_event(state, "sabotageAlert", {"gameId": "G1", "sabotageType": "reactor"}, "P1")

    assert alerted.game["currentSabotage"] == "reactor"
    assert alerted.emergency_task is None


def test_meeting_votes_and_result(state):
    meeting = reduce_event(state, "meetingCalled", {"calledBy": "P2"}, "P1")
    assert meeting.game["gameStatus"] == "discussion"
    assert meeting.game["meetingCalledBy"] == "P2"

    voted = reduce_event(meeting, "voteRecorded", {"voterId": "P1", "votedPlayerId": "P2"}, "P1")
    assert voted.player("P1")["hasVoted"] is True

    result = reduce_event(voted, "voteResult", {"ejectedPlayerId": "P2", "gameOver": False}, "P1")
    assert result.player("P2")["status"] == "dead"
    assert result.game["deadPlayers"] == ["P2"]
    assert result.game["gameStatus"] == "in-progress"
    assert all(not p["hasVoted"] for p in result.players)


def test_game_ended(state):
    ended = reduce_event(state, "gameEnded", {"winner": "imposters"}, "P1")

    assert ended.game["gameStatus"] == "ended"
    assert ended.game["winner"] == "imposters"


def test_kill_and_report(state):
    killed = reduce_event(state, "playerKilled", {"playerId": "P2", "room": "cafeteria"}, "P1")
    reported = reduce_event(killed, "bodyReported", {"reporterId": "P1", "deadPlayerId": "P2"}, "P1")

    assert killed.player("P2")["status"] == "dead"
    assert reported.game["gameStatus"] == "discussion"


def test_vent_move_marks_venting(state):
    vented = reduce_event(state, "playerVentMove", {"playerId": "P2", "toRoom": "electrical"}, "P1")

    assert vented.player("P2")["currentRoom"] == "electrical"
    assert vented.player("P2")["isVenting"] is True


def test_game_update_keeps_own_role(state):
    broadcast = _game()
    broadcast["players"][0]["role"] = "unknown"
    broadcast["players"][1]["currentRoom"] = "admin"

    updated = reduce_event(state, "gameUpdate", broadcast, "P1")

    assert updated.player("P1")["role"] == "crewmate"
    assert updated.player("P2")["currentRoom"] == "admin"


def test_game_started_replaces_snapshot():
    started = reduce_event(GameSnapshot(), "gameStarted", _game(), "P1")

    assert started.game["gameStatus"] == "in-progress"
    assert [t["taskId"] for t in started.tasks] == ["T1"]


def test_membership_events(state):
    joined = reduce_event(state, "playerJoined", {"playerId": "P3", "name": "Carol"}, "P1")
    assert joined.player("P3")["role"] == "unknown"
    assert reduce_event(joined, "playerJoined", {"playerId": "P3", "name": "Carol"}, "P1") == joined

    offline = reduce_event(joined, "playerDisconnected", {"playerId": "P3"}, "P1")
    assert offline.player("P3")["isOnline"] is False
    online = reduce_event(offline, "playerConnected", {"playerId": "P3"}, "P1")
    assert online.player("P3")["isOnline"] is True

    kicked = reduce_event(online, "playerKicked", {"playerId": "P3"}, "P1")
    assert kicked.player("P3") is None
