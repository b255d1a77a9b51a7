"""Tests for the task submission rule over the REST surface."""

from datetime import datetime

import pytest


def _task(task_id, assigned_to, answer="O(log n)", is_emergency=False, status="pending"):
    return {
        "taskId": task_id,
        "gameId": "G1",
        "description": "Technical Question 1",
        "question": "What is the time complexity of binary search?",
        "answer": answer,
        "options": ["O(n)", "O(log n)", "O(n^2)", "O(1)"],
        "category": "Algorithms",
        "difficulty": "easy",
        "status": status,
        "assignedTo": assigned_to,
        "isEmergency": is_emergency,
        "deadline": None,
        "createdAt": datetime(2024, 1, 1),
        "completedAt": None,
    }


def _player(player_id, role, tasks=()):
    return {
        "playerId": player_id,
        "name": player_id,
        "role": role,
        "status": "alive",
        "currentRoom": "cafeteria",
        "isVenting": False,
        "isOnline": True,
        "tasks": list(tasks),
        "completedTasks": [],
        "votes": [],
        "hasVoted": False,
        "lastKillTime": None,
        "lastVentTime": None,
    }


@pytest.fixture
def seeded_game(app, game_repository):
    """Game G1: P1 and P3 are crewmates with one task each, P2 is the imposter."""
    tasks = [_task("T1", "P1"), _task("T2", "P3")]
    game = {
        "gameId": "G1",
        "players": [_player("P1", "crewmate", ["T1"]), _player("P2", "imposter"), _player("P3", "crewmate", ["T2"])],
        "tasks": tasks,
        "gameStatus": "in-progress",
        "imposterCount": 1,
        "currentSabotage": None,
        "sabotageDeadline": None,
        "emergencyTaskId": None,
        "votes": {},
        "voteHistory": [],
        "deadPlayers": [],
        "meetingCalledBy": None,
        "winner": None,
        "killCooldown": 30,
        "ventCooldown": 15,
    }
    game_repository.collection.insert_one(game)
    app.extensions["task_repository"].insert_tasks(tasks)
    return game


def _submit(client, task_id="T1", player_id="P1", answer="O(log n)"):
    return client.post(
        "/api/games/G1/submit-task",
        json={"taskId": task_id, "playerId": player_id, "answer": answer},
    )


def test_correct_answer_completes_task(client, seeded_game, game_repository):
    resp = _submit(client)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["isCorrect"] is True
    assert body["task"]["status"] == "completed"
    assert "answer" in body["task"]

    game = game_repository.get_game("G1")
    task = next(t for t in game["tasks"] if t["taskId"] == "T1")
    assert task["status"] == "completed"
    assert task["completedAt"] is not None
    assert game["players"][0]["completedTasks"] == ["T1"]
    assert game["gameStatus"] == "in-progress"


def test_completed_task_is_mirrored_into_task_collection(app, client, seeded_game):
    _submit(client)

    stored = app.extensions["task_repository"].get_task("T1")
    assert stored["status"] == "completed"


def test_resubmitting_completed_task_conflicts(client, seeded_game, game_repository):
    _submit(client)
    resp = _submit(client)

    assert resp.status_code == 409
    assert resp.get_json()["message"] == "Task already completed"
    assert game_repository.get_game("G1")["players"][0]["completedTasks"] == ["T1"]


def test_wrong_answer_fails_task_and_can_be_retried(client, seeded_game, game_repository):
    resp = _submit(client, answer="O(n)")

    assert resp.status_code == 200
    assert resp.get_json()["isCorrect"] is False
    assert game_repository.get_game("G1")["tasks"][0]["status"] == "failed"

    retry = _submit(client, answer=" o(log N) ")
    assert retry.get_json()["isCorrect"] is True


def test_task_of_another_player_is_forbidden(client, seeded_game):
    resp = _submit(client, task_id="T2", player_id="P1")

    assert resp.status_code == 403


def test_unknown_task_and_game(client, seeded_game):
    assert _submit(client, task_id="T404").status_code == 404
    resp = client.post(
        "/api/games/G404/submit-task", json={"taskId": "T1", "playerId": "P1", "answer": "x"}
    )
    assert resp.status_code == 404


def test_missing_fields_are_rejected(client, seeded_game):
    resp = client.post("/api/games/G1/submit-task", json={"taskId": "T1"})

    assert resp.status_code == 400
    assert "playerId" in resp.get_json()["message"]


def test_last_task_ends_game_for_crewmates(client, seeded_game, game_repository):
    _submit(client)
    _submit(client, task_id="T2", player_id="P3")

    game = game_repository.get_game("G1")
    assert game["gameStatus"] == "ended"
    assert game["winner"] == "crewmates"


def test_submissions_after_game_end_are_rejected(client, seeded_game):
    client.post("/api/games/G1/end", json={"winner": "imposters"})

    assert _submit(client).status_code == 400


def test_emergency_task_clears_sabotage(client, seeded_game, game_repository):
    resp = client.post("/api/games/G1/sabotage", json={"playerId": "P2", "sabotageType": "oxygen"})
    assert resp.status_code == 200
    emergency = resp.get_json()["emergencyTask"]
    assert emergency["assignedTo"] == "all"
    assert emergency["isEmergency"] is True

    resp = _submit(client, task_id=emergency["taskId"], player_id="P3", answer="except")

    assert resp.get_json()["isCorrect"] is True
    game = game_repository.get_game("G1")
    assert game["currentSabotage"] is None
    assert game["sabotageDeadline"] is None
    assert game["emergencyTaskId"] is None
    assert game["gameStatus"] == "in-progress"


def test_submission_emits_task_submitted(app, client, seeded_game, socketio):
    watcher = socketio.test_client(app)
    watcher.emit("joinGame", {"gameId": "G1", "playerId": "P3"}, callback=True)
    watcher.get_received()

    _submit(client)

    events = [msg for msg in watcher.get_received() if msg["name"] == "taskSubmitted"]
    assert len(events) == 1
    payload = events[0]["args"][0]
    assert payload["taskId"] == "T1"
    assert payload["playerId"] == "P1"
    assert payload["isCorrect"] is True
    watcher.disconnect()
