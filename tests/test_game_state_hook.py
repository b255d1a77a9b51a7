"""Tests for the client game state hook with mocked transports."""

from unittest.mock import MagicMock

import pytest

from crewcode.client import ApiError, GameStateHook
from crewcode.client.reducers import REDUCERS


def _game():
    return {
        "gameId": "G1",
        "gameStatus": "in-progress",
        "players": [
            {"playerId": "P1", "name": "Alice", "role": "imposter", "status": "alive",
             "currentRoom": "admin", "tasks": []},
            {"playerId": "P2", "name": "Bob", "role": "unknown", "status": "alive",
             "currentRoom": "cafeteria", "tasks": []},
        ],
        "tasks": [],
        "map": [],
    }


class FakeScheduler:
    """Collects delayed callbacks so tests can fire them on demand."""

    def __init__(self):
        self.calls = []

    def __call__(self, delay, callback):
        self.calls.append((delay, callback))

    def run_all(self):
        calls, self.calls = self.calls, []
        for _, callback in calls:
            callback()


@pytest.fixture
def api():
    mock_api = MagicMock()
    mock_api.get_game.return_value = _game()
    return mock_api


@pytest.fixture
def socket():
    return MagicMock()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def hook(api, socket, scheduler):
    return GameStateHook("G1", "P1", api=api, socket=socket, scheduler=scheduler)


def test_initial_state_is_loading(hook):
    assert hook.loading is True
    assert hook.game is None
    assert hook.error is None


def test_mount_connects_joins_and_fetches(hook, api, socket):
    hook.mount()

    socket.connect.assert_called_once()
    socket.join_game.assert_called_once_with("G1", "P1")
    api.get_game.assert_called_once_with("G1", "P1")
    registered = {call.args[0] for call in socket.on.call_args_list}
    assert registered == set(REDUCERS)
    assert hook.loading is False
    assert hook.game["gameId"] == "G1"
    assert [p["playerId"] for p in hook.players] == ["P1", "P2"]


def test_mount_failure_sets_error(hook, api):
    api.get_game.side_effect = ApiError("Game not found", 404)

    hook.mount()

    assert hook.error == "Failed to fetch game data"
    assert hook.loading is False
    assert hook.game is None


def test_socket_events_flow_into_state(hook, socket):
    hook.mount()
    handlers = {call.args[0]: call.args[1] for call in socket.on.call_args_list}

    handlers["playerMoved"]({"playerId": "P2", "fromRoom": "cafeteria", "toRoom": "weapons"})

    assert hook.state.player("P2")["currentRoom"] == "weapons"


def test_vent_animation_is_cleared_by_timer(hook, scheduler):
    hook.mount()

    hook.dispatch("playerVentMove", {"playerId": "P1", "fromRoom": "admin", "toRoom": "electrical"})

    assert hook.state.player("P1")["isVenting"] is True
    assert scheduler.calls[0][0] == 2.0

    scheduler.run_all()
    assert hook.state.player("P1")["isVenting"] is False
    assert hook.state.player("P1")["currentRoom"] == "electrical"


def test_second_vent_keeps_animation_until_its_own_timer(hook, scheduler):
    hook.mount()

    hook.dispatch("playerVentMove", {"playerId": "P1", "fromRoom": "admin", "toRoom": "electrical"})
    hook.dispatch("playerVentMove", {"playerId": "P1", "fromRoom": "electrical", "toRoom": "medbay"})
    (_, first_timer), (_, second_timer) = scheduler.calls

    first_timer()
    assert hook.state.player("P1")["isVenting"] is True

    second_timer()
    assert hook.state.player("P1")["isVenting"] is False
    assert hook.state.player("P1")["currentRoom"] == "medbay"


def test_subscribers_receive_new_snapshots(hook):
    seen = []
    unsubscribe = hook.subscribe(seen.append)

    hook.mount()
    hook.dispatch("gameEnded", {"winner": "crewmates"})
    unsubscribe()
    hook.dispatch("gameEnded", {"winner": "imposters"})

    assert len(seen) == 2
    assert seen[-1].game["winner"] == "crewmates"


def test_unsubscribe_twice_is_harmless(hook):
    unsubscribe = hook.subscribe(lambda state: None)

    unsubscribe()
    unsubscribe()

    hook.dispatch("gameEnded", {"winner": "crewmates"})


def test_actions_call_rest_api(hook, api):
    hook.submit_task("T1", "O(log n)")
    hook.vote("skip")
    hook.move_player("weapons")
    hook.use_vent("electrical")
    hook.kill_player("P2")
    hook.report_body("P2")
    hook.call_meeting("suspicious")
    hook.sabotage("lights")

    api.submit_task.assert_called_once_with("G1", "T1", "P1", "O(log n)")
    api.vote.assert_called_once_with("G1", "P1", "skip")
    api.move_player.assert_called_once_with("G1", "P1", "weapons")
    api.use_vent.assert_called_once_with("G1", "P1", "electrical")
    api.kill_player.assert_called_once_with("G1", "P1", "P2")
    api.report_body.assert_called_once_with("G1", "P1", "P2")
    api.call_meeting.assert_called_once_with("G1", "P1", "suspicious")
    api.sabotage.assert_called_once_with("G1", "P1", "lights")


def test_failed_action_sets_error_and_raises(hook, api):
    api.kill_player.side_effect = ApiError("Target is not in the same room", 400)

    with pytest.raises(ApiError):
        hook.kill_player("P2")

    assert hook.error == "Failed to kill player: Target is not in the same room"


def test_unmount_leaves_and_disconnects(hook, socket):
    hook.mount()
    hook.unmount()

    socket.leave_game.assert_called_once_with("G1", "P1")
    socket.disconnect.assert_called_once()
