"""Tests for player tokens and the admin secret with authentication enabled."""

from dataclasses import replace

import pytest

from crewcode.server.app import create_app
from tests.conftest import ADMIN_HEADERS


@pytest.fixture
def auth_app(db_controller, test_settings):
    application = create_app(
        db_controller=db_controller,
        settings=replace(test_settings, require_authentication=True),
        async_mode="threading",
    )
    application.config["TESTING"] = True
    return application


@pytest.fixture
def auth_client(auth_app):
    with auth_app.test_client() as test_client:
        yield test_client


def _register(client, name):
    body = client.post("/api/players/register", json={"name": name}).get_json()
    return body["player"]["playerId"], {"Authorization": f"Bearer {body['token']}"}


def test_public_routes_need_no_token(auth_client):
    assert auth_client.get("/api/health").status_code == 200
    assert auth_client.get("/api/games/available").status_code == 200
    assert auth_client.post("/api/games", json={}).status_code == 201


def test_missing_token_is_rejected(auth_client):
    resp = auth_client.get("/api/players")

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Authentication required"


def test_invalid_token_is_rejected(auth_client):
    resp = auth_client.get("/api/players", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid or expired token"


def test_valid_token_is_accepted(auth_client):
    player_id, headers = _register(auth_client, "Alice")

    resp = auth_client.get(f"/api/players/{player_id}", headers=headers)
    assert resp.status_code == 200


def test_acting_for_another_player_is_forbidden(auth_client):
    game_id = auth_client.post("/api/games", json={}).get_json()["gameId"]
    _, alice_headers = _register(auth_client, "Alice")
    bob_id, bob_headers = _register(auth_client, "Bob")

    resp = auth_client.post(f"/api/games/{game_id}/join", json={"playerId": bob_id}, headers=alice_headers)
    assert resp.status_code == 403

    resp = auth_client.post(f"/api/games/{game_id}/join", json={"playerId": bob_id}, headers=bob_headers)
    assert resp.status_code == 200


def test_reading_another_players_view_is_forbidden(auth_client):
    game_id = auth_client.post("/api/games", json={}).get_json()["gameId"]
    alice_id, alice_headers = _register(auth_client, "Alice")
    bob_id, bob_headers = _register(auth_client, "Bob")
    for player_id, headers in ((alice_id, alice_headers), (bob_id, bob_headers)):
        auth_client.post(f"/api/games/{game_id}/join", json={"playerId": player_id}, headers=headers)

    resp = auth_client.get(f"/api/games/{game_id}?playerId={bob_id}", headers=alice_headers)
    assert resp.status_code == 403

    own = auth_client.get(f"/api/games/{game_id}?playerId={alice_id}", headers=alice_headers)
    assert own.status_code == 200
    assert auth_client.get(f"/api/games/{game_id}?playerId={bob_id}", headers=ADMIN_HEADERS).status_code == 200


def test_admin_routes_require_admin_secret(auth_client):
    _, headers = _register(auth_client, "Alice")

    denied = auth_client.get("/api/games", headers=headers)
    assert denied.status_code == 403
    assert denied.get_json()["message"] == "Access denied. Admins only."

    assert auth_client.get("/api/games", headers=ADMIN_HEADERS).status_code == 200
    wrong = auth_client.get("/api/games", headers={"X-Admin-Secret": "guess"})
    assert wrong.status_code == 401


def test_admin_secret_acts_for_any_player(auth_client):
    game_id = auth_client.post("/api/games", json={}).get_json()["gameId"]
    bob_id, _ = _register(auth_client, "Bob")

    resp = auth_client.post(f"/api/games/{game_id}/join", json={"playerId": bob_id}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200


def test_socket_join_with_token(auth_app, auth_client):
    game_id = auth_client.post("/api/games", json={}).get_json()["gameId"]
    player_id, headers = _register(auth_client, "Alice")
    token = headers["Authorization"].split(" ", 1)[1]
    socketio = auth_app.extensions["socketio"]

    socket_client = socketio.test_client(auth_app, query_string=f"token={token}")
    ack = socket_client.emit("joinGame", {"gameId": game_id, "playerId": player_id}, callback=True)
    assert ack == {"status": "success"}

    ack = socket_client.emit("joinGame", {"gameId": game_id, "playerId": "player_other"}, callback=True)
    assert ack == {"status": "error", "message": "Token does not belong to this player"}
    socket_client.disconnect()
