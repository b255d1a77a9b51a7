"""Player routes."""

import logging

from flask import Blueprint, current_app, jsonify

from crewcode.common.utils.validation import validate_payload
from crewcode.server.controllers import PlayerController
from crewcode.server.utils.auth_middleware import admin_required, ensure_actor
from crewcode.server.utils.responses import json_errors, request_body

logger = logging.getLogger(__name__)

player_bp = Blueprint("players", __name__, url_prefix="/api/players")


def get_player_controller() -> PlayerController:
    return current_app.extensions["player_controller"]


@player_bp.route("/register", methods=["POST"])
@json_errors
def register_player_route():
    """Register a player and return its token.

    Request Body:
        {"name": "Alice", "gameId": "game_..."}   # gameId optional
    """
    data = validate_payload(request_body(), "register_player")
    result = get_player_controller().register_player(data["name"], data.get("gameId"))
    return jsonify(result), 201


@player_bp.route("", methods=["GET"])
@json_errors
def list_players_route():
    return jsonify(get_player_controller().list_players()), 200


@player_bp.route("/<player_id>", methods=["GET"])
@json_errors
def get_player_route(player_id: str):
    return jsonify(get_player_controller().get_player(player_id)), 200


@player_bp.route("/assign-role", methods=["PUT"])
@admin_required
@json_errors
def assign_role_route():
    data = validate_payload(request_body(), "assign_role")
    return jsonify(get_player_controller().assign_role(data["playerId"], data["role"])), 200


@player_bp.route("/status", methods=["PUT"])
@json_errors
def update_status_route():
    data = validate_payload(request_body(), "player_status")
    ensure_actor(data["playerId"])
    return jsonify(get_player_controller().update_status(data["playerId"], data["status"])), 200
