"""Game routes.

Routes layer handles HTTP protocol binding only: payload validation, the
acting-player check and status mapping. Rules live in GameController.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from crewcode.common.utils.validation import validate_payload
from crewcode.server.controllers import GameController, TaskController
from crewcode.server.utils.auth_middleware import admin_required, ensure_actor
from crewcode.server.utils.responses import json_errors, request_body

logger = logging.getLogger(__name__)

game_bp = Blueprint("games", __name__, url_prefix="/api/games")


def get_game_controller() -> GameController:
    return current_app.extensions["game_controller"]


def get_task_controller() -> TaskController:
    return current_app.extensions["task_controller"]


@game_bp.route("", methods=["POST"])
@json_errors
def create_game_route():
    """Create a game in the waiting state.

    Request Body:
        {"imposterCount": 1}   # Optional, 1-3, default: 1
    """
    data = request_body()
    game = get_game_controller().create_game(data.get("imposterCount", 1))
    return jsonify(game), 201


@game_bp.route("/available", methods=["GET"])
@json_errors
def available_games_route():
    return jsonify(get_game_controller().get_available_games()), 200


@game_bp.route("", methods=["GET"])
@admin_required
@json_errors
def list_games_route():
    return jsonify(get_game_controller().list_games()), 200


@game_bp.route("/<game_id>", methods=["GET"])
@json_errors
def get_game_route(game_id: str):
    """Game view for ``?playerId=``; roles of everyone else are masked."""
    player_id = request.args.get("playerId")
    if player_id:
        ensure_actor(player_id)
    return jsonify(get_game_controller().get_game(game_id, player_id)), 200


@game_bp.route("/<game_id>", methods=["DELETE"])
@admin_required
@json_errors
def delete_game_route(game_id: str):
    return jsonify(get_game_controller().delete_game(game_id)), 200


@game_bp.route("/<game_id>/join", methods=["POST"])
@json_errors
def join_game_route(game_id: str):
    data = validate_payload(request_body(), "join_game")
    ensure_actor(data["playerId"])
    return jsonify(get_game_controller().join_game(game_id, data["playerId"])), 200


@game_bp.route("/<game_id>/start", methods=["POST"])
@json_errors
def start_game_route(game_id: str):
    return jsonify(get_game_controller().start_game(game_id)), 200


@game_bp.route("/<game_id>/submit-task", methods=["POST"])
@json_errors
def submit_task_route(game_id: str):
    """Submit an answer for a task.

    Request Body:
        {"taskId": "...", "playerId": "...", "answer": "O(log n)"}
    """
    data = validate_payload(request_body(), "submit_task")
    ensure_actor(data["playerId"])
    result = get_task_controller().submit_task(
        game_id, data["taskId"], data["playerId"], data["answer"]
    )
    return jsonify(result), 200


@game_bp.route("/<game_id>/call-meeting", methods=["POST"])
@json_errors
def call_meeting_route(game_id: str):
    data = validate_payload(request_body(), "call_meeting")
    ensure_actor(data["playerId"])
    result = get_game_controller().call_meeting(game_id, data["playerId"], data.get("reason"))
    return jsonify(result), 200


@game_bp.route("/<game_id>/vote", methods=["POST"])
@json_errors
def vote_route(game_id: str):
    """Cast a vote; ``votedPlayerId`` may be ``"skip"``."""
    data = validate_payload(request_body(), "vote")
    ensure_actor(data["voterId"])
    result = get_game_controller().vote(game_id, data["voterId"], data["votedPlayerId"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/sabotage", methods=["POST"])
@json_errors
def sabotage_route(game_id: str):
    data = validate_payload(request_body(), "sabotage")
    ensure_actor(data["playerId"])
    result = get_game_controller().sabotage(game_id, data["playerId"], data["sabotageType"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/move", methods=["POST"])
@json_errors
def move_route(game_id: str):
    data = validate_payload(request_body(), "move")
    ensure_actor(data["playerId"])
    result = get_game_controller().move_player(game_id, data["playerId"], data["targetRoom"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/use-vent", methods=["POST"])
@json_errors
def use_vent_route(game_id: str):
    data = validate_payload(request_body(), "use_vent")
    ensure_actor(data["playerId"])
    result = get_game_controller().use_vent(game_id, data["playerId"], data["targetRoom"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/kill", methods=["POST"])
@json_errors
def kill_route(game_id: str):
    data = validate_payload(request_body(), "kill")
    ensure_actor(data["killerId"])
    result = get_game_controller().kill_player(game_id, data["killerId"], data["targetId"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/report-body", methods=["POST"])
@json_errors
def report_body_route(game_id: str):
    data = validate_payload(request_body(), "report_body")
    ensure_actor(data["reporterId"])
    result = get_game_controller().report_body(game_id, data["reporterId"], data["deadPlayerId"])
    return jsonify(result), 200


@game_bp.route("/<game_id>/end", methods=["POST"])
@json_errors
def end_game_route(game_id: str):
    data = validate_payload(request_body(), "end_game")
    return jsonify(get_game_controller().end_game(game_id, data.get("winner"))), 200


@game_bp.route("/<game_id>/kick", methods=["POST"])
@admin_required
@json_errors
def kick_route(game_id: str):
    data = validate_payload(request_body(), "kick")
    return jsonify(get_game_controller().kick_player(game_id, data["playerId"])), 200
