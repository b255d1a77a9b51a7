"""Task lookup routes."""

from flask import Blueprint, current_app, jsonify

from crewcode.server.utils.auth_middleware import ensure_actor
from crewcode.server.utils.responses import json_errors

task_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@task_bp.route("/player/<player_id>", methods=["GET"])
@json_errors
def player_tasks_route(player_id: str):
    ensure_actor(player_id)
    return jsonify(current_app.extensions["task_controller"].get_tasks_for_player(player_id)), 200


@task_bp.route("/<task_id>", methods=["GET"])
@json_errors
def get_task_route(task_id: str):
    return jsonify(current_app.extensions["task_controller"].get_task(task_id)), 200
