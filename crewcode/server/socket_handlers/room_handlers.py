"""Socket.IO handlers for game room membership."""

import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from crewcode.common.errors import ForbiddenError, ValidationError
from crewcode.common.game_types import GameEvent
from crewcode.common.utils.validation import validate_payload
from crewcode.server.utils.auth_middleware import socket_authenticated

logger = logging.getLogger(__name__)

SUCCESS_ACK = {"status": "success"}


def error_ack(message: str) -> dict:
    return {"status": "error", "message": message}


def _check_token_owner(claims, player_id: str) -> None:
    if claims and claims.get("playerId") and claims["playerId"] != player_id:
        raise ForbiddenError("Token does not belong to this player")


def register_handlers(socketio, gateway, game_repository):
    """Register connect/join/leave/disconnect handlers."""

    @socketio.on("connect")
    def handle_connect():
        logger.info("client_connected sid=%s", request.sid)

    @socketio.on(GameEvent.JOIN_GAME.value)
    @socket_authenticated
    def handle_join_game(claims, data):
        """Join the game room and the player's private room.

        Expected data: {"gameId": "...", "playerId": "..."}
        """
        gateway.count_inbound(GameEvent.JOIN_GAME)
        try:
            payload = validate_payload(data, "room_membership")
            game_id, player_id = payload["gameId"], payload["playerId"]
            _check_token_owner(claims, player_id)
        except (ValidationError, ForbiddenError) as exc:
            logger.warning("join_game_rejected sid=%s error=%s", request.sid, exc.message)
            return error_ack(exc.message)

        if game_repository.get_game(game_id) is None:
            logger.warning("join_game_unknown game=%s sid=%s", game_id, request.sid)
            return error_ack("Game not found")

        join_room(game_id)
        join_room(player_id)
        gateway.track(request.sid, game_id, player_id)

        if game_repository.set_player_online(game_id, player_id, True) is None:
            logger.info("join_game_spectator game=%s player=%s", game_id, player_id)

        emit(
            GameEvent.PLAYER_CONNECTED.value,
            {"playerId": player_id},
            to=game_id,
            include_self=False,
        )
        logger.info("player_joined_rooms game=%s player=%s sid=%s", game_id, player_id, request.sid)
        return SUCCESS_ACK

    @socketio.on(GameEvent.LEAVE_GAME.value)
    @socket_authenticated
    def handle_leave_game(claims, data):
        """Leave both rooms and mark the player offline."""
        gateway.count_inbound(GameEvent.LEAVE_GAME)
        try:
            payload = validate_payload(data, "room_membership")
            game_id, player_id = payload["gameId"], payload["playerId"]
            _check_token_owner(claims, player_id)
        except (ValidationError, ForbiddenError) as exc:
            return error_ack(exc.message)

        leave_room(game_id)
        leave_room(player_id)
        gateway.untrack(request.sid)
        game_repository.set_player_online(game_id, player_id, False)

        emit(
            GameEvent.PLAYER_DISCONNECTED.value,
            {"playerId": player_id},
            to=game_id,
            include_self=False,
        )
        logger.info("player_left_rooms game=%s player=%s sid=%s", game_id, player_id, request.sid)
        return SUCCESS_ACK

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        """Mark the tracked player offline; rooms are dropped by Socket.IO."""
        connection = gateway.untrack(request.sid)
        if connection is None:
            logger.info("client_disconnected sid=%s", request.sid)
            return

        game_id, player_id = connection
        logger.info(
            "player_disconnected game=%s player=%s sid=%s reason=%s",
            game_id,
            player_id,
            request.sid,
            reason,
        )
        game_repository.set_player_online(game_id, player_id, False)
        gateway.emit_to_game(game_id, GameEvent.PLAYER_DISCONNECTED, {"playerId": player_id})
