"""Relay handlers: client events re-broadcast to the rest of a game room.

Payloads are forwarded verbatim; only the ingress shape is checked.
"""

import logging

from flask import request
from flask_socketio import emit

from crewcode.common.errors import ValidationError
from crewcode.common.game_types import GameEvent, RELAY_EVENTS
from crewcode.common.utils.validation import MAX_CHAT_LENGTH, validate_payload
from crewcode.server.socket_handlers.room_handlers import SUCCESS_ACK, error_ack
from crewcode.server.utils.auth_middleware import socket_authenticated

logger = logging.getLogger(__name__)


def _make_relay(gateway, inbound: GameEvent, outbound: GameEvent):
    @socket_authenticated
    def relay(claims, data):
        gateway.count_inbound(inbound)
        try:
            payload = validate_payload(data, "relay")
            if inbound is GameEvent.CHAT_MESSAGE and len(str(payload.get("message", ""))) > MAX_CHAT_LENGTH:
                raise ValidationError("Message is too long")
        except ValidationError as exc:
            logger.warning("relay_rejected event=%s sid=%s error=%s", inbound.value, request.sid, exc.message)
            return error_ack(exc.message)

        emit(outbound.value, data, to=payload["gameId"], include_self=False)
        logger.debug(
            "relay event=%s outbound=%s game=%s sid=%s",
            inbound.value,
            outbound.value,
            payload["gameId"],
            request.sid,
        )
        return SUCCESS_ACK

    relay.__name__ = f"relay_{inbound.value}"
    return relay


def register_handlers(socketio, gateway):
    """Register one relay handler per entry of ``RELAY_EVENTS``."""
    for inbound, outbound in RELAY_EVENTS.items():
        socketio.on_event(inbound.value, _make_relay(gateway, inbound, outbound))
