"""Socket.IO event handlers.

``room_handlers`` manages game/player room membership and online flags;
``relay_handlers`` re-broadcasts client events to the rest of a game room.
Game rules are never evaluated here; state changes go through the REST API.
"""

from crewcode.server.socket_handlers import relay_handlers, room_handlers

__all__ = ["relay_handlers", "room_handlers"]
