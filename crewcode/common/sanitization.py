"""Per-audience projections of a Game document.

A player-specific projection keeps the requester's own role; every other
player's role becomes ``"unknown"``. The broadcast projection masks every
role. Projections never touch the source document.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Any, Dict, Optional

from crewcode.common.game_types import UNKNOWN_ROLE


def to_json_ready(value: Any) -> Any:
    """Recursively drop Mongo ``_id`` keys and render datetimes as ISO strings."""
    if isinstance(value, dict):
        return {k: to_json_ready(v) for k, v in value.items() if k != "_id"}
    if isinstance(value, (list, tuple)):
        return [to_json_ready(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def sanitize_player(player: Dict[str, Any], requesting_player_id: Optional[str] = None) -> Dict[str, Any]:
    sanitized = deepcopy(player)
    if not requesting_player_id or sanitized.get("playerId") != requesting_player_id:
        sanitized["role"] = UNKNOWN_ROLE
    for collection in ("tasks", "completedTasks", "votes"):
        if sanitized.get(collection) is None:
            sanitized[collection] = []
    sanitized.setdefault("hasVoted", False)
    return sanitized


def sanitize_game(game: Dict[str, Any], requesting_player_id: Optional[str] = None) -> Dict[str, Any]:
    """Return a JSON-ready copy of ``game`` with roles hidden from the audience."""
    projection = to_json_ready(game)
    projection["players"] = [
        sanitize_player(player, requesting_player_id)
        for player in projection.get("players") or []
    ]
    return projection
