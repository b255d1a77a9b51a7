"""Role capabilities.

Every legality check that depends on who a player is goes through
``capabilities_for``; dead players resolve to ``Ghost`` whatever role they
held while alive.
"""

from __future__ import annotations

from typing import Any, Dict

from crewcode.common.game_types import (
    PLAYER_ALIVE,
    ROLE_CREWMATE,
    ROLE_GHOST,
    ROLE_IMPOSTER,
)


class RoleCapabilities:
    """Capability interface shared by every role."""

    role = ""
    can_kill = False
    can_vent = False
    can_sabotage = False
    can_report = False
    can_vote = False
    can_call_meeting = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class Crewmate(RoleCapabilities):
    role = ROLE_CREWMATE
    can_report = True
    can_vote = True
    can_call_meeting = True


class Imposter(RoleCapabilities):
    role = ROLE_IMPOSTER
    can_kill = True
    can_vent = True
    can_sabotage = True
    can_report = True
    can_vote = True
    can_call_meeting = True


class Ghost(RoleCapabilities):
    role = ROLE_GHOST


_ROLES = {
    ROLE_CREWMATE: Crewmate(),
    ROLE_IMPOSTER: Imposter(),
    ROLE_GHOST: Ghost(),
}


def capabilities_for(player: Dict[str, Any]) -> RoleCapabilities:
    """Return the capability object for a player document."""

    if player.get("status", PLAYER_ALIVE) != PLAYER_ALIVE:
        return _ROLES[ROLE_GHOST]
    try:
        return _ROLES[player.get("role", ROLE_CREWMATE)]
    except KeyError:
        raise ValueError(f"Unknown role: {player.get('role')}") from None


def is_imposter(player: Dict[str, Any]) -> bool:
    """True role check that ignores alive/dead status."""
    return player.get("role") == ROLE_IMPOSTER
