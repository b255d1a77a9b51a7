"""Pure game rules: answer checking, vote tallying and win conditions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from crewcode.common.game_types import (
    PLAYER_ALIVE,
    ROLE_CREWMATE,
    ROLE_IMPOSTER,
    SKIP_VOTE,
    TASK_COMPLETED,
    WINNER_CREWMATES,
    WINNER_IMPOSTERS,
)


def answers_match(expected: str, submitted: str) -> bool:
    """Trimmed, case-insensitive comparison of a submitted answer."""
    return (expected or "").strip().casefold() == (submitted or "").strip().casefold()


def tally_votes(
    votes: Mapping[str, str], player_ids: Iterable[str]
) -> Tuple[Optional[str], Dict[str, int]]:
    """Count a round of votes.

    Returns ``(ejected_player_id, vote_counts)``. Nobody is ejected on a tie
    for the top spot, when nobody was voted for, or when skip votes reach
    the top count.
    """
    counts: Dict[str, int] = {SKIP_VOTE: 0}
    for player_id in player_ids:
        counts[player_id] = 0
    for voted_id in votes.values():
        if voted_id in counts:
            counts[voted_id] += 1

    ejected: Optional[str] = None
    max_votes = 0
    tie = False
    for player_id, count in counts.items():
        if player_id == SKIP_VOTE:
            continue
        if count > max_votes:
            max_votes = count
            ejected = player_id
            tie = False
        elif count == max_votes and count > 0:
            tie = True

    if tie or ejected is None or counts[SKIP_VOTE] >= max_votes:
        ejected = None
    return ejected, counts


def check_win_conditions(game: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Return ``(game_over, winner)`` for the current game document."""
    players = game.get("players", [])
    alive_imposters = sum(
        1 for p in players if p.get("role") == ROLE_IMPOSTER and p.get("status") == PLAYER_ALIVE
    )
    alive_crewmates = sum(
        1 for p in players if p.get("role") == ROLE_CREWMATE and p.get("status") == PLAYER_ALIVE
    )

    if alive_imposters == 0:
        return True, WINNER_CREWMATES
    if alive_imposters >= alive_crewmates:
        return True, WINNER_IMPOSTERS
    if all_tasks_completed(game):
        return True, WINNER_CREWMATES
    return False, None


def all_tasks_completed(game: Dict[str, Any]) -> bool:
    """True when there is at least one regular task and all are completed."""
    regular = [t for t in game.get("tasks", []) if not t.get("isEmergency")]
    return bool(regular) and all(t.get("status") == TASK_COMPLETED for t in regular)


def cooldown_remaining(last_used: Optional[datetime], cooldown_seconds: int, now: datetime) -> float:
    """Seconds left before an action with a cooldown may be used again."""
    if last_used is None:
        return 0.0
    elapsed = (now - last_used).total_seconds()
    return max(0.0, cooldown_seconds - elapsed)
