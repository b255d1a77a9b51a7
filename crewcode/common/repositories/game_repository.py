"""Repository for Game documents.

Games are saved whole with ``replace_one``; concurrent writers race and the
last write wins.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from crewcode.common.game_types import GAME_WAITING

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class GameRepository(BaseRepository):
    """Persistence layer for the `games` collection."""

    def __init__(self, db_controller) -> None:
        super().__init__(db_controller, "games")

    def ensure_indexes(self) -> None:
        """Create unique index on gameId and a lookup index on gameStatus."""
        self.collection.create_index("gameId", unique=True)
        self.collection.create_index("gameStatus")

    def _generate_game_id(self) -> str:
        while True:
            game_id = f"game_{int(time.time() * 1000)}_{random.randint(0, 999)}"
            if not self.collection.find_one({"gameId": game_id}):
                return game_id

    def create_game(
        self,
        imposter_count: int,
        rooms: List[Dict[str, Any]],
        kill_cooldown: int,
        vent_cooldown: int,
    ) -> Dict[str, Any]:
        """Insert a new game in the waiting state and return it."""
        game_doc = {
            "gameId": self._generate_game_id(),
            "players": [],
            "tasks": [],
            "gameStatus": GAME_WAITING,
            "imposterCount": imposter_count,
            "currentSabotage": None,
            "sabotageDeadline": None,
            "emergencyTaskId": None,
            "votes": {},
            "voteHistory": [],
            "deadPlayers": [],
            "meetingCalledBy": None,
            "createdAt": datetime.now(),
            "startedAt": None,
            "endedAt": None,
            "winner": None,
            "map": rooms,
            "killCooldown": kill_cooldown,
            "ventCooldown": vent_cooldown,
        }
        self.collection.insert_one(game_doc)
        logger.info("game_created game_id=%s imposters=%s", game_doc["gameId"], imposter_count)
        return self._without_id(game_doc)

    def get_game(self, game_id: str) -> Optional[Dict[str, Any]]:
        return self._without_id(self.collection.find_one({"gameId": game_id}))

    def list_games(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = {"gameStatus": status} if status else {}
        return [self._without_id(game) for game in self.collection.find(query)]

    def get_available_games(self) -> List[Dict[str, Any]]:
        """Games still accepting players."""
        return self.list_games(GAME_WAITING)

    def save_game(self, game: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the stored document with ``game``."""
        document = {k: v for k, v in game.items() if k != "_id"}
        result = self.collection.replace_one({"gameId": game["gameId"]}, document)
        if result.matched_count == 0:
            logger.warning("game_save_missed game_id=%s", game["gameId"])
        return game

    def delete_game(self, game_id: str) -> bool:
        result = self.collection.delete_one({"gameId": game_id})
        return result.deleted_count > 0

    def set_player_online(self, game_id: str, player_id: str, online: bool) -> Optional[Dict[str, Any]]:
        """Flip a player's ``isOnline`` flag; returns the game or None if either is unknown."""
        game = self.get_game(game_id)
        if not game:
            return None
        player = next((p for p in game["players"] if p.get("playerId") == player_id), None)
        if player is None:
            return None
        player["isOnline"] = online
        return self.save_game(game)
