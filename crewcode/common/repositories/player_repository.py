"""Repository for registered players."""

from __future__ import annotations

import random
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from crewcode.common.game_types import PLAYER_ALIVE, ROLE_CREWMATE

from .base_repository import BaseRepository

ALLOWED_UPDATE_FIELDS = ("role", "status", "isOnline", "currentRoom", "gameId")


def new_player_document(player_id: str, name: str, starting_room: str) -> Dict[str, Any]:
    """Fresh player state as embedded in a Game and stored on registration."""
    return {
        "playerId": player_id,
        "name": name,
        "role": ROLE_CREWMATE,
        "status": PLAYER_ALIVE,
        "currentRoom": starting_room,
        "isVenting": False,
        "isOnline": False,
        "tasks": [],
        "completedTasks": [],
        "votes": [],
        "hasVoted": False,
        "lastKillTime": None,
        "lastVentTime": None,
    }


class PlayerRepository(BaseRepository):
    """CRUD helpers for the `players` collection."""

    def __init__(self, db_controller) -> None:
        super().__init__(db_controller, "players")

    def ensure_indexes(self) -> None:
        self.collection.create_index("playerId", unique=True)

    def create_player(self, name: str, starting_room: str, game_id: Optional[str] = None) -> Dict[str, Any]:
        player_id = f"player_{int(time.time() * 1000)}_{random.randint(0, 999)}"
        player_doc = new_player_document(player_id, name, starting_room)
        player_doc["gameId"] = game_id
        player_doc["createdAt"] = datetime.now()
        self.collection.insert_one(player_doc)
        return self._without_id(player_doc)

    def get_player(self, player_id: str) -> Optional[Dict[str, Any]]:
        return self._without_id(self.collection.find_one({"playerId": player_id}))

    def list_players(self) -> List[Dict[str, Any]]:
        return [self._without_id(player) for player in self.collection.find({})]

    def update_player(self, player_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
        """Set whitelisted fields and return the updated player."""
        update_doc = {k: v for k, v in fields.items() if k in ALLOWED_UPDATE_FIELDS}
        if update_doc:
            self.collection.update_one({"playerId": player_id}, {"$set": update_doc})
        return self.get_player(player_id)

    def add_completed_task(self, player_id: str, task_id: str) -> None:
        self.collection.update_one(
            {"playerId": player_id}, {"$addToSet": {"completedTasks": task_id}}
        )
