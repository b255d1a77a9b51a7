"""Repository for task documents (regular and emergency)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .base_repository import BaseRepository


class TaskRepository(BaseRepository):
    """Persistence layer for the `tasks` collection.

    Tasks are also embedded in their Game document; this collection backs
    the per-player and per-task lookups.
    """

    def __init__(self, db_controller) -> None:
        super().__init__(db_controller, "tasks")

    def ensure_indexes(self) -> None:
        self.collection.create_index("taskId", unique=True)
        self.collection.create_index("assignedTo")
        self.collection.create_index("gameId")

    def insert_tasks(self, tasks: Iterable[Dict[str, Any]]) -> int:
        documents = [dict(task) for task in tasks]
        if not documents:
            return 0
        self.collection.insert_many(documents)
        return len(documents)

    def get_task(self, task_id: str) -> Optional[Dict[str, Any]]:
        return self._without_id(self.collection.find_one({"taskId": task_id}))

    def get_tasks_for_player(self, player_id: str) -> List[Dict[str, Any]]:
        return [self._without_id(task) for task in self.collection.find({"assignedTo": player_id})]

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> bool:
        result = self.collection.update_one({"taskId": task_id}, {"$set": fields})
        return result.matched_count > 0

    def delete_tasks_for_game(self, game_id: str) -> int:
        result = self.collection.delete_many({"gameId": game_id})
        return result.deleted_count

    def delete_tasks_for_player(self, game_id: str, player_id: str) -> int:
        result = self.collection.delete_many({"gameId": game_id, "assignedTo": player_id})
        return result.deleted_count
