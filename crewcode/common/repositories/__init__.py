"""Mongo repositories for the crewcode collections."""

from .base_repository import BaseRepository
from .game_repository import GameRepository
from .player_repository import PlayerRepository
from .question_repository import QuestionRepository
from .task_repository import TaskRepository

__all__ = [
    "BaseRepository",
    "GameRepository",
    "PlayerRepository",
    "QuestionRepository",
    "TaskRepository",
]
