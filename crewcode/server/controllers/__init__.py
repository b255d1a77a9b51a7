"""Controllers applying game rules on top of the repositories."""

from .game_controller import GameController
from .player_controller import PlayerController
from .task_controller import TaskController

__all__ = ["GameController", "PlayerController", "TaskController"]
