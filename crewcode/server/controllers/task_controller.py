"""Task assignment and submission."""

import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from crewcode.common.errors import (
    ConflictError,
    ForbiddenError,
    GameRuleError,
    NotFoundError,
)
from crewcode.common.game_rules import all_tasks_completed, answers_match, check_win_conditions
from crewcode.common.game_types import (
    DIFFICULTY_HARD,
    EMERGENCY_ASSIGNEE,
    GAME_ENDED,
    GAME_WAITING,
    GameEvent,
    ROLE_CREWMATE,
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_PENDING,
)
from crewcode.common.repositories import (
    GameRepository,
    PlayerRepository,
    QuestionRepository,
    TaskRepository,
)
from crewcode.common.sanitization import to_json_ready
from crewcode.common.utils.config import Settings

logger = logging.getLogger(__name__)

# Emergency task prompt per sabotage type
EMERGENCY_QUESTIONS: Dict[str, Dict[str, Any]] = {
    "lights": {
        "question": "Which HTTP status code means the server is temporarily unavailable?",
        "options": ["500", "502", "503", "504"],
        "answer": "503",
        "category": "Web Development",
    },
    "reactor": {
        "question": "What is the time complexity of finding an element in a balanced binary search tree?",
        "options": ["O(1)", "O(log n)", "O(n)", "O(n log n)"],
        "answer": "O(log n)",
        "category": "Algorithms",
    },
    "oxygen": {
        "question": "Which Python keyword is used to handle exceptions?",
        "options": ["catch", "except", "rescue", "handle"],
        "answer": "except",
        "category": "Python",
    },
    "communications": {
        "question": "Which protocol keeps a persistent, full-duplex connection between browser and server?",
        "options": ["HTTP/1.0", "FTP", "WebSocket", "SMTP"],
        "answer": "WebSocket",
        "category": "Networking",
    },
}


def new_task_id() -> str:
    return f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class TaskController:
    """Builds tasks from the question bank and applies the submission rule."""

    def __init__(
        self,
        game_repository: GameRepository,
        task_repository: TaskRepository,
        player_repository: PlayerRepository,
        question_repository: QuestionRepository,
        gateway,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.game_repository = game_repository
        self.task_repository = task_repository
        self.player_repository = player_repository
        self.question_repository = question_repository
        self.gateway = gateway
        self.settings = settings
        self.clock = clock

    # ------------------------------------------------------------------
    # assignment
    # ------------------------------------------------------------------
    def build_crewmate_tasks(self, game: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Create ``tasks_per_crewmate`` tasks for every crewmate of ``game``.

        Task ids are appended to each crewmate's ``tasks`` list; the new task
        documents are returned and not yet persisted.
        """
        per_player = self.settings.tasks_per_crewmate
        now = self.clock()
        tasks: List[Dict[str, Any]] = []
        for player in game["players"]:
            if player.get("role") != ROLE_CREWMATE:
                continue
            questions = self.question_repository.get_random_questions(per_player)
            for index, question in enumerate(questions, start=1):
                task = {
                    "taskId": new_task_id(),
                    "gameId": game["gameId"],
                    "description": f"Technical Question {index}",
                    "question": question["question"],
                    "answer": question["answer"],
                    "options": list(question.get("options", [])),
                    "category": question.get("category"),
                    "difficulty": question.get("difficulty"),
                    "status": TASK_PENDING,
                    "assignedTo": player["playerId"],
                    "isEmergency": False,
                    "deadline": None,
                    "createdAt": now,
                    "completedAt": None,
                }
                tasks.append(task)
                if task["taskId"] not in player["tasks"]:
                    player["tasks"].append(task["taskId"])
        logger.info("tasks_assigned game=%s count=%d", game["gameId"], len(tasks))
        return tasks

    def build_emergency_task(self, game: Dict[str, Any], sabotage_type: str) -> Dict[str, Any]:
        """One shared task that clears ``sabotage_type`` when answered."""
        now = self.clock()
        prompt = EMERGENCY_QUESTIONS[sabotage_type]
        return {
            "taskId": new_task_id(),
            "gameId": game["gameId"],
            "description": f"Emergency: fix the {sabotage_type} sabotage",
            "question": prompt["question"],
            "answer": prompt["answer"],
            "options": list(prompt["options"]),
            "category": prompt["category"],
            "difficulty": DIFFICULTY_HARD,
            "status": TASK_PENDING,
            "assignedTo": EMERGENCY_ASSIGNEE,
            "isEmergency": True,
            "deadline": now + timedelta(seconds=self.settings.sabotage_duration_seconds),
            "createdAt": now,
            "completedAt": None,
        }

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    def get_task(self, task_id: str) -> Dict[str, Any]:
        task = self.task_repository.get_task(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return to_json_ready(task)

    def get_tasks_for_player(self, player_id: str) -> List[Dict[str, Any]]:
        return to_json_ready(self.task_repository.get_tasks_for_player(player_id))

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------
    def submit_task(self, game_id: str, task_id: str, player_id: str, answer: str) -> Dict[str, Any]:
        """Check ``answer`` against the stored one and record the outcome.

        A completed task cannot be resubmitted; a failed one can.
        """
        game = self.game_repository.get_game(game_id)
        if not game:
            raise NotFoundError("Game not found")
        if game["gameStatus"] in (GAME_WAITING, GAME_ENDED):
            raise GameRuleError("Tasks can only be submitted while the game is running")

        task = next((t for t in game["tasks"] if t["taskId"] == task_id), None)
        if task is None:
            raise NotFoundError("Task not found")
        player = next((p for p in game["players"] if p["playerId"] == player_id), None)
        if player is None:
            raise NotFoundError("Player not found")
        if task["assignedTo"] not in (player_id, EMERGENCY_ASSIGNEE):
            raise ForbiddenError("Task is assigned to another player")
        if task["status"] == TASK_COMPLETED:
            raise ConflictError("Task already completed")

        is_correct = answers_match(task["answer"], answer)
        sabotage_cleared: Optional[str] = None
        if is_correct:
            task["status"] = TASK_COMPLETED
            task["completedAt"] = self.clock()
            if task_id not in player["completedTasks"]:
                player["completedTasks"].append(task_id)
            if task.get("isEmergency"):
                sabotage_cleared = game.get("currentSabotage")
                game["currentSabotage"] = None
                game["sabotageDeadline"] = None
                game["emergencyTaskId"] = None
        else:
            task["status"] = TASK_FAILED

        winner = None
        if is_correct and not task.get("isEmergency") and all_tasks_completed(game):
            game_over, winner = check_win_conditions(game)
            if game_over:
                game["gameStatus"] = GAME_ENDED
                game["winner"] = winner
                game["endedAt"] = self.clock()

        self.game_repository.save_game(game)
        self.task_repository.update_task(
            task_id, {"status": task["status"], "completedAt": task["completedAt"]}
        )
        if is_correct:
            self.player_repository.add_completed_task(player_id, task_id)

        logger.info(
            "task_submitted game=%s task=%s player=%s correct=%s",
            game_id,
            task_id,
            player_id,
            is_correct,
        )

        task_view = to_json_ready(task)
        self.gateway.emit_to_game(
            game_id,
            GameEvent.TASK_SUBMITTED,
            {"taskId": task_id, "playerId": player_id, "isCorrect": is_correct, "task": task_view},
        )
        if sabotage_cleared is not None:
            self.gateway.emit_to_game(
                game_id,
                GameEvent.SABOTAGE_CLEARED,
                {"taskId": task_id, "sabotageType": sabotage_cleared, "playerId": player_id},
            )
        if game["gameStatus"] == GAME_ENDED:
            self.gateway.emit_to_game(game_id, GameEvent.GAME_ENDED, {"winner": winner})

        return {
            "message": "Task completed successfully" if is_correct else "Incorrect answer",
            "isCorrect": is_correct,
            "task": task_view,
        }
