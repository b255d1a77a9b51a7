"""Game lifecycle and in-game actions.

Every mutating operation loads the Game document, applies one rule, saves
the whole document back and then emits through the injected gateway.
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from crewcode.common.errors import (
    ConflictError,
    ForbiddenError,
    GameRuleError,
    NotFoundError,
    ValidationError,
)
from crewcode.common.game_map import can_vent, can_walk, get_room, map_as_documents
from crewcode.common.game_rules import check_win_conditions, cooldown_remaining, tally_votes
from crewcode.common.game_types import (
    GAME_DISCUSSION,
    GAME_ENDED,
    GAME_IN_PROGRESS,
    GAME_VOTING,
    GAME_WAITING,
    GameEvent,
    PLAYER_ALIVE,
    PLAYER_DEAD,
    ROLE_CREWMATE,
    ROLE_IMPOSTER,
    SKIP_VOTE,
)
from crewcode.common.repositories import GameRepository, PlayerRepository, TaskRepository
from crewcode.common.repositories.player_repository import new_player_document
from crewcode.common.roles import capabilities_for, is_imposter
from crewcode.common.sanitization import sanitize_game, sanitize_player, to_json_ready
from crewcode.common.utils.config import Settings
from crewcode.common.utils.validation import validate_imposter_count
from crewcode.server.controllers.task_controller import TaskController

logger = logging.getLogger(__name__)


def _find_player(game: Dict[str, Any], player_id: str) -> Optional[Dict[str, Any]]:
    return next((p for p in game["players"] if p["playerId"] == player_id), None)


class GameController:
    """Applies game rules to stored Game documents."""

    def __init__(
        self,
        game_repository: GameRepository,
        player_repository: PlayerRepository,
        task_repository: TaskRepository,
        task_controller: TaskController,
        gateway,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.game_repository = game_repository
        self.player_repository = player_repository
        self.task_repository = task_repository
        self.task_controller = task_controller
        self.gateway = gateway
        self.settings = settings
        self.clock = clock

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _load(self, game_id: str) -> Dict[str, Any]:
        game = self.game_repository.get_game(game_id)
        if not game:
            raise NotFoundError("Game not found")
        return game

    def _player_in(self, game: Dict[str, Any], player_id: str, label: str = "Player") -> Dict[str, Any]:
        player = _find_player(game, player_id)
        if player is None:
            raise NotFoundError(f"{label} not found")
        return player

    @staticmethod
    def _require_status(game: Dict[str, Any], *statuses: str, message: str) -> None:
        if game["gameStatus"] not in statuses:
            raise GameRuleError(message)

    @staticmethod
    def _reset_votes(game: Dict[str, Any]) -> None:
        game["votes"] = {}
        for player in game["players"]:
            player["hasVoted"] = False
            player["votes"] = []

    def _apply_win_check(self, game: Dict[str, Any]) -> Dict[str, Any]:
        game_over, winner = check_win_conditions(game)
        if game_over:
            game["gameStatus"] = GAME_ENDED
            game["winner"] = winner
            game["endedAt"] = self.clock()
            logger.info("game_over game=%s winner=%s", game["gameId"], winner)
        return {"gameOver": game_over, "winner": winner}

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def create_game(self, imposter_count=1) -> Dict[str, Any]:
        count = validate_imposter_count(imposter_count, self.settings.max_imposters)
        game = self.game_repository.create_game(
            count,
            map_as_documents(),
            self.settings.kill_cooldown_seconds,
            self.settings.vent_cooldown_seconds,
        )
        return sanitize_game(game)

    def get_game(self, game_id: str, requesting_player_id: Optional[str] = None) -> Dict[str, Any]:
        return sanitize_game(self._load(game_id), requesting_player_id)

    def get_available_games(self) -> List[Dict[str, Any]]:
        return [sanitize_game(game) for game in self.game_repository.get_available_games()]

    def list_games(self) -> List[Dict[str, Any]]:
        """Unmasked view of every game (admin dashboard)."""
        return to_json_ready(self.game_repository.list_games())

    def join_game(self, game_id: str, player_id: str) -> Dict[str, Any]:
        game = self._load(game_id)
        if game["gameStatus"] != GAME_WAITING:
            raise ConflictError("Cannot join game that has already started")

        player = self.player_repository.get_player(player_id)
        if not player:
            raise NotFoundError("Player not found")
        if _find_player(game, player_id):
            raise ConflictError("Player already in game")
        if len(game["players"]) >= self.settings.max_players:
            raise ConflictError("Game is full")

        game["players"].append(
            new_player_document(player_id, player["name"], self.settings.starting_room)
        )
        self.game_repository.save_game(game)
        self.player_repository.update_player(player_id, gameId=game_id)
        logger.info("player_joined_game game=%s player=%s count=%d", game_id, player_id, len(game["players"]))

        self.gateway.emit_to_game(
            game_id, GameEvent.PLAYER_JOINED, {"playerId": player_id, "name": player["name"]}
        )
        self.gateway.emit_to_game(game_id, GameEvent.GAME_UPDATE, game=game)
        return sanitize_game(game, player_id)

    def start_game(self, game_id: str) -> Dict[str, Any]:
        """Shuffle roles, hand out tasks and move the game to in-progress."""
        game = self._load(game_id)
        if game["gameStatus"] != GAME_WAITING:
            raise ConflictError("Game has already started")
        players = game["players"]
        if len(players) < self.settings.min_players_to_start:
            raise GameRuleError(
                f"Need at least {self.settings.min_players_to_start} players to start the game"
            )
        if len(players) <= game["imposterCount"]:
            raise GameRuleError("Not enough players for the configured imposter count")

        shuffled = list(players)
        random.shuffle(shuffled)
        imposter_ids = {p["playerId"] for p in shuffled[: game["imposterCount"]]}
        for player in players:
            player.update(
                role=ROLE_IMPOSTER if player["playerId"] in imposter_ids else ROLE_CREWMATE,
                status=PLAYER_ALIVE,
                currentRoom=self.settings.starting_room,
                isVenting=False,
                tasks=[],
                completedTasks=[],
                votes=[],
                hasVoted=False,
                lastKillTime=None,
                lastVentTime=None,
            )

        tasks = self.task_controller.build_crewmate_tasks(game)
        game["tasks"] = tasks
        game["gameStatus"] = GAME_IN_PROGRESS
        game["startedAt"] = self.clock()

        self.task_repository.insert_tasks(tasks)
        self.game_repository.save_game(game)
        for player in players:
            self.player_repository.update_player(player["playerId"], role=player["role"])
        logger.info(
            "game_started game=%s players=%d imposters=%d tasks=%d",
            game_id,
            len(players),
            len(imposter_ids),
            len(tasks),
        )

        for player in players:
            self.gateway.emit_to_player_with_game(player["playerId"], GameEvent.GAME_STARTED, game)
        return {"message": "Game started successfully", "game": sanitize_game(game)}

    def end_game(self, game_id: str, winner: Optional[str] = None) -> Dict[str, Any]:
        game = self._load(game_id)
        game["gameStatus"] = GAME_ENDED
        game["winner"] = winner
        game["endedAt"] = self.clock()
        self.game_repository.save_game(game)
        logger.info("game_ended game=%s winner=%s", game_id, winner)

        self.gateway.emit_to_game(game_id, GameEvent.GAME_ENDED, {"winner": winner})
        return {"message": "Game ended successfully", "game": sanitize_game(game)}

    def kick_player(self, game_id: str, player_id: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._player_in(game, player_id)
        game["players"] = [p for p in game["players"] if p["playerId"] != player_id]
        game["votes"] = {k: v for k, v in game.get("votes", {}).items() if k != player_id}
        game["tasks"] = [t for t in game.get("tasks", []) if t.get("assignedTo") != player_id]

        outcome = {"gameOver": False, "winner": None}
        if game["gameStatus"] in (GAME_IN_PROGRESS, GAME_DISCUSSION, GAME_VOTING):
            outcome = self._apply_win_check(game)
        self.game_repository.save_game(game)
        removed = self.task_repository.delete_tasks_for_player(game_id, player_id)
        logger.info(
            "player_kicked game=%s player=%s tasks_removed=%d game_over=%s",
            game_id,
            player_id,
            removed,
            outcome["gameOver"],
        )

        self.gateway.emit_to_game(game_id, GameEvent.PLAYER_KICKED, {"playerId": player_id})
        self.gateway.emit_to_game(game_id, GameEvent.GAME_UPDATE, game=game)
        if outcome["gameOver"]:
            self.gateway.emit_to_game(game_id, GameEvent.GAME_ENDED, {"winner": outcome["winner"]})
        return {"message": "Player kicked successfully", "game": sanitize_game(game), **outcome}

    def delete_game(self, game_id: str) -> Dict[str, Any]:
        if not self.game_repository.delete_game(game_id):
            raise NotFoundError("Game not found")
        removed = self.task_repository.delete_tasks_for_game(game_id)
        logger.info("game_deleted game=%s tasks_removed=%d", game_id, removed)
        return {"message": "Game deleted successfully"}

    # ------------------------------------------------------------------
    # meetings and votes
    # ------------------------------------------------------------------
    def call_meeting(self, game_id: str, player_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Meetings can only be called during gameplay")
        caller = self._player_in(game, player_id)
        if not capabilities_for(caller).can_call_meeting:
            raise GameRuleError("Dead players cannot call meetings")

        game["gameStatus"] = GAME_DISCUSSION
        game["meetingCalledBy"] = player_id
        self._reset_votes(game)
        self.game_repository.save_game(game)
        logger.info("meeting_called game=%s caller=%s reason=%s", game_id, player_id, reason)

        self.gateway.emit_to_game(
            game_id,
            GameEvent.MEETING_CALLED,
            {
                "calledBy": player_id,
                "reason": reason,
                "players": [sanitize_player(p) for p in to_json_ready(game["players"])],
            },
        )
        return {"message": "Meeting called successfully"}

    def vote(self, game_id: str, voter_id: str, voted_player_id: str) -> Dict[str, Any]:
        """Record one vote; the last alive voter triggers the tally."""
        game = self._load(game_id)
        self._require_status(game, GAME_DISCUSSION, GAME_VOTING, message="Voting is not active")
        voter = self._player_in(game, voter_id, "Voter")
        if not capabilities_for(voter).can_vote:
            raise GameRuleError("Dead players cannot vote")
        if voter.get("hasVoted"):
            raise GameRuleError("Player has already voted")
        if voted_player_id != SKIP_VOTE:
            target = self._player_in(game, voted_player_id, "Voted player")
            if target.get("status") != PLAYER_ALIVE:
                raise GameRuleError("Cannot vote for a dead player")

        game["gameStatus"] = GAME_VOTING
        game.setdefault("votes", {})[voter_id] = voted_player_id
        voter["hasVoted"] = True
        voter.setdefault("votes", []).append(voted_player_id)

        alive = [p for p in game["players"] if p.get("status") == PLAYER_ALIVE]
        all_voted = all(p.get("hasVoted") for p in alive)
        result = self._process_votes(game) if all_voted else None
        self.game_repository.save_game(game)
        logger.info(
            "vote_recorded game=%s voter=%s target=%s all_voted=%s",
            game_id,
            voter_id,
            voted_player_id,
            all_voted,
        )

        self.gateway.emit_to_game(
            game_id,
            GameEvent.VOTE_RECORDED,
            {"voterId": voter_id, "votedPlayerId": voted_player_id, "allVoted": all_voted},
        )
        if result is not None:
            self.gateway.emit_to_game(game_id, GameEvent.VOTE_RESULT, result)
            if result["gameOver"]:
                self.gateway.emit_to_game(game_id, GameEvent.GAME_ENDED, {"winner": result["winner"]})
        return {"message": "Vote recorded successfully", "allVoted": all_voted, "result": result}

    def _process_votes(self, game: Dict[str, Any]) -> Dict[str, Any]:
        ejected_id, vote_counts = tally_votes(
            game.get("votes", {}), [p["playerId"] for p in game["players"]]
        )
        if ejected_id:
            ejected = _find_player(game, ejected_id)
            ejected["status"] = PLAYER_DEAD
            if ejected_id not in game["deadPlayers"]:
                game["deadPlayers"].append(ejected_id)

        history = game.setdefault("voteHistory", [])
        history.append({"round": len(history) + 1, "votes": dict(game.get("votes", {}))})
        self._reset_votes(game)
        game["meetingCalledBy"] = None

        outcome = self._apply_win_check(game)
        if not outcome["gameOver"]:
            game["gameStatus"] = GAME_IN_PROGRESS
        logger.info(
            "votes_tallied game=%s ejected=%s game_over=%s",
            game["gameId"],
            ejected_id,
            outcome["gameOver"],
        )
        return {"ejectedPlayerId": ejected_id, "voteCounts": vote_counts, **outcome}

    # ------------------------------------------------------------------
    # imposter actions
    # ------------------------------------------------------------------
    def sabotage(self, game_id: str, player_id: str, sabotage_type: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Sabotage is only possible during gameplay")
        player = self._player_in(game, player_id)
        if not is_imposter(player):
            raise ForbiddenError("Only imposters can sabotage")
        if not capabilities_for(player).can_sabotage:
            raise GameRuleError("Dead imposters cannot sabotage")
        if game.get("currentSabotage"):
            raise ConflictError("A sabotage is already active")

        emergency_task = self.task_controller.build_emergency_task(game, sabotage_type)
        game["tasks"].append(emergency_task)
        game["currentSabotage"] = sabotage_type
        game["sabotageDeadline"] = emergency_task["deadline"]
        game["emergencyTaskId"] = emergency_task["taskId"]

        self.task_repository.insert_tasks([emergency_task])
        self.game_repository.save_game(game)
        logger.info("sabotage_started game=%s type=%s task=%s", game_id, sabotage_type, emergency_task["taskId"])

        task_view = to_json_ready(emergency_task)
        self.gateway.emit_to_game(
            game_id,
            GameEvent.SABOTAGE,
            {
                "sabotageType": sabotage_type,
                "emergencyTask": task_view,
                "deadline": task_view["deadline"],
            },
        )
        return {"message": "Sabotage initiated successfully", "emergencyTask": task_view}

    def kill_player(self, game_id: str, killer_id: str, target_id: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Kills are only possible during gameplay")
        killer = self._player_in(game, killer_id, "Killer")
        target = self._player_in(game, target_id, "Target")
        if not is_imposter(killer):
            raise ForbiddenError("Only imposters can kill")
        if not capabilities_for(killer).can_kill:
            raise GameRuleError("Dead imposters cannot kill")
        if is_imposter(target):
            raise GameRuleError("Imposters cannot kill each other")
        if target.get("status") != PLAYER_ALIVE:
            raise GameRuleError("Target is already dead")
        if killer.get("currentRoom") != target.get("currentRoom"):
            raise GameRuleError("Target is not in the same room")

        now = self.clock()
        remaining = cooldown_remaining(
            killer.get("lastKillTime"), game.get("killCooldown", self.settings.kill_cooldown_seconds), now
        )
        if remaining > 0:
            raise GameRuleError(f"Kill is on cooldown for {remaining:.0f} more seconds")

        target["status"] = PLAYER_DEAD
        killer["lastKillTime"] = now
        if target_id not in game["deadPlayers"]:
            game["deadPlayers"].append(target_id)
        outcome = self._apply_win_check(game)
        self.game_repository.save_game(game)
        self.player_repository.update_player(target_id, status=PLAYER_DEAD)
        logger.info("player_killed game=%s killer=%s target=%s", game_id, killer_id, target_id)

        room = target.get("currentRoom")
        self.gateway.emit_to_game(game_id, GameEvent.PLAYER_KILLED, {"playerId": target_id, "room": room})
        if outcome["gameOver"]:
            self.gateway.emit_to_game(game_id, GameEvent.GAME_ENDED, {"winner": outcome["winner"]})
        return {"message": "Player killed successfully", "room": room, **outcome}

    # ------------------------------------------------------------------
    # movement
    # ------------------------------------------------------------------
    def move_player(self, game_id: str, player_id: str, target_room: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Players can only move during gameplay")
        player = self._player_in(game, player_id)
        if get_room(target_room) is None:
            raise ValidationError(f"Unknown room: {target_room}")
        from_room = player.get("currentRoom")
        if not can_walk(from_room, target_room):
            raise GameRuleError(f"Cannot move from {from_room} to {target_room}")

        player["currentRoom"] = target_room
        player["isVenting"] = False
        self.game_repository.save_game(game)
        logger.debug("player_moved game=%s player=%s from=%s to=%s", game_id, player_id, from_room, target_room)

        move = {"playerId": player_id, "fromRoom": from_room, "toRoom": target_room}
        self.gateway.emit_to_game(game_id, GameEvent.PLAYER_MOVED, move)
        return {"message": "Player moved successfully", **move}

    def use_vent(self, game_id: str, player_id: str, target_room: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Vents can only be used during gameplay")
        player = self._player_in(game, player_id)
        if not is_imposter(player):
            raise ForbiddenError("Only imposters can use vents")
        if not capabilities_for(player).can_vent:
            raise GameRuleError("Dead imposters cannot use vents")
        if get_room(target_room) is None:
            raise ValidationError(f"Unknown room: {target_room}")
        from_room = player.get("currentRoom")
        if not can_vent(from_room, target_room):
            raise GameRuleError(f"No vent from {from_room} to {target_room}")

        now = self.clock()
        remaining = cooldown_remaining(
            player.get("lastVentTime"), game.get("ventCooldown", self.settings.vent_cooldown_seconds), now
        )
        if remaining > 0:
            raise GameRuleError(f"Vent is on cooldown for {remaining:.0f} more seconds")

        player["currentRoom"] = target_room
        player["lastVentTime"] = now
        self.game_repository.save_game(game)
        logger.debug("player_vented game=%s player=%s from=%s to=%s", game_id, player_id, from_room, target_room)

        move = {"playerId": player_id, "fromRoom": from_room, "toRoom": target_room}
        self.gateway.emit_to_game(game_id, GameEvent.PLAYER_VENT_MOVE, move)
        return {"message": "Vent used successfully", **move}

    def report_body(self, game_id: str, reporter_id: str, dead_player_id: str) -> Dict[str, Any]:
        game = self._load(game_id)
        self._require_status(game, GAME_IN_PROGRESS, message="Bodies can only be reported during gameplay")
        reporter = self._player_in(game, reporter_id, "Reporter")
        body = self._player_in(game, dead_player_id, "Dead player")
        if not capabilities_for(reporter).can_report:
            raise GameRuleError("Dead players cannot report bodies")
        if body.get("status") != PLAYER_DEAD:
            raise GameRuleError("Player is not dead")
        room = body.get("currentRoom")
        if reporter.get("currentRoom") != room:
            raise GameRuleError("Body is not in the same room")

        game["gameStatus"] = GAME_DISCUSSION
        game["meetingCalledBy"] = reporter_id
        self._reset_votes(game)
        self.game_repository.save_game(game)
        logger.info("body_reported game=%s reporter=%s body=%s room=%s", game_id, reporter_id, dead_player_id, room)

        self.gateway.emit_to_game(
            game_id,
            GameEvent.BODY_REPORTED,
            {"reporterId": reporter_id, "deadPlayerId": dead_player_id, "room": room},
        )
        return {"message": "Body reported successfully", "room": room}
