"""Player registration and admin player management."""

import logging
from typing import Any, Dict, List, Optional

from crewcode.common.errors import GameError, NotFoundError
from crewcode.common.repositories import PlayerRepository
from crewcode.common.sanitization import to_json_ready
from crewcode.common.utils.config import Settings
from crewcode.common.utils.identity import TokenService

logger = logging.getLogger(__name__)


class PlayerController:
    def __init__(
        self,
        player_repository: PlayerRepository,
        token_service: TokenService,
        settings: Settings,
        game_controller=None,
    ) -> None:
        self.player_repository = player_repository
        self.token_service = token_service
        self.settings = settings
        self.game_controller = game_controller

    def register_player(self, name: str, game_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a player and issue its token.

        When ``game_id`` is given the player also joins that game; a failed
        join is reported in ``joinError`` and does not undo the registration.
        """
        player = self.player_repository.create_player(name, self.settings.starting_room)
        token = self.token_service.generate(player)
        logger.info("player_registered player=%s name=%s", player["playerId"], name)

        result: Dict[str, Any] = {"player": to_json_ready(player), "token": token}
        if game_id and self.game_controller is not None:
            try:
                result["game"] = self.game_controller.join_game(game_id, player["playerId"])
                result["player"] = to_json_ready(self.player_repository.get_player(player["playerId"]))
            except GameError as exc:
                logger.warning(
                    "register_join_failed player=%s game=%s error=%s",
                    player["playerId"],
                    game_id,
                    exc.message,
                )
                result["joinError"] = exc.message
        return result

    def get_player(self, player_id: str) -> Dict[str, Any]:
        player = self.player_repository.get_player(player_id)
        if not player:
            raise NotFoundError("Player not found")
        return to_json_ready(player)

    def list_players(self) -> List[Dict[str, Any]]:
        return to_json_ready(self.player_repository.list_players())

    def assign_role(self, player_id: str, role: str) -> Dict[str, Any]:
        self.get_player(player_id)
        player = self.player_repository.update_player(player_id, role=role)
        logger.info("role_assigned player=%s role=%s", player_id, role)
        return {"message": "Role assigned successfully", "player": to_json_ready(player)}

    def update_status(self, player_id: str, status: str) -> Dict[str, Any]:
        self.get_player(player_id)
        player = self.player_repository.update_player(player_id, status=status)
        logger.info("player_status_updated player=%s status=%s", player_id, status)
        return to_json_ready(player)
