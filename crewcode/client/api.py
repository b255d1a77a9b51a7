"""REST client for the crewcode API."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """A REST call failed; ``status_code`` is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GameAPI:
    """Thin wrapper over ``requests.Session`` mirroring the REST surface."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        admin_secret: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or os.environ.get("CREWCODE_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.token = token
        self.admin_secret = admin_secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.admin_secret:
            headers["X-Admin-Secret"] = self.admin_secret
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("api_request method=%s url=%s", method, url)
        try:
            response = self.session.request(
                method, url, json=json, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("api_transport_error method=%s url=%s error=%s", method, url, exc)
            raise ApiError(f"Request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            message = message or response.reason or "Request failed"
            logger.warning(
                "api_error method=%s url=%s status=%s message=%s",
                method,
                url,
                response.status_code,
                message,
            )
            raise ApiError(message, response.status_code)
        return body

    # players
    def register_player(self, name: str, game_id: Optional[str] = None) -> Dict[str, Any]:
        """Register and remember the issued token for later calls."""
        payload: Dict[str, Any] = {"name": name}
        if game_id:
            payload["gameId"] = game_id
        result = self._request("POST", "/players/register", json=payload)
        self.token = result.get("token") or self.token
        return result

    def get_player(self, player_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/players/{player_id}")

    def get_players(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/players")

    def assign_role(self, player_id: str, role: str) -> Dict[str, Any]:
        return self._request("PUT", "/players/assign-role", json={"playerId": player_id, "role": role})

    def update_player_status(self, player_id: str, status: str) -> Dict[str, Any]:
        return self._request("PUT", "/players/status", json={"playerId": player_id, "status": status})

    # games
    def create_game(self, imposter_count: int = 1) -> Dict[str, Any]:
        return self._request("POST", "/games", json={"imposterCount": imposter_count})

    def get_available_games(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/games/available")

    def get_all_games(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/games")

    def get_game(self, game_id: str, player_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"playerId": player_id} if player_id else None
        return self._request("GET", f"/games/{game_id}", params=params)

    def join_game(self, game_id: str, player_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/games/{game_id}/join", json={"playerId": player_id})

    def start_game(self, game_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/games/{game_id}/start")

    def submit_task(self, game_id: str, task_id: str, player_id: str, answer: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/games/{game_id}/submit-task",
            json={"taskId": task_id, "playerId": player_id, "answer": answer},
        )

    def call_meeting(self, game_id: str, player_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"playerId": player_id}
        if reason:
            payload["reason"] = reason
        return self._request("POST", f"/games/{game_id}/call-meeting", json=payload)

    def vote(self, game_id: str, voter_id: str, voted_player_id: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/games/{game_id}/vote", json={"voterId": voter_id, "votedPlayerId": voted_player_id}
        )

    def sabotage(self, game_id: str, player_id: str, sabotage_type: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/games/{game_id}/sabotage", json={"playerId": player_id, "sabotageType": sabotage_type}
        )

    def move_player(self, game_id: str, player_id: str, target_room: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/games/{game_id}/move", json={"playerId": player_id, "targetRoom": target_room}
        )

    def use_vent(self, game_id: str, player_id: str, target_room: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/games/{game_id}/use-vent", json={"playerId": player_id, "targetRoom": target_room}
        )

    def kill_player(self, game_id: str, killer_id: str, target_id: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/games/{game_id}/kill", json={"killerId": killer_id, "targetId": target_id}
        )

    def report_body(self, game_id: str, reporter_id: str, dead_player_id: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/games/{game_id}/report-body",
            json={"reporterId": reporter_id, "deadPlayerId": dead_player_id},
        )

    def end_game(self, game_id: str, winner: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/games/{game_id}/end", json={"winner": winner} if winner else {})

    def kick_player(self, game_id: str, player_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/games/{game_id}/kick", json={"playerId": player_id})

    def delete_game(self, game_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/games/{game_id}")

    # tasks
    def get_tasks(self, player_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/tasks/player/{player_id}")

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")
