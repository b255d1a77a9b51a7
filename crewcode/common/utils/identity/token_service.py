"""JWT token helper utilities."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import jwt
import pytz

from crewcode.common.utils.config import get_jwt_secret, settings


class TokenService:
    """Issuing player JWTs with pluggable secret providers."""

    def __init__(
        self,
        secret_provider: Optional[Callable[[], str]] = None,
        expires_hours: Optional[int] = None,
        timezone: str = "UTC",
        algorithm: str = "HS256",
    ) -> None:
        self._secret_provider = secret_provider or get_jwt_secret
        self._expires_hours = expires_hours or settings.jwt_exp_hours
        self._timezone = pytz.timezone(timezone)
        self._algorithm = algorithm

    def generate(self, player: Dict[str, Any]) -> str:
        """Return a signed JWT for a registered player.

        The token carries:
        - sub / playerId: the player's id
        - name: display name
        - exp / iat: expiry and issue time
        """

        secret = self._secret_provider()
        now = datetime.now(self._timezone)
        payload = {
            "sub": player.get("playerId"),
            "playerId": player.get("playerId"),
            "name": player.get("name"),
            "exp": now + timedelta(hours=self._expires_hours),
            "iat": now,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Decode and validate a JWT.

        Raises ``jwt.InvalidTokenError`` (or a subclass) when the signature
        does not match or the token is expired.
        """

        secret = self._secret_provider()
        return jwt.decode(token, secret, algorithms=[self._algorithm])
