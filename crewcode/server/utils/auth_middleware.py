"""Authentication helpers for REST routes and Socket.IO handlers.

Players authenticate with the JWT issued at registration. Admin routes are
gated by the ``X-Admin-Secret`` header. Both checks are skipped when the app
runs with ``REQUIRE_AUTHENTICATION`` disabled.
"""

import hmac
import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, g, jsonify, request
from flask_socketio import disconnect, emit

from crewcode.common.errors import ForbiddenError
from crewcode.common.utils.config import get_admin_secret

logger = logging.getLogger(__name__)

ADMIN_HEADER = "X-Admin-Secret"


def auth_required() -> bool:
    return bool(current_app.config.get("REQUIRE_AUTHENTICATION", True))


def extract_bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def is_admin_request() -> bool:
    """Compare the admin header with the configured admin secret."""
    provided = request.headers.get(ADMIN_HEADER)
    if not provided:
        return False
    try:
        expected = get_admin_secret()
    except ValueError as exc:
        logger.error("admin_secret_unavailable error=%s", exc)
        return False
    return hmac.compare_digest(provided, expected)


def admin_required(f):
    """Decorator for admin-only REST endpoints."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if auth_required() and not getattr(g, "is_admin", False):
            logger.warning("admin_access_denied path=%s", request.path)
            return jsonify({"message": "Access denied. Admins only."}), 403
        return f(*args, **kwargs)

    return decorated_function


def ensure_actor(player_id: str) -> None:
    """Reject requests acting on behalf of another player.

    Only enforced when a verified token is attached to the request.
    """
    claims: Optional[Dict[str, Any]] = getattr(g, "player_claims", None)
    if not claims or getattr(g, "is_admin", False):
        return
    if claims.get("playerId") != player_id:
        logger.warning(
            "actor_mismatch token_player=%s requested_player=%s",
            claims.get("playerId"),
            player_id,
        )
        raise ForbiddenError("Token does not belong to this player")


def socket_authenticated(f):
    """Decorator to require a valid player token on Socket.IO handlers.

    The decoded claims (empty when authentication is disabled) are passed to
    the handler as its first argument.
    """

    @wraps(f)
    def wrapped(*args, **kwargs):
        if not auth_required():
            return f({}, *args, **kwargs)

        token = request.args.get("token") or extract_bearer_token()
        if not token:
            logger.warning("socket_auth_failed reason=no_token sid=%s", request.sid)
            emit("error", {"message": "Authentication required", "code": "NO_TOKEN"})
            disconnect()
            return {"status": "error", "message": "Authentication required"}

        token_service = current_app.extensions.get("token_service")
        try:
            claims = token_service.decode(token)
        except Exception as e:
            logger.warning("socket_auth_failed reason=invalid_token error=%s sid=%s", e, request.sid)
            emit("error", {"message": "Invalid or expired token", "code": "INVALID_TOKEN"})
            disconnect()
            return {"status": "error", "message": "Invalid or expired token"}

        logger.debug("socket_authenticated player=%s sid=%s", claims.get("playerId"), request.sid)
        return f(claims, *args, **kwargs)

    return wrapped
