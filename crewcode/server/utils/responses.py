"""Error to HTTP status mapping for route handlers."""

import logging
from functools import wraps

from flask import jsonify, request

from crewcode.common.errors import GameError

logger = logging.getLogger(__name__)


def json_errors(f):
    """Turn ``GameError`` into ``{"message"}`` with its status; anything else is a 500."""

    @wraps(f)
    def wrapped(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except GameError as exc:
            logger.info(
                "request_rejected path=%s status=%s error=%s",
                request.path,
                exc.status_code,
                exc.message,
            )
            return jsonify({"message": exc.message}), exc.status_code
        except Exception as exc:
            logger.error("request_failed path=%s error=%s", request.path, str(exc), exc_info=True)
            return jsonify({"message": f"An unexpected error occurred: {exc}"}), 500

    return wrapped


def request_body() -> dict:
    """JSON body of the current request, ``{}`` when absent or not an object."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
