"""Health check routes."""

import logging

from flask import Blueprint, current_app, jsonify

from crewcode import __version__

logger = logging.getLogger(__name__)

SERVICE_NAME = "crewcode"


def init_health_routes():
    """Initialize health check routes."""
    health_bp = Blueprint("health", __name__)

    @health_bp.route("/api/health", methods=["GET"])
    def health_check():
        """Liveness: always healthy while the process serves requests."""
        return jsonify({"status": "healthy", "service": SERVICE_NAME, "version": __version__}), 200

    @health_bp.route("/api/health/ready", methods=["GET"])
    def readiness_check():
        """Readiness: MongoDB must answer; Redis is optional and only reported."""
        db_controller = current_app.extensions.get("db_controller")
        redis_client = current_app.extensions.get("redis_client")

        mongo_ok = db_controller is not None and db_controller.ping()
        if not mongo_ok:
            logger.warning("readiness_mongo_unavailable")

        if redis_client is None or not redis_client.config.enabled:
            redis_state = "disabled"
        else:
            redis_state = "connected" if redis_client.ping() else "disconnected"

        body = {
            "service": SERVICE_NAME,
            "mongodb": "connected" if mongo_ok else "disconnected",
            "redis": redis_state,
        }
        if not mongo_ok:
            body["status"] = "unavailable"
            return jsonify(body), 503
        body["status"] = "degraded" if redis_state == "disconnected" else "ready"
        return jsonify(body), 200

    return health_bp
