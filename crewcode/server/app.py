"""crewcode server - Flask application factory.

One process serves both surfaces:
- REST API under /api (game, player, task and health blueprints)
- Socket.IO realtime gateway (room membership, relays, server pushes)

Controllers mutate MongoDB documents and push the results to clients through
the ``RealtimeGateway`` stored in ``app.extensions``.

Production runs through ``crewcode.server.wsgi``, which monkey-patches eventlet
before this module is imported.
"""

import logging
import os
import sys
import time
from typing import Optional

import jwt
from flask import Flask, current_app, g, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO
from prometheus_client import CollectorRegistry, Counter
from prometheus_flask_exporter import PrometheusMetrics

from crewcode import __version__
from crewcode.common.database import DBController
from crewcode.common.errors import GameError, UnauthorizedError
from crewcode.common.redis_client import RedisClient, RedisConfig
from crewcode.common.repositories import (
    GameRepository,
    PlayerRepository,
    QuestionRepository,
    TaskRepository,
)
from crewcode.common.utils.config import Settings, get_settings
from crewcode.common.utils.identity import TokenService
from crewcode.server.controllers import GameController, PlayerController, TaskController
from crewcode.server.realtime import RealtimeGateway
from crewcode.server.routes.game_routes import game_bp
from crewcode.server.routes.health_routes import init_health_routes
from crewcode.server.routes.player_routes import player_bp
from crewcode.server.routes.task_routes import task_bp
from crewcode.server.socket_handlers import relay_handlers, room_handlers
from crewcode.server.utils.auth_middleware import extract_bearer_token, is_admin_request

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

QUESTIONS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "common", "data", "questions.json"
)

# Paths reachable without a player token
EXEMPT_PATHS = (
    "/api/health",
    "/metrics",
    "/api/players/register",
    "/api/games/available",
)


def initialize_database(app: Flask, db_controller: Optional[DBController] = None) -> bool:
    """Connect to MongoDB, build repositories and seed the question bank.

    Args:
        app: Flask app; repositories land in ``app.extensions``.
        db_controller: Pre-built controller (tests pass an in-memory one).

    Returns:
        bool: False when MongoDB could not be reached or seeded.
    """
    try:
        if db_controller is None:
            logger.info("mongodb_connecting")
            db_controller = DBController()
            if not db_controller.connect():
                logger.error("database_init_failed reason=connect")
                return False

        game_repository = GameRepository(db_controller)
        player_repository = PlayerRepository(db_controller)
        task_repository = TaskRepository(db_controller)
        question_repository = QuestionRepository(db_controller)

        for repository in (game_repository, player_repository, task_repository):
            repository.ensure_indexes()
        logger.info("indexes_ensured collections=games,players,tasks")

        if os.getenv("AUTO_SEED_QUESTIONS", "true").lower() == "true":
            question_repository.seed_from_file(QUESTIONS_PATH)
        if not question_repository.count():
            logger.warning("question_bank_empty crewmates_will_get_no_tasks")

        app.extensions["db_controller"] = db_controller
        app.extensions["game_repository"] = game_repository
        app.extensions["player_repository"] = player_repository
        app.extensions["task_repository"] = task_repository
        app.extensions["question_repository"] = question_repository
        logger.info("database_initialized")
        return True

    except (ConnectionError, RuntimeError, OSError, ValueError) as exc:
        logger.error("database_init_failed error=%s", exc, exc_info=True)
        return False


def initialize_realtime(app: Flask, settings: Settings, async_mode: Optional[str]) -> RealtimeGateway:
    """Create the per-app SocketIO server and its gateway."""
    redis_config = RedisConfig.from_env()
    message_queue = redis_config.url()
    if message_queue:
        logger.info(
            "socketio_redis_message_queue host=%s port=%s", redis_config.host, redis_config.port
        )

    socketio = SocketIO(
        app,
        cors_allowed_origins=settings.websocket_cors_origins,
        async_mode=async_mode,
        message_queue=message_queue,
        ping_interval=settings.websocket_ping_interval,
        ping_timeout=settings.websocket_ping_timeout,
        logger=settings.debug,
        engineio_logger=settings.debug,
    )
    gateway = RealtimeGateway(socketio, app.extensions.get("socket_events_counter"))

    room_handlers.register_handlers(socketio, gateway, app.extensions["game_repository"])
    relay_handlers.register_handlers(socketio, gateway)

    app.extensions["socketio"] = socketio
    app.extensions["gateway"] = gateway
    app.extensions["redis_client"] = RedisClient(redis_config)
    logger.info("socketio_initialized async_mode=%s", socketio.async_mode)
    return gateway


def initialize_controllers(app: Flask, settings: Settings) -> None:
    gateway = app.extensions["gateway"]
    token_service = app.extensions.get("token_service") or TokenService()

    task_controller = TaskController(
        app.extensions["game_repository"],
        app.extensions["task_repository"],
        app.extensions["player_repository"],
        app.extensions["question_repository"],
        gateway,
        settings,
    )
    game_controller = GameController(
        app.extensions["game_repository"],
        app.extensions["player_repository"],
        app.extensions["task_repository"],
        task_controller,
        gateway,
        settings,
    )
    player_controller = PlayerController(
        app.extensions["player_repository"], token_service, settings, game_controller
    )

    app.extensions["token_service"] = token_service
    app.extensions["task_controller"] = task_controller
    app.extensions["game_controller"] = game_controller
    app.extensions["player_controller"] = player_controller


def initialize_routes(app: Flask) -> None:
    app.register_blueprint(init_health_routes())
    app.register_blueprint(game_bp)
    app.register_blueprint(player_bp)
    app.register_blueprint(task_bp)
    logger.info("routes_registered blueprints=%s", ",".join(app.blueprints))


def _error_response(error: GameError):
    return jsonify({"message": error.message}), error.status_code


def setup_middleware(app: Flask) -> None:
    """Install request logging and bearer/admin authentication hooks.

    Args:
        app: Flask app whose ``token_service`` extension is already set.
    """

    @app.before_request
    def before_request() -> None:
        """Stamp the start time and log the request."""
        g.start_time = time.time()
        logger.info(
            "request_started method=%s path=%s remote_addr=%s",
            request.method,
            request.path,
            request.remote_addr,
        )

    @app.before_request
    def authenticate_request() -> Optional[tuple]:
        """Attach player claims and the admin flag; reject missing tokens."""
        g.player_claims = None
        g.is_admin = is_admin_request()

        # CORS preflight
        if request.method == "OPTIONS":
            return None

        bearer_token = extract_bearer_token()
        if bearer_token:
            token_service = current_app.extensions["token_service"]
            try:
                g.player_claims = token_service.decode(bearer_token)
            except jwt.InvalidTokenError as exc:
                logger.warning("jwt_invalid_token path=%s error=%s", request.path, exc)
                return _error_response(UnauthorizedError("Invalid or expired token"))

        if not current_app.config.get("REQUIRE_AUTHENTICATION", True):
            return None
        if g.is_admin or g.player_claims:
            return None
        if request.path.startswith("/socket.io"):
            return None
        if any(request.path.startswith(path) for path in EXEMPT_PATHS):
            return None
        if request.path == "/api/games" and request.method == "POST":
            return None

        logger.warning("missing_bearer_token path=%s", request.path)
        return _error_response(UnauthorizedError("Authentication required"))

    @app.after_request
    def after_request(response):
        """Log status and duration."""
        if hasattr(g, "start_time"):
            duration = time.time() - g.start_time
            logger.info(
                "request_completed method=%s path=%s status=%s duration_ms=%.2f",
                request.method,
                request.path,
                response.status_code,
                duration * 1000,
            )
        return response


def setup_metrics(app: Flask) -> None:
    """Expose /metrics and register the socket event counter.

    Each app gets its own registry so that several apps can live in one
    process (tests).
    """
    registry = CollectorRegistry()
    metrics = PrometheusMetrics(app, registry=registry)
    metrics.info("crewcode_info", "crewcode game server", version=__version__)

    app.extensions["socket_events_counter"] = Counter(
        "crewcode_socket_events_total",
        "Socket.IO events handled by the realtime gateway",
        ["event", "direction"],
        registry=registry,
    )
    app.extensions["metrics_registry"] = registry
    logger.info("metrics_initialized path=/metrics")


def create_app(
    db_controller: Optional[DBController] = None,
    settings: Optional[Settings] = None,
    async_mode: Optional[str] = None,
) -> Flask:
    """Build the game server: REST blueprints, Socket.IO gateway and metrics.

    Args:
        db_controller: Connected DBController; a new one is created when omitted.
        settings: Settings override; defaults to the environment.
        async_mode: Socket.IO async mode override (tests use ``"threading"``).

    Returns:
        Flask: app with ``socketio`` and ``gateway`` in ``app.extensions``.
    """
    settings = settings or get_settings()
    app = Flask(__name__)
    app.config["REQUIRE_AUTHENTICATION"] = settings.require_authentication

    CORS(app, resources={
        r"/api/*": {
            "origins": settings.websocket_cors_origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Admin-Secret"],
            "expose_headers": ["Content-Type", "Authorization"],
            "supports_credentials": True,
        }
    })
    logger.info("cors_enabled origins=%s", settings.websocket_cors_origins)

    if not initialize_database(app, db_controller):
        logger.critical("startup_aborted reason=database_unavailable")
        sys.exit(1)

    setup_metrics(app)
    setup_middleware(app)
    initialize_realtime(app, settings, async_mode or settings.socketio_async_mode)
    initialize_controllers(app, settings)
    initialize_routes(app)

    logger.info("app_created version=%s", __version__)
    return app


if __name__ == "__main__":
    application = create_app()
    app_settings = get_settings()

    logger.info("=" * 60)
    logger.info("Starting crewcode server on %s:%s", app_settings.host, app_settings.port)
    logger.info("=" * 60)

    application.extensions["socketio"].run(
        application, host=app_settings.host, port=app_settings.port, debug=app_settings.debug
    )
