"""Error taxonomy shared by controllers, routes and socket handlers."""


class GameError(Exception):
    """Base error for game operations; routes map it to ``status_code``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GameError, ValueError):
    status_code = 400


class GameRuleError(GameError):
    """Action is well formed but not legal in the current game state."""

    status_code = 400


class UnauthorizedError(GameError):
    status_code = 401


class ForbiddenError(GameError):
    status_code = 403


class NotFoundError(GameError):
    status_code = 404


class ConflictError(GameError):
    status_code = 409
