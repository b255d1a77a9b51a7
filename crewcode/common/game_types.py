"""String constants and event names shared by server and client."""

from enum import Enum

# Player roles
ROLE_CREWMATE = "crewmate"
ROLE_IMPOSTER = "imposter"
ROLE_GHOST = "ghost"
VALID_ROLES = (ROLE_CREWMATE, ROLE_IMPOSTER, ROLE_GHOST)
UNKNOWN_ROLE = "unknown"

# Player statuses
PLAYER_ALIVE = "alive"
PLAYER_DEAD = "dead"
PLAYER_DISCONNECTED = "disconnected"
VALID_PLAYER_STATUSES = (PLAYER_ALIVE, PLAYER_DEAD, PLAYER_DISCONNECTED)

# Game statuses
GAME_WAITING = "waiting"
GAME_IN_PROGRESS = "in-progress"
GAME_DISCUSSION = "discussion"
GAME_VOTING = "voting"
GAME_ENDED = "ended"
VALID_GAME_STATUSES = (
    GAME_WAITING,
    GAME_IN_PROGRESS,
    GAME_DISCUSSION,
    GAME_VOTING,
    GAME_ENDED,
)

# Winners
WINNER_CREWMATES = "crewmates"
WINNER_IMPOSTERS = "imposters"
VALID_WINNERS = (WINNER_CREWMATES, WINNER_IMPOSTERS)

# Tasks
TASK_PENDING = "pending"
TASK_COMPLETED = "completed"
TASK_FAILED = "failed"
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"
VALID_DIFFICULTIES = (DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD)
EMERGENCY_ASSIGNEE = "all"

SABOTAGE_TYPES = ("lights", "reactor", "oxygen", "communications")
SKIP_VOTE = "skip"


class GameEvent(str, Enum):
    """Socket.IO event names."""

    # Inbound (client → server)
    JOIN_GAME = "joinGame"
    LEAVE_GAME = "leaveGame"
    TASK_COMPLETED = "taskCompleted"
    SABOTAGE = "sabotage"
    CALL_MEETING = "callMeeting"
    VOTE = "vote"
    CHAT_MESSAGE = "chatMessage"
    UPDATE_POSITION = "updatePosition"
    REPORT_BODY = "reportBody"

    # Outbound (server → client)
    GAME_UPDATE = "gameUpdate"
    GAME_STARTED = "gameStarted"
    TASK_SUBMITTED = "taskSubmitted"
    SABOTAGE_ALERT = "sabotageAlert"
    SABOTAGE_CLEARED = "sabotageCleared"
    MEETING_CALLED = "meetingCalled"
    VOTE_RECORDED = "voteRecorded"
    VOTE_RESULT = "voteResult"
    GAME_ENDED = "gameEnded"
    PLAYER_MOVED = "playerMoved"
    PLAYER_VENT_MOVE = "playerVentMove"
    PLAYER_KILLED = "playerKilled"
    BODY_REPORTED = "bodyReported"
    PLAYER_JOINED = "playerJoined"
    PLAYER_KICKED = "playerKicked"
    PLAYER_CONNECTED = "playerConnected"
    PLAYER_DISCONNECTED = "playerDisconnected"


# Inbound relay events and the outbound name they are re-broadcast under.
# ``sabotage`` is both an inbound relay name and the outbound name used by the
# REST sabotage endpoint; the relay re-broadcasts it as ``sabotageAlert``.
RELAY_EVENTS = {
    GameEvent.TASK_COMPLETED: GameEvent.TASK_SUBMITTED,
    GameEvent.SABOTAGE: GameEvent.SABOTAGE_ALERT,
    GameEvent.CALL_MEETING: GameEvent.MEETING_CALLED,
    GameEvent.VOTE: GameEvent.VOTE_RECORDED,
    GameEvent.CHAT_MESSAGE: GameEvent.CHAT_MESSAGE,
    GameEvent.UPDATE_POSITION: GameEvent.PLAYER_MOVED,
    GameEvent.REPORT_BODY: GameEvent.BODY_REPORTED,
}
