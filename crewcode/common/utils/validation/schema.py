"""Request and socket-event validation helpers.

Every REST body and every inbound socket payload passes through
``validate_payload`` before it reaches game-state mutation.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from crewcode.common.errors import ValidationError
from crewcode.common.game_types import (
    SABOTAGE_TYPES,
    VALID_PLAYER_STATUSES,
    VALID_ROLES,
    VALID_WINNERS,
)

logger = logging.getLogger(__name__)

MIN_IMPOSTERS = 1
MAX_IMPOSTERS = 3
MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 20
MAX_ANSWER_LENGTH = 500
MAX_CHAT_LENGTH = 500

# name -> (required string fields, optional string fields, choice constraints)
REQUEST_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "join_game": {"required": ("playerId",)},
    "submit_task": {"required": ("taskId", "playerId", "answer")},
    "call_meeting": {"required": ("playerId",), "optional": ("reason",)},
    "vote": {"required": ("voterId", "votedPlayerId")},
    "sabotage": {
        "required": ("playerId", "sabotageType"),
        "choices": {"sabotageType": SABOTAGE_TYPES},
    },
    "move": {"required": ("playerId", "targetRoom")},
    "use_vent": {"required": ("playerId", "targetRoom")},
    "kill": {"required": ("killerId", "targetId")},
    "report_body": {"required": ("reporterId", "deadPlayerId")},
    "end_game": {"optional": ("winner",), "choices": {"winner": VALID_WINNERS}},
    "kick": {"required": ("playerId",)},
    "register_player": {"required": ("name",), "optional": ("gameId",)},
    "assign_role": {"required": ("playerId", "role"), "choices": {"role": VALID_ROLES}},
    "player_status": {
        "required": ("playerId", "status"),
        "choices": {"status": VALID_PLAYER_STATUSES},
    },
    # socket events
    "room_membership": {"required": ("gameId", "playerId")},
    "relay": {"required": ("gameId",)},
}


def validate_required_fields(data: Mapping[str, object], required_fields: Iterable[str]):
    """Ensure all required_fields exist (truthy) in data."""

    missing = [field for field in required_fields if not data.get(field)]
    if missing:
        logger.warning("missing_required_fields fields=%s", ", ".join(missing))
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return data


def validate_string_fields(data: Mapping[str, object], fields: Iterable[str]):
    """Ensure the given fields, when present, are strings."""

    wrong = [f for f in fields if f in data and data[f] is not None and not isinstance(data[f], str)]
    if wrong:
        logger.warning("non_string_fields fields=%s", ", ".join(wrong))
        raise ValidationError(f"Fields must be strings: {', '.join(wrong)}")
    return data


def validate_choice(field: str, value: Optional[str], choices: Iterable[str]) -> Optional[str]:
    """Ensure value is one of choices (None passes for optional fields)."""

    if value is None:
        return None
    choices = tuple(choices)
    if value not in choices:
        logger.warning("invalid_choice field=%s value=%s", field, value)
        raise ValidationError(f"{field} must be one of {', '.join(choices)}")
    return value


def validate_imposter_count(imposter_count, maximum: int = MAX_IMPOSTERS) -> int:
    """Validate imposter count is an integer between 1 and ``maximum``."""

    if isinstance(imposter_count, bool):
        raise ValidationError("Imposter count must be an integer")
    try:
        imposter_count = int(imposter_count)
    except (TypeError, ValueError) as exc:
        logger.warning("imposter_count_validation_failed value=%s", imposter_count)
        raise ValidationError(f"Invalid imposter count: {imposter_count}") from exc
    if not MIN_IMPOSTERS <= imposter_count <= maximum:
        logger.warning("invalid_imposter_count value=%s", imposter_count)
        raise ValidationError(
            f"Imposter count must be between {MIN_IMPOSTERS} and {maximum}"
        )
    return imposter_count


def validate_player_name(name: str) -> str:
    name = name.strip()
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        raise ValidationError(
            f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters"
        )
    return name


def validate_payload(data: Any, schema_name: str) -> Dict[str, Any]:
    """Validate a request body / event payload against a named schema.

    Returns the payload as a dict; raises ValidationError otherwise.
    """

    if not isinstance(data, dict):
        logger.warning("payload_not_object schema=%s", schema_name)
        raise ValidationError("Payload must be a JSON object")

    schema = REQUEST_SCHEMAS[schema_name]
    required = schema.get("required", ())
    optional = schema.get("optional", ())

    validate_string_fields(data, tuple(required) + tuple(optional))
    validate_required_fields(
        {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items()},
        required,
    )
    for field, choices in schema.get("choices", {}).items():
        validate_choice(field, data.get(field), choices)

    if schema_name == "submit_task" and len(data["answer"]) > MAX_ANSWER_LENGTH:
        raise ValidationError("Answer is too long")
    if schema_name == "register_player":
        data = dict(data, name=validate_player_name(data["name"]))
    return data
