"""Validation helper package."""

from .schema import (
    validate_choice,
    validate_imposter_count,
    validate_payload,
    validate_player_name,
    validate_required_fields,
    validate_string_fields,
    REQUEST_SCHEMAS,
    MIN_IMPOSTERS,
    MAX_IMPOSTERS,
    MAX_CHAT_LENGTH,
)

__all__ = [
    "validate_choice",
    "validate_imposter_count",
    "validate_payload",
    "validate_player_name",
    "validate_required_fields",
    "validate_string_fields",
    "REQUEST_SCHEMAS",
    "MIN_IMPOSTERS",
    "MAX_IMPOSTERS",
    "MAX_CHAT_LENGTH",
]
