"""Validation of user supplied text: player names and move strings."""

import re

from src.core.exceptions import InvalidFormatError, ValidationError

MAX_NAME_LENGTH = 20
_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_'.]+$")

# "e2e4" or with promotion piece "e7e8q"
_MOVE_PATTERN = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")
_MOVE_NOISE = re.compile(r"[\s\-]")


def validate_player_name(name: object) -> str:
    """Return the trimmed name, or raise ValidationError explaining what is wrong with it."""
    if not name or not isinstance(name, str):
        raise ValidationError("Player name is required")

    trimmed = name.strip()
    if not 1 <= len(trimmed) <= MAX_NAME_LENGTH:
        raise ValidationError(f"Player name must be 1-{MAX_NAME_LENGTH} characters")

    if not _NAME_PATTERN.match(trimmed):
        raise ValidationError("Player name contains invalid characters")

    return trimmed


def normalize_move(move: object) -> str:
    """
    Turn a tolerant move spelling into the strict 'e2e4' / 'e7e8q' form.
    ----
    Accepts "e2e4", "E2-E4", "e2 to e4", ...
    """
    if not move or not isinstance(move, str):
        raise InvalidFormatError("Move is required")

    normalized = _MOVE_NOISE.sub("", move.lower()).replace("to", "")
    if not _MOVE_PATTERN.match(normalized):
        raise InvalidFormatError('Invalid move format. Use format like "e2e4"')
    return normalized
