"""Requests and Response models"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.shared_types import Color, PieceType, Status, Winner

PlayerName = str


# --- REQUEST MODELS ---
# NOTE: names and moves accept any JSON value. They are validated by the domain layer, so a number or a list gets
# the same 400 message as a badly formatted string.
class CreateGameRequest(BaseModel):
    player1: Any = None
    player2: Any = None


class TokenRequest(BaseModel):
    """Body of any write request. The token may also travel in a header or the query string."""

    token: Optional[str] = None


class MoveRequest(TokenRequest):
    move: Any = None


# --- RESPONSE MODELS ---
class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SquarePair(_CamelModel):
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")


class MoveEntry(_CamelModel):
    san: str
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    color: Color
    piece: PieceType
    captured: Optional[PieceType]
    fen: str
    at: int


class GameResponse(_CamelModel):
    id: str
    players: list[PlayerName]
    fen: str
    status: Status
    winner: Optional[Winner]
    turn: Color
    last_move: Optional[SquarePair]
    history: list[MoveEntry]


class CreatedGameResponse(GameResponse):
    """Only returned once, to the client that created the game."""

    write_token: str


class WelcomeResponse(BaseModel):
    """What the display shows when there is no game to show."""

    status: Literal["welcome"] = "welcome"
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str
